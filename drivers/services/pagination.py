# LogiMS/drivers/services/pagination.py
from __future__ import annotations

import math
from typing import Dict, List, Optional, Union

# Маркер пропущенного диапазона страниц (не кликается в UI)
ELLIPSIS = "ellipsis"

# До этого числа страниц показываем все номера без сокращений
MAX_PLAIN_PAGES = 7

PageSymbol = Union[int, str]


def generate_pagination_pages(current_page: int, total_pages: int) -> List[PageSymbol]:
    """Возвращает номера страниц и маркеры ELLIPSIS для пагинатора.

    Всегда видны первая и последняя страницы и соседи текущей,
    остальное сворачивается в ELLIPSIS. Длина результата не зависит
    от total_pages: не больше 7 номеров и 2 маркеров.

    Parameters
    ----------
    current_page : int
        Текущая страница (1-based). Значение вне [1, total_pages]
        приводится к ближайшей границе.
    total_pages : int
        Общее число страниц; 0 и меньше: пустой список.

    Returns
    -------
    List[int | str]
        Номера по возрастанию вперемешку с ELLIPSIS.
    """
    if total_pages <= 0:
        return []
    current_page = max(1, min(current_page, total_pages))

    if total_pages <= MAX_PLAIN_PAGES:
        return list(range(1, total_pages + 1))

    pages: List[PageSymbol] = [1]

    if current_page <= 4:
        # у начала: 1..5, затем последняя
        pages.extend(range(2, 6))
        if total_pages > 6:
            pages.append(ELLIPSIS)
        pages.append(total_pages)
    elif current_page >= total_pages - 3:
        # у конца: первая, затем последние пять
        if total_pages - 4 > 2:
            pages.append(ELLIPSIS)
        pages.extend(range(max(total_pages - 4, 2), total_pages + 1))
    else:
        # середина: 1 … c-1 c c+1 … N
        if current_page - 1 > 2:
            pages.append(ELLIPSIS)
        elif current_page - 1 == 2:
            pages.append(2)
        pages.extend((current_page - 1, current_page, current_page + 1))
        if current_page + 1 < total_pages - 1:
            pages.append(ELLIPSIS)
        pages.append(total_pages)

    return pages


def count_pages(count: Optional[int], page_size: int) -> int:
    """Число страниц для count записей (0, если записей нет)."""
    if not count or count <= 0 or page_size <= 0:
        return 0
    return math.ceil(count / page_size)


def parse_page(value, default: int = 1) -> int:
    """Безопасно парсим ?page= (мусор и значения < 1 → default)."""
    try:
        page = int(value)
    except (TypeError, ValueError):
        return default
    return page if page >= 1 else default


def page_context(current_page: int, count: Optional[int], page_size: int) -> Dict[str, object]:
    """Всё, что нужно шаблону пагинатора, одним словарём."""
    total = count_pages(count, page_size)
    current = max(1, min(current_page, total)) if total else 1
    return {
        "number": current,
        "total_pages": total,
        "count": count or 0,
        "pages": generate_pagination_pages(current, total),
        "has_previous": current > 1,
        "has_next": current < total,
        "previous_page": current - 1 if current > 1 else None,
        "next_page": current + 1 if current < total else None,
    }
