# LogiMS/drivers/services/expiry.py
from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional, Union

from django.utils import timezone

EXPIRING_SOON_DAYS = 30

STATUS_MISSING = "missing"
STATUS_EXPIRED = "expired"
STATUS_EXPIRING_SOON = "expiring_soon"
STATUS_VALID = "valid"

STATUS_LABELS = {
    STATUS_MISSING: "Нет данных",
    STATUS_EXPIRED: "Просрочен",
    STATUS_EXPIRING_SOON: "Скоро истекает",
    STATUS_VALID: "Действует",
}

# Документы профиля водителя: (ключ в ответе бэкенда, подпись)
SINGLE_DOCUMENTS = (
    ("license", "Водительское удостоверение"),
    ("national_id_doc", "Удостоверение личности"),
    ("vehicle_license", "Регистрация ТС"),
)

DateLike = Union[dt.date, dt.datetime, str, None]


def parse_date(value: DateLike) -> Optional[dt.date]:
    """date/datetime/ISO-строка → date; пустое и мусор → None."""
    if value is None or value == "":
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    s = str(value).strip()
    try:
        # YYYY-MM-DD или полный ISO datetime
        return dt.date.fromisoformat(s[:10])
    except ValueError:
        return None


def _today(today: Optional[dt.date]) -> dt.date:
    return today or timezone.localdate()


def is_expired(expiry: DateLike, today: Optional[dt.date] = None) -> bool:
    """Документ просрочен, если дата окончания строго раньше сегодняшней."""
    d = parse_date(expiry)
    return d is not None and d < _today(today)


def is_expiring_soon(expiry: DateLike, today: Optional[dt.date] = None, days: int = EXPIRING_SOON_DAYS) -> bool:
    """Ещё действует, но истекает в ближайшие `days` дней (включительно)."""
    d = parse_date(expiry)
    if d is None:
        return False
    t = _today(today)
    return t <= d <= t + dt.timedelta(days=days)


def document_status(expiry: DateLike, today: Optional[dt.date] = None, days: int = EXPIRING_SOON_DAYS) -> str:
    if parse_date(expiry) is None:
        return STATUS_MISSING
    if is_expired(expiry, today):
        return STATUS_EXPIRED
    if is_expiring_soon(expiry, today, days):
        return STATUS_EXPIRING_SOON
    return STATUS_VALID


def driver_documents(driver: Dict[str, Any], today: Optional[dt.date] = None) -> List[Dict[str, Any]]:
    """Плоский список документов водителя со статусом срока действия.

    Отсутствующие одиночные документы тоже попадают в список (status=missing),
    чтобы в профиле было видно, чего не хватает.
    """
    rows: List[Dict[str, Any]] = []
    for key, label in SINGLE_DOCUMENTS:
        doc = driver.get(key)
        status = document_status(doc.get("expiry_date"), today) if doc else STATUS_MISSING
        rows.append({"kind": key, "label": label, "document": doc, "status": status})

    for contract in driver.get("contracts") or []:
        number = contract.get("contract_number") or ""
        rows.append({
            "kind": "contract",
            "label": f"Договор {number}".strip(),
            "document": contract,
            "status": document_status(contract.get("expiry_date"), today),
        })
    return rows


def problem_documents(driver: Dict[str, Any], days: int = EXPIRING_SOON_DAYS,
                      today: Optional[dt.date] = None) -> List[Dict[str, Any]]:
    """Только просроченные и истекающие в ближайшие `days` дней."""
    out = []
    for row in driver_documents(driver, today):
        doc = row["document"]
        if not doc:
            continue
        status = document_status(doc.get("expiry_date"), today, days)
        if status in (STATUS_EXPIRED, STATUS_EXPIRING_SOON):
            out.append({**row, "status": status})
    return out
