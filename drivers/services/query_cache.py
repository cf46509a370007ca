# LogiMS/drivers/services/query_cache.py
"""Короткоживущий кэш ответов бэкенда.

Ключ = пространство имён + поколение + хэш токена + хэш параметров.
Мутации вызывают invalidate(namespace): поколение растёт, и все старые
ключи этого пространства перестают находиться (дотухают сами по TTL).
"""
from __future__ import annotations

import hashlib
import json
import logging
import time
from typing import Any, Callable, Dict, Optional

from django.core.cache import cache

logger = logging.getLogger(__name__)

GENERATION_KEY = "bq_gen_{namespace}"
ENTRY_KEY = "bq_{namespace}_{gen}_{token}_{params}"

# TTL (сек) по пространствам имён
TTL_LONG = 300     # справочники, профиль, договоры
TTL_STATS = 60     # статистика и временные ряды
TTL_SUMMARY = 30   # сводные карточки


def _digest(value: Any) -> str:
    raw = json.dumps(value, sort_keys=True, default=str)
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()[:16]


def _generation(namespace: str) -> int:
    # поколение: метка времени: потерянный ключ поколения не «оживит» старые записи
    return cache.get_or_set(GENERATION_KEY.format(namespace=namespace), time.time_ns, timeout=None)


def make_key(namespace: str, params: Optional[Dict[str, Any]], token: Optional[str]) -> str:
    return ENTRY_KEY.format(
        namespace=namespace,
        gen=_generation(namespace),
        token=_digest(token or ""),
        params=_digest(params or {}),
    )


def cached_query(
    namespace: str,
    params: Optional[Dict[str, Any]],
    ttl: int,
    fetch: Callable[[], Any],
    token: Optional[str] = None,
) -> Any:
    """Вернуть свежий ответ из кэша или вызвать fetch() и запомнить результат."""
    key = make_key(namespace, params, token)
    cached = cache.get(key)
    if cached is not None:
        logger.debug("cache hit %s", key)
        return cached

    data = fetch()
    if data is not None:
        cache.set(key, data, timeout=ttl)
    return data


def invalidate(*namespaces: str) -> None:
    """Сбросить все записи пространств имён (после create/update/delete)."""
    for namespace in namespaces:
        key = GENERATION_KEY.format(namespace=namespace)
        # часы могут не сдвинуться между вызовами, поколение обязано
        gen = max(time.time_ns(), (cache.get(key) or 0) + 1)
        cache.set(key, gen, timeout=None)
