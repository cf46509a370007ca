# LogiMS/drivers/services/imports.py
"""Выгрузки файлов (payments/trips) и записи, которые бэкенд из них извлёк."""
from __future__ import annotations

import datetime as dt
import re
from typing import Any, Dict, Optional

from .backend import BackendClient, multipart
from .query_cache import invalidate

V1 = "/v1"

FILE_TYPES = ("payments", "trips")
UPLOAD_STATUSES = ("pending", "processing", "completed", "failed")

# пространства имён кэша, которые зависят от набора выгрузок
STATS_NAMESPACES = (
    "uploads-stats",
    "payment-summary",
    "trip-summary",
    "payment-stats",
    "trip-stats",
    "payment-timeseries",
    "trip-timeseries",
)


def _date(value) -> Optional[str]:
    if not value:
        return None
    if isinstance(value, dt.date):
        return value.isoformat()
    return str(value)


def _common_params(
    page: int,
    page_size: int,
    company: str,
    search: str,
    from_date,
    to_date,
    ordering: str = "-created_at",
) -> Dict[str, Any]:
    params: Dict[str, Any] = {"page": page, "page_size": page_size, "ordering": ordering}
    if company and company != "All":
        params["company_code"] = company
    if search:
        params["search"] = search
    if _date(from_date):
        params["from_date"] = _date(from_date)
    if _date(to_date):
        params["to_date"] = _date(to_date)
    return params


# --- Выгрузки -----------------------------------------------------------------

def list_file_uploads(
    client: BackendClient,
    page: int = 1,
    page_size: int = 10,
    company: str = "All",
    search: str = "",
    from_date=None,
    to_date=None,
    file_type: Optional[str] = None,
    status: Optional[str] = None,
) -> Dict[str, Any]:
    params = _common_params(page, page_size, company, search, from_date, to_date)
    if file_type in FILE_TYPES:
        params["file_type"] = file_type
    if status in UPLOAD_STATUSES:
        params["status"] = status
    return client.get(f"{V1}/data-imports/", params=params)


def get_file_upload(client: BackendClient, upload_id: int) -> Dict[str, Any]:
    return client.get(f"{V1}/data-imports/{upload_id}/")


def create_file_upload(
    client: BackendClient,
    company_id: int,
    file,
    from_date,
    to_date,
    file_type: str = "payments",
) -> Dict[str, Any]:
    """Отправить файл выгрузки; разбор файла делает бэкенд асинхронно."""
    fields, files = multipart({
        "company": company_id,
        "file_type": file_type or "payments",
        "file": file,
        "from_date": _date(from_date),
        "to_date": _date(to_date),
    })
    upload = client.post(f"{V1}/data-imports/", data=fields, files=files)
    invalidate(*STATS_NAMESPACES)
    return upload


def delete_file_upload(client: BackendClient, upload_id: int) -> None:
    client.delete(f"{V1}/data-imports/{upload_id}/")
    invalidate(*STATS_NAMESPACES)


def resolve_file_url(file_url: Optional[str], base_url: str) -> Optional[str]:
    """Абсолютную ссылку оставляем, относительную клеим к адресу бэкенда без /api."""
    if not file_url:
        return None
    if re.match(r"^https?://", file_url, re.IGNORECASE):
        return file_url
    root = re.sub(r"/api/?$", "", base_url.rstrip("/"))
    return f"{root}/{file_url.lstrip('/')}"


# --- Записи -------------------------------------------------------------------

def list_payment_records(
    client: BackendClient,
    page: int = 1,
    page_size: int = 10,
    company: str = "All",
    search: str = "",
    from_date=None,
    to_date=None,
    ordering: str = "-created_at",
) -> Dict[str, Any]:
    params = _common_params(page, page_size, company, search, from_date, to_date, ordering or "-created_at")
    return client.get(f"{V1}/payment-records/", params=params)


def list_trip_records(
    client: BackendClient,
    page: int = 1,
    page_size: int = 10,
    company: str = "All",
    search: str = "",
    from_date=None,
    to_date=None,
    upload_id: Optional[int] = None,
) -> Dict[str, Any]:
    params = _common_params(page, page_size, company, search, from_date, to_date)
    if upload_id:
        params["file_upload"] = upload_id
    return client.get(f"{V1}/trip-records/", params=params)
