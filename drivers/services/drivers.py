# LogiMS/drivers/services/drivers.py
from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional

from .backend import BackendClient, BackendError, multipart
from .query_cache import TTL_LONG, cached_query, invalidate

logger = logging.getLogger(__name__)

V1 = "/v1"

# Эндпоинты документов: ключ формы → путь
DOCUMENT_ENDPOINTS = {
    "license": "licenses",
    "national_id": "national-ids",
    "vehicle_license": "vehicle-licenses",
    "contract": "contracts",
}

DOC_STATUS_CHOICES = ("expired_docs", "missing_docs")
DRIVER_STATUS_CHOICES = ("active", "inactive")

EXPORT_DEFAULT_NAME = "drivers_export.xlsx"
EXPORT_DEFAULT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_FILENAME_RE = re.compile(r'filename="?([^";]+)"?')


@dataclass
class CreateDriverResult:
    driver: Dict[str, Any]
    uploaded: List[str] = field(default_factory=list)
    failed: List[Dict[str, str]] = field(default_factory=list)


@dataclass
class ExportFile:
    content: bytes
    filename: str
    content_type: str


def new_driver_uuid() -> str:
    return str(uuid.uuid4())


# --- Водители -----------------------------------------------------------------

def list_drivers(
    client: BackendClient,
    company: str = "All",
    page: int = 1,
    status: str = "all",
    doc_status: str = "all",
    search: str = "",
    page_size: int = 10,
) -> Dict[str, Any]:
    """Страница водителей: {count, next, previous, results}."""
    params: Dict[str, Any] = {"page": page, "page_size": page_size}
    if company and company != "All":
        params["company_code"] = company
    if status in DRIVER_STATUS_CHOICES:
        params["is_active"] = "true" if status == "active" else "false"
    if doc_status in DOC_STATUS_CHOICES:
        params["doc_status"] = doc_status
    if search:
        params["search"] = search
    return client.get(f"{V1}/drivers/", params=params)


def iter_drivers(client: BackendClient, company: str = "All", page_size: int = 50) -> Iterator[Dict[str, Any]]:
    """Все водители постранично (идём по ссылке next, пока она есть)."""
    page = 1
    while True:
        data = list_drivers(client, company=company, page=page, page_size=page_size)
        for row in data.get("results") or []:
            yield row
        if not data.get("next"):
            break
        page += 1


def get_driver(client: BackendClient, driver_id: int) -> Dict[str, Any]:
    """Профиль водителя вместе с документами."""
    return cached_query(
        "driver-profile",
        {"id": driver_id},
        TTL_LONG,
        lambda: client.get(f"{V1}/drivers/{driver_id}/"),
        token=client.token,
    )


def _upload_document(client: BackendClient, kind: str, driver_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    fields, files = multipart({**data, "driver_id": driver_id})
    return client.post(f"{V1}/{DOCUMENT_ENDPOINTS[kind]}/", data=fields, files=files)


def create_driver(
    client: BackendClient,
    driver_data: Dict[str, Any],
    license: Optional[Dict[str, Any]] = None,
    national_id: Optional[Dict[str, Any]] = None,
    vehicle_license: Optional[Dict[str, Any]] = None,
    contracts: Iterable[Dict[str, Any]] = (),
) -> CreateDriverResult:
    """Создать водителя, затем загрузить те документы, у которых есть файл.

    Ошибка создания самого водителя пробрасывается; ошибки документов: нет:
    они собираются в result.failed, водитель уже создан.
    """
    payload = {k: v for k, v in driver_data.items() if v is not None}
    if not payload.get("uuid"):
        payload["uuid"] = new_driver_uuid()

    driver = client.post(f"{V1}/drivers/", json=payload)
    driver_id = driver["id"]
    logger.info("Driver created: id=%s", driver_id)
    result = CreateDriverResult(driver=driver)

    docs = [("license", license), ("national_id", national_id), ("vehicle_license", vehicle_license)]
    docs += [("contract", c) for c in contracts]
    for kind, data in docs:
        if not data or not data.get("file"):
            continue
        try:
            _upload_document(client, kind, driver_id, data)
        except BackendError as e:
            logger.warning("Document %s for driver %s failed: %s", kind, driver_id, e)
            result.failed.append({"kind": kind, "error": e.message})
        else:
            result.uploaded.append(kind)

    invalidate("contracts")
    return result


def upload_documents(client: BackendClient, driver_id: int, documents: Dict[str, Dict[str, Any]]) -> List[Dict[str, str]]:
    """Догрузить новые файлы документов к существующему водителю; вернуть ошибки."""
    failed = []
    for kind, data in documents.items():
        if not data or not data.get("file"):
            continue
        try:
            _upload_document(client, kind, driver_id, data)
        except BackendError as e:
            logger.warning("Document %s for driver %s failed: %s", kind, driver_id, e)
            failed.append({"kind": kind, "error": e.message})
    invalidate("driver-profile", "contracts")
    return failed


def update_driver(client: BackendClient, driver_id: int, driver_data: Dict[str, Any]) -> Dict[str, Any]:
    driver = client.put(f"{V1}/drivers/{driver_id}/", json=driver_data)
    invalidate("driver-profile")
    return driver


def delete_driver(client: BackendClient, driver_id: int) -> None:
    client.delete(f"{V1}/drivers/{driver_id}/")
    logger.info("Driver deleted: id=%s", driver_id)
    invalidate("driver-profile", "contracts")


def export_drivers(
    client: BackendClient,
    company: Optional[str] = None,
    doc_status: Optional[str] = None,
    search: Optional[str] = None,
) -> ExportFile:
    """Выгрузка водителей в файл (xlsx формирует бэкенд)."""
    params: Dict[str, Any] = {}
    if company and company != "All":
        params["company_code"] = company
    if doc_status in DOC_STATUS_CHOICES:
        params["doc_status"] = doc_status
    if search:
        params["search"] = search

    r = client.get_raw(f"{V1}/drivers/export/", params=params)
    filename = EXPORT_DEFAULT_NAME
    m = _FILENAME_RE.search(r.headers.get("Content-Disposition", ""))
    if m:
        filename = m.group(1).strip()
    return ExportFile(
        content=r.content,
        filename=filename,
        content_type=r.headers.get("Content-Type") or EXPORT_DEFAULT_TYPE,
    )


# --- Справочники --------------------------------------------------------------

def list_companies(client: BackendClient) -> List[Dict[str, Any]]:
    """Компании-партнёры (results из постраничного ответа)."""
    data = cached_query("companies", None, TTL_LONG, lambda: client.get(f"{V1}/companies/"), token=client.token)
    return (data or {}).get("results") or []


def get_current_user(client: BackendClient) -> Dict[str, Any]:
    return cached_query("current-user", None, TTL_LONG, lambda: client.get(f"{V1}/users/me/"), token=client.token)


# --- Договоры -----------------------------------------------------------------

def list_contracts(client: BackendClient, page: int = 1) -> Dict[str, Any]:
    return cached_query(
        "contracts",
        {"page": page},
        TTL_LONG,
        lambda: client.get(f"{V1}/contracts/", params={"page": page}),
        token=client.token,
    )


def upload_contract(client: BackendClient, data: Dict[str, Any]) -> Dict[str, Any]:
    """Загрузить договор водителю: driver_id, contract_number, даты, notes, file."""
    fields, files = multipart(data)
    contract = client.post(f"{V1}/contracts/", data=fields, files=files)
    invalidate("contracts", "driver-profile")
    return contract
