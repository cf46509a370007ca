# LogiMS/drivers/services/backend.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import requests
from django.conf import settings
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "LogiMS-Dashboard/1.0",
    "Accept": "application/json",
}


# --- Ошибки бэкенда -----------------------------------------------------------

class BackendError(Exception):
    """Любая неудача обращения к бэкенду (сеть, 5xx, неожиданный ответ)."""

    default_message = "Ошибка обращения к серверу"

    def __init__(self, message: str = "", status: Optional[int] = None, payload: Any = None):
        self.message = message or self.default_message
        self.status = status
        self.payload = payload
        super().__init__(self.message)


class BackendAuthError(BackendError):
    """401/403: токена нет или бэкенд его не принял."""

    default_message = "Требуется повторный вход"


class BackendNotFound(BackendError):
    default_message = "Запись не найдена"


class BackendValidationError(BackendError):
    """400 с ошибками полей: {"field": ["msg", ...], ...}."""

    default_message = "Бэкенд отклонил данные"

    @property
    def field_errors(self) -> Dict[str, list]:
        if not isinstance(self.payload, dict):
            return {}
        return {
            k: v if isinstance(v, list) else [v]
            for k, v in self.payload.items()
            if k not in ("detail", "message")
        }


def error_message(payload: Any, default: str) -> str:
    """Человекочитаемый текст из тела ошибки.

    Сначала ошибки полей ("field: a, b; field2: c"), затем detail, затем message.
    """
    if isinstance(payload, dict):
        parts = []
        for field, messages in payload.items():
            if field in ("detail", "message"):
                continue
            if isinstance(messages, (list, tuple)):
                messages = ", ".join(str(m) for m in messages)
            # общие ошибки DRF показываем без имени поля
            parts.append(str(messages) if field == "non_field_errors" else f"{field}: {messages}")
        if parts:
            return "; ".join(parts)
        if payload.get("detail"):
            return str(payload["detail"])
        if payload.get("message"):
            return str(payload["message"])
    elif isinstance(payload, str) and payload.strip():
        return payload.strip()
    return default


# --- Клиент -------------------------------------------------------------------

class BackendClient:
    """HTTP-клиент REST-бэкенда с токеном «Authorization: Token <key>»."""

    def __init__(
        self,
        token: Optional[str],
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
    ):
        self.token = token
        self.base_url = (base_url or settings.BACKEND_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.BACKEND_TIMEOUT
        self.session = requests.Session()
        retry = Retry(
            total=settings.BACKEND_RETRIES if retries is None else retries,
            backoff_factor=0.3,
            status_forcelist=[502, 503, 504],
            allowed_methods=["GET", "HEAD", "DELETE"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

    def url(self, path: str) -> str:
        """path может быть /relative или полным https://..."""
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def _headers(self) -> Dict[str, str]:
        if not self.token:
            raise BackendAuthError("Нет токена авторизации")
        return {**DEFAULT_HEADERS, "Authorization": f"Token {self.token}"}

    def request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = self.url(path)
        headers = self._headers()
        try:
            r = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning("Backend %s %s failed: %s", method, url, e)
            raise BackendError(f"Сервер недоступен: {e}") from e

        if r.status_code >= 400:
            self._raise_for_status(method, url, r)
        return r

    def _raise_for_status(self, method: str, url: str, r: requests.Response) -> None:
        try:
            payload = r.json()
        except ValueError:
            payload = r.text
        logger.warning("Backend %s %s -> %s", method, url, r.status_code)

        if r.status_code in (401, 403):
            raise BackendAuthError(error_message(payload, BackendAuthError.default_message),
                                   status=r.status_code, payload=payload)
        if r.status_code == 404:
            raise BackendNotFound(error_message(payload, BackendNotFound.default_message),
                                  status=404, payload=payload)
        if r.status_code == 400:
            raise BackendValidationError(error_message(payload, BackendValidationError.default_message),
                                         status=400, payload=payload)
        raise BackendError(f"Сервер ответил {r.status_code}", status=r.status_code, payload=payload)

    @staticmethod
    def _json(r: requests.Response) -> Any:
        if r.status_code == 204 or not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise BackendError("Сервер вернул не-JSON ответ", status=r.status_code) from e

    # --- короткие обёртки ---

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._json(self.request("GET", path, params=params or {}))

    def get_raw(self, path: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """GET без разбора JSON: для выгрузок файлов."""
        return self.request("GET", path, params=params or {})

    def post(self, path: str, json: Any = None, data: Any = None, files: Any = None) -> Any:
        return self._json(self.request("POST", path, json=json, data=data, files=files))

    def put(self, path: str, json: Any = None) -> Any:
        return self._json(self.request("PUT", path, json=json))

    def delete(self, path: str) -> None:
        self.request("DELETE", path)


def multipart(data: Dict[str, Any], file_fields: Tuple[str, ...] = ("file",)) -> Tuple[dict, dict]:
    """Раскладываем данные формы на (data, files) для multipart/form-data.

    Пустые значения (None, "") не отправляем, как и в исходной форме UI.
    """
    fields: Dict[str, str] = {}
    files: Dict[str, tuple] = {}
    for key, value in data.items():
        if value is None or value == "":
            continue
        if key in file_fields:
            name = getattr(value, "name", key)
            content_type = getattr(value, "content_type", None) or "application/octet-stream"
            files[key] = (name.rsplit("/", 1)[-1], value, content_type)
        elif isinstance(value, bool):
            fields[key] = "true" if value else "false"
        else:
            fields[key] = str(value)
    return fields, files


def client_for(request) -> BackendClient:
    """Клиент с токеном из сессии текущего пользователя."""
    from accounts.session import get_token  # локальный импорт: accounts зависит от drivers.services

    return BackendClient(token=get_token(request))
