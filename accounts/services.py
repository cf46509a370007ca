# LogiMS/accounts/services.py
import logging
from typing import Optional

import requests
from django.conf import settings

from drivers.services.backend import (
    DEFAULT_HEADERS,
    BackendClient,
    BackendError,
    BackendValidationError,
    error_message,
)

logger = logging.getLogger(__name__)

TOKEN_PATH = "/auth-token/"
LOGOUT_PATH = "/v1/auth/logout/"


def obtain_token(username: str, password: str, base_url: Optional[str] = None) -> str:
    """Обменять логин/пароль на токен бэкенда.

    Неверные учётные данные → BackendValidationError (бэкенд отвечает 400),
    сеть/5xx/ответ без токена → BackendError.
    """
    url = f"{(base_url or settings.BACKEND_API_URL).rstrip('/')}{TOKEN_PATH}"
    try:
        r = requests.post(url, json={"username": username, "password": password},
                          headers=DEFAULT_HEADERS, timeout=settings.BACKEND_TIMEOUT)
    except requests.RequestException as e:
        logger.warning("Token request failed: %s", e)
        raise BackendError(f"Сервер недоступен: {e}") from e

    try:
        payload = r.json()
    except ValueError:
        payload = None

    if r.status_code in (400, 401):
        raise BackendValidationError(error_message(payload, "Неверный логин или пароль"),
                                     status=r.status_code, payload=payload)
    if r.status_code >= 400:
        raise BackendError(f"Сервер ответил {r.status_code}", status=r.status_code, payload=payload)

    token = (payload or {}).get("token") if isinstance(payload, dict) else None
    if not token:
        raise BackendError("Сервер не вернул токен", status=r.status_code, payload=payload)
    return token


def revoke_token(token: str) -> None:
    """Сообщить бэкенду о выходе. Ошибку только логируем: токен всё равно забываем."""
    try:
        BackendClient(token=token, retries=0).post(LOGOUT_PATH, json={})
    except BackendError as e:
        logger.warning("Logout API call failed, continuing with local logout: %s", e)
