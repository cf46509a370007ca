# LogiMS/accounts/session.py
# Токен бэкенда хранится только в сессии (подписанная cookie), в БД его нет.
from typing import Optional

from django.conf import settings


def get_token(request) -> Optional[str]:
    return request.session.get(settings.BACKEND_TOKEN_SESSION_KEY) or None


def store_token(request, token: str, username: str = "") -> None:
    # новый ключ сессии при входе: защита от фиксации сессии
    request.session.cycle_key()
    request.session[settings.BACKEND_TOKEN_SESSION_KEY] = token
    request.session["backend_username"] = username


def clear_token(request) -> None:
    request.session.pop(settings.BACKEND_TOKEN_SESSION_KEY, None)
    request.session.pop("backend_username", None)


def is_signed_in(request) -> bool:
    return bool(get_token(request))
