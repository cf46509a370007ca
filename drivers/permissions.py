# LogiMS/drivers/permissions.py
# ─────────────────────────────────────────────────────────────────────────────
# Путь и имя файла: LogiMS/drivers/permissions.py
# Назначение: пермишены DRF для JSON-ручек дашборда
# ─────────────────────────────────────────────────────────────────────────────

from rest_framework.permissions import BasePermission  # базовый класс пермишенов DRF

from accounts.session import is_signed_in  # токен бэкенда хранится в сессии


class HasBackendToken(BasePermission):
    """Пускает только сессии, в которых есть токен бэкенда.

    Пользователей Django у нас нет: авторизацию делает бэкенд,
    а сюда доходит лишь его токен из подписанной cookie.
    """
    message = "Требуется вход в систему."

    def has_permission(self, request, view):
        # request DRF оборачивает HttpRequest, сессия доступна как обычно
        return is_signed_in(request)
