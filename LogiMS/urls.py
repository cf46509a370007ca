# LogiMS/LogiMS/urls.py
# ─────────────────────────────────────────────────────────────────────────────
# Путь и имя файла: LogiMS/LogiMS/urls.py
# Назначение: корневые URL-маршруты проекта + безопасное подключение debug_toolbar
# ─────────────────────────────────────────────────────────────────────────────

from django.urls import path, include       # функции для описания маршрутов
from django.conf import settings            # доступ к settings для проверки DEBUG

urlpatterns = [
    path("accounts/", include(("accounts.urls", "accounts"), namespace="accounts")),  # вход/выход/профиль
    path("", include(("drivers.urls", "drivers"), namespace="drivers")),  # маршруты основного приложения
]

# Подключаем URL-ы тулбара только если включён DEBUG и тулбар активирован
if settings.DEBUG and getattr(settings, "ENABLE_DEBUG_TOOLBAR", True):
    import debug_toolbar  # импортируем пакет только при необходимости
    urlpatterns = [path("__debug__/", include(debug_toolbar.urls))] + urlpatterns

# Ошибка бэкенда, не пойманная во вью: дружелюбная страница вместо трейсбека
handler500 = "drivers.views.server_error"
