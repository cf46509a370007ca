# LogiMS/accounts/urls.py
# ─────────────────────────────────────────────────────────────────────────────
# Путь и имя файла: LogiMS/accounts/urls.py
# Назначение: вход/выход через токен бэкенда и профиль текущего пользователя
# ─────────────────────────────────────────────────────────────────────────────

from django.urls import path  # импорт path для маршрутов
from .views import LoginView, LogoutView, ProfileView  # вход, выход, профиль

app_name = "accounts"

urlpatterns = [
    path("login/", LoginView.as_view(), name="login"),        # логин (получаем токен бэкенда)
    path("logout/", LogoutView.as_view(), name="logout"),     # логаут (POST)
    path("profile/", ProfileView.as_view(), name="profile"),  # профиль из /v1/users/me/
]
