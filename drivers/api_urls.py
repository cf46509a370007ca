# LogiMS/drivers/api_urls.py
# ─────────────────────────────────────────────────────────────────────────────
# Путь и имя файла: LogiMS/drivers/api_urls.py
# Назначение: маршруты JSON-ручек DRF
# ─────────────────────────────────────────────────────────────────────────────

from django.urls import path  # функции маршрутизации

from . import api_views  # представления API

urlpatterns = [
    path("pagination/",       api_views.PaginationWindowView.as_view(), name="pagination"),        # окно пагинатора
    path("dashboard/charts/", api_views.DashboardChartsView.as_view(),  name="dashboard_charts"),  # графики дашборда
]
