# LogiMS/drivers/api_views.py
# ─────────────────────────────────────────────────────────────────────────────
# Путь и имя файла: LogiMS/drivers/api_views.py
# Назначение: DRF-представления (JSON) для пагинатора и графиков дашборда
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations  # поддержка современных аннотаций

import logging

from rest_framework import status  # HTTP-коды
from rest_framework.response import Response  # DRF-ответ
from rest_framework.views import APIView  # базовое представление DRF

from accounts.session import clear_token  # отозванный токен выбрасываем из сессии

from .permissions import HasBackendToken  # доступ только с токеном бэкенда
from .serializers import PaginationQuerySerializer  # проверка ?page=&total=
from .services.backend import BackendAuthError, BackendError, client_for
from .services.pagination import generate_pagination_pages
from .services.stats import build_dashboard

logger = logging.getLogger(__name__)


class PaginationWindowView(APIView):
    """GET /api/pagination/?page=3&total=10 → {"page", "total", "pages"}."""

    def get(self, request, *args, **kwargs) -> Response:
        ser = PaginationQuerySerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)  # 400 с описанием ошибок
        page, total = ser.validated_data["page"], ser.validated_data["total"]
        return Response({
            "page": page,
            "total": total,
            "pages": generate_pagination_pages(page, total),
        })


class DashboardChartsView(APIView):
    """Данные графиков дашборда: круговые, бары, ряды по периодам."""
    permission_classes = [HasBackendToken]

    def get(self, request, *args, **kwargs) -> Response:
        try:
            dashboard = build_dashboard(client_for(request))
        except BackendAuthError as e:
            logger.info("Backend rejected token: %s", e)
            clear_token(request)
            return Response({"detail": e.message}, status=status.HTTP_403_FORBIDDEN)
        except BackendError as e:
            logger.warning("Dashboard charts failed: %s", e)
            return Response({"detail": e.message}, status=status.HTTP_502_BAD_GATEWAY)

        return Response({
            "uploads_pie": dashboard["uploads_pie"],
            "trips_pie": dashboard["trips_pie"],
            "uploads_by_type": dashboard["uploads_by_type"],
            "trips_by_status": dashboard["trips_by_status"],
            "payments_chart": dashboard["payments_chart"],
            "trips_chart": dashboard["trips_chart"],
        })
