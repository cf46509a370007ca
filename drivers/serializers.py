# LogiMS/drivers/serializers.py
# ─────────────────────────────────────────────────────────────────────────────
# Путь и имя файла: LogiMS/drivers/serializers.py
# Назначение: DRF-сериализаторы параметров JSON-ручек
# ─────────────────────────────────────────────────────────────────────────────

from rest_framework import serializers  # базовые сериализаторы DRF


class PaginationQuerySerializer(serializers.Serializer):
    """Параметры ?page=&total= для расчёта окна пагинатора."""
    page = serializers.IntegerField(min_value=1, default=1)           # текущая страница
    total = serializers.IntegerField(min_value=0, max_value=100_000)  # всего страниц
