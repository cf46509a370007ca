# LogiMS/drivers/services/stats.py
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from .backend import BackendClient
from .expiry import parse_date
from .query_cache import TTL_STATS, TTL_SUMMARY, cached_query

V1 = "/v1"

# Палитра графиков по умолчанию (повторяется по кругу)
DEFAULT_COLORS = [
    "#465FFF",
    "#10B981",
    "#F59E0B",
    "#EF4444",
    "#8B5CF6",
    "#06B6D4",
    "#F97316",
    "#EC4899",
]


# --- Запросы к бэкенду --------------------------------------------------------

def _fetch(client: BackendClient, namespace: str, path: str, ttl: int, params: Optional[Dict[str, Any]] = None):
    return cached_query(namespace, params, ttl, lambda: client.get(path, params=params), token=client.token)


def uploads_stats(client: BackendClient, status: Optional[str] = "completed") -> Dict[str, Any]:
    params = {"status": status} if status else None
    return _fetch(client, "uploads-stats", f"{V1}/data-imports/stats/", TTL_STATS, params) or {}


def payment_summary(client: BackendClient, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return _fetch(client, "payment-summary", f"{V1}/payment-records/summary/", TTL_SUMMARY, filters) or {}


def trip_summary(client: BackendClient, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return _fetch(client, "trip-summary", f"{V1}/trip-records/summary/", TTL_SUMMARY, filters) or {}


def trip_stats(client: BackendClient, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return _fetch(client, "trip-stats", f"{V1}/trip-records/stats/", TTL_STATS, filters) or {}


def payment_stats(client: BackendClient, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return _fetch(client, "payment-stats", f"{V1}/payment-records/stats/", TTL_STATS, filters) or {}


def payment_timeseries(client: BackendClient, period: str = "upload") -> List[Dict[str, Any]]:
    return _fetch(client, "payment-timeseries", f"{V1}/payment-records/timeseries/", TTL_STATS,
                  {"period": period}) or []


def trip_timeseries(client: BackendClient, period: str = "upload") -> List[Dict[str, Any]]:
    return _fetch(client, "trip-timeseries", f"{V1}/trip-records/timeseries/", TTL_STATS,
                  {"period": period}) or []


# --- Преобразования для шаблонов и графиков -----------------------------------

def to_decimal(value: Any) -> Optional[Decimal]:
    if value in (None, "", "-"):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def format_amount(value: Any) -> str:
    """Сумма с двумя знаками после точки или '-' если значения нет."""
    d = to_decimal(value)
    if d is None:
        return "-"
    return f"{d:.2f}"


def _number(value: Any) -> float:
    d = to_decimal(value)
    return float(d) if d is not None else 0.0


def pie_chart(items: Iterable[Dict[str, Any]], label_key: str, value_key: str = "count") -> Dict[str, list]:
    """{labels, series, colors} для круговой диаграммы."""
    labels: List[str] = []
    series: List[float] = []
    for item in items or []:
        labels.append(str(item.get(label_key) or "unknown"))
        series.append(_number(item.get(value_key)))
    colors = [DEFAULT_COLORS[i % len(DEFAULT_COLORS)] for i in range(len(labels))]
    return {"labels": labels, "series": series, "colors": colors}


def bar_list(items: Iterable[Dict[str, Any]], label_key: str, value_key: str = "count") -> List[Dict[str, Any]]:
    """Строки для горизонтальных баров: ширина в % от максимального значения."""
    rows = [
        {"label": str(item.get(label_key) or "unknown"), "value": _number(item.get(value_key))}
        for item in items or []
    ]
    top = max([1.0] + [r["value"] for r in rows])
    for r in rows:
        r["width_pct"] = round(max(0.0, min(100.0, r["value"] / top * 100)), 1)
    return rows


def _initials(first: Optional[str], last: Optional[str]) -> str:
    return f"{(first or '?')[:1]}{(last or '?')[:1]}".upper()


def top_drivers(stats: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Лидеры по выручке поездок, с рангом и шириной бара."""
    rows = list(stats.get("top_drivers") or [])
    top = max([1.0] + [_number(d.get("fare")) for d in rows])
    out = []
    for rank, d in enumerate(rows, start=1):
        fare = _number(d.get("fare"))
        out.append({
            "rank": rank,
            "driver_id": d.get("driver_id"),
            "driver_uuid": d.get("driver_uuid"),
            "name": f"{d.get('driver_first_name') or ''} {d.get('driver_last_name') or ''}".strip(),
            "initials": _initials(d.get("driver_first_name"), d.get("driver_last_name")),
            "trips": d.get("trips") or 0,
            "fare": format_amount(fare),
            "width_pct": round(fare / top * 100, 1),
        })
    return out


def timeseries_chart(points: Iterable[Dict[str, Any]], value_key: str) -> Dict[str, list]:
    """{categories, series} для графика по периодам выгрузок."""
    categories: List[str] = []
    series: List[float] = []
    for p in points or []:
        start, end = parse_date(p.get("from_date")), parse_date(p.get("to_date"))
        period = f"{start:%d.%m}–{end:%d.%m}" if start and end else ""
        company = p.get("company") or ""
        categories.append(f"{company} ({period})" if company and period else company or period)
        series.append(_number(p.get(value_key)))
    return {"categories": categories, "series": series}


def count_by(items: Iterable[Dict[str, Any]], key: str, wanted: str) -> int:
    """count из группы, где item[key] == wanted (иначе 0)."""
    for item in items or []:
        if item.get(key) == wanted:
            return int(item.get("count") or 0)
    return 0


# --- Сборка дашборда ----------------------------------------------------------

def build_dashboard(client: BackendClient) -> Dict[str, Any]:
    """Контекст главной страницы: карточки, распределения, лидеры, тренды."""
    uploads = uploads_stats(client, status="completed")
    pay_sum = payment_summary(client)
    trip_sum = trip_summary(client)
    t_stats = trip_stats(client)
    pay_ts = payment_timeseries(client)
    trip_ts = trip_timeseries(client)

    by_type = uploads.get("by_type") or []
    by_status = t_stats.get("by_status") or []

    return {
        "cards": [
            {"key": "payments_net", "title": "Чистый доход водителей", "value": format_amount(pay_sum.get("total_net_earnings"))},
            {"key": "payments_revenue", "title": "Выручка", "value": format_amount(pay_sum.get("total_revenue"))},
            {"key": "trips_fare", "title": "Сумма поездок", "value": format_amount(trip_sum.get("total_fare_amount"))},
            {"key": "trips_total", "title": "Всего поездок",
             "value": trip_sum.get("total_trips") if trip_sum.get("total_trips") is not None else "-"},
        ],
        "completed_payments": count_by(by_type, "file_type", "payments"),
        "completed_trips": count_by(by_type, "file_type", "trips"),
        "uploads_by_type": bar_list(by_type, "file_type"),
        "trips_by_status": bar_list(by_status, "trip_status"),
        "uploads_pie": pie_chart(by_type, "file_type"),
        "trips_pie": pie_chart(by_status, "trip_status"),
        "top_drivers": top_drivers(t_stats),
        "payments_timeseries": pay_ts,
        "trips_timeseries": trip_ts,
        "payments_chart": timeseries_chart(pay_ts, "total_net"),
        "trips_chart": timeseries_chart(trip_ts, "trips"),
    }
