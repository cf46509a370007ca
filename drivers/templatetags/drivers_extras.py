from django import template

from drivers.services.expiry import STATUS_LABELS, document_status
from drivers.services.pagination import ELLIPSIS
from drivers.services.stats import format_amount

register = template.Library()

# css-класс бейджа для статуса срока действия
BADGE_CLASSES = {
    "missing": "badge-muted",
    "expired": "badge-danger",
    "expiring_soon": "badge-warning",
    "valid": "badge-success",
}


@register.inclusion_tag("includes/pagination.html", takes_context=True)
def pagination(context, pager):
    """Пагинатор по словарю из page_context(); при 0 страниц ничего не рисует."""
    return {"pager": pager, "request": context.get("request"), "ellipsis": ELLIPSIS}


@register.simple_tag(takes_context=True)
def page_url(context, number):
    """Текущий querystring с заменённым ?page=."""
    request = context["request"]
    params = request.GET.copy()
    params["page"] = number
    return f"?{params.urlencode()}"


@register.filter
def is_ellipsis(value):
    return value == ELLIPSIS


@register.filter
def money(value):
    return format_amount(value)


@register.filter
def status_label(status):
    return STATUS_LABELS.get(status, status)


@register.filter
def status_badge(status):
    return BADGE_CLASSES.get(status, "badge-muted")


@register.filter
def expiry_status(expiry_date):
    """Статус по дате окончания прямо в шаблоне (для списков договоров)."""
    return document_status(expiry_date)
