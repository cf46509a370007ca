import datetime as dt
from io import StringIO

import pytest
from django.core.management import CommandError, call_command
from django.utils import timezone

from .conftest import BACKEND


def run(*args):
    out = StringIO()
    call_command("report_expiring_documents", "--token", "cli-token", *args, stdout=out)
    return out.getvalue()


def test_report_lists_problem_documents(requests_mock):
    today = timezone.localdate()
    requests_mock.get(f"{BACKEND}/v1/drivers/", [
        {"json": {"count": 2, "next": "p2", "results": [{"id": 1}]}},
        {"json": {"count": 2, "next": None, "results": [{"id": 2}]}},
    ])
    requests_mock.get(f"{BACKEND}/v1/drivers/1/", json={
        "id": 1, "first_name": "Иван", "last_name": "Петров", "company_code": "ACME",
        "license": {"expiry_date": (today - dt.timedelta(days=1)).isoformat()},
        "vehicle_license": {"expiry_date": (today + dt.timedelta(days=10)).isoformat()},
    })
    requests_mock.get(f"{BACKEND}/v1/drivers/2/", json={
        "id": 2, "first_name": "Анна", "last_name": "Смирнова",
        "license": {"expiry_date": (today + dt.timedelta(days=365)).isoformat()},
    })

    output = run("--days", "30")
    assert "#1 Иван Петров (ACME)" in output
    assert "Водительское удостоверение: Просрочен" in output
    assert "Регистрация ТС: Скоро истекает" in output
    assert "Смирнова" not in output
    assert "водителей 2, просрочено 1, истекает 1" in output
    assert requests_mock.request_history[0].headers["Authorization"] == "Token cli-token"


def test_report_skips_broken_profile(requests_mock):
    requests_mock.get(f"{BACKEND}/v1/drivers/", json={"count": 1, "next": None, "results": [{"id": 3}]})
    requests_mock.get(f"{BACKEND}/v1/drivers/3/", status_code=500, text="")
    output = run()
    assert "не загружено профилей 1" in output


def test_report_company_filter(requests_mock):
    requests_mock.get(f"{BACKEND}/v1/drivers/", json={"count": 0, "next": None, "results": []})
    run("--company", "FAST")
    assert requests_mock.last_request.qs["company_code"] == ["fast"]


def test_report_backend_down(requests_mock):
    requests_mock.get(f"{BACKEND}/v1/drivers/", status_code=401, json={"detail": "Invalid token."})
    with pytest.raises(CommandError):
        run()


def test_report_rejects_negative_days():
    with pytest.raises(CommandError):
        run("--days", "-1")
