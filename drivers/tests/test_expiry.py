import datetime as dt

import pytest

from drivers.services.expiry import (
    STATUS_EXPIRED,
    STATUS_EXPIRING_SOON,
    STATUS_MISSING,
    STATUS_VALID,
    document_status,
    driver_documents,
    is_expired,
    is_expiring_soon,
    parse_date,
    problem_documents,
)

TODAY = dt.date(2025, 6, 15)


@pytest.mark.parametrize("value,expected", [
    ("2025-06-15", dt.date(2025, 6, 15)),
    ("2025-06-15T10:00:00Z", dt.date(2025, 6, 15)),
    (dt.datetime(2025, 6, 15, 23, 59), dt.date(2025, 6, 15)),
    ("", None),
    (None, None),
    ("not a date", None),
])
def test_parse_date(value, expected):
    assert parse_date(value) == expected


def test_expired_is_strictly_before_today():
    assert is_expired("2025-06-14", TODAY)
    assert not is_expired("2025-06-15", TODAY)
    assert not is_expired(None, TODAY)


def test_expiring_soon_window_inclusive():
    assert is_expiring_soon("2025-06-15", TODAY)
    assert is_expiring_soon("2025-07-15", TODAY)      # ровно +30
    assert not is_expiring_soon("2025-07-16", TODAY)
    assert not is_expiring_soon("2025-06-14", TODAY)  # уже просрочен


@pytest.mark.parametrize("expiry,status", [
    (None, STATUS_MISSING),
    ("2025-01-01", STATUS_EXPIRED),
    ("2025-06-20", STATUS_EXPIRING_SOON),
    ("2026-01-01", STATUS_VALID),
])
def test_document_status(expiry, status):
    assert document_status(expiry, TODAY) == status


def make_driver():
    return {
        "id": 7,
        "license": {"expiry_date": "2025-05-01"},
        "national_id_doc": None,
        "vehicle_license": {"expiry_date": "2025-07-01"},
        "contracts": [
            {"contract_number": "C-1", "expiry_date": "2027-01-01"},
            {"contract_number": "C-2", "expiry_date": "2025-06-01"},
        ],
    }


def test_driver_documents_lists_missing_singles():
    rows = driver_documents(make_driver(), TODAY)
    by_kind = {(r["kind"], r["label"]): r["status"] for r in rows}
    assert len(rows) == 5
    assert [r["status"] for r in rows if r["kind"] == "national_id_doc"] == [STATUS_MISSING]
    assert by_kind[("contract", "Договор C-1")] == STATUS_VALID


def test_problem_documents_respects_days():
    driver = make_driver()
    kinds = [(r["kind"], r["status"]) for r in problem_documents(driver, days=30, today=TODAY)]
    assert ("license", STATUS_EXPIRED) in kinds
    assert ("vehicle_license", STATUS_EXPIRING_SOON) in kinds
    assert ("contract", STATUS_EXPIRED) in kinds
    assert all(k != "national_id_doc" for k, _ in kinds)

    narrow = problem_documents(driver, days=5, today=TODAY)
    assert all(r["status"] == STATUS_EXPIRED for r in narrow)
