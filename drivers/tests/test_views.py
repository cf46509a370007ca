from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse

from .conftest import BACKEND

DRIVER = {
    "id": 5,
    "uuid": "u-5",
    "first_name": "Иван",
    "last_name": "Петров",
    "phone_number": "+79001112233",
    "company_code": "ACME",
    "is_active": True,
    "license": {"issue_date": "2020-01-01", "expiry_date": "2020-02-01", "file": "/media/l.pdf"},
    "national_id_doc": None,
    "vehicle_license": None,
    "contracts": [],
}


def page_of(rows, count=None):
    return {"count": len(rows) if count is None else count, "next": None, "previous": None, "results": rows}


def test_pages_require_token(client):
    r = client.get(reverse("drivers:driver_list"))
    assert r.status_code == 302
    assert reverse("accounts:login") in r["Location"]
    assert "next=" in r["Location"]


def test_driver_list_renders_rows_and_pager(auth_client, requests_mock, companies):
    requests_mock.get(f"{BACKEND}/v1/drivers/", json=page_of([DRIVER], count=35))
    r = auth_client.get(reverse("drivers:driver_list") + "?page=2&company=ACME")
    assert r.status_code == 200
    html = r.content.decode()
    assert html.count('class="driver-row"') == 1
    assert "Иван Петров" in html
    assert "page=3" in html and "page=1" in html
    assert requests_mock.last_request.qs["page"] == ["2"]
    assert requests_mock.last_request.qs["company_code"] == ["acme"]


def test_driver_list_garbage_page_falls_back(auth_client, requests_mock, companies):
    requests_mock.get(f"{BACKEND}/v1/drivers/", json=page_of([]))
    r = auth_client.get(reverse("drivers:driver_list") + "?page=abc")
    assert r.status_code == 200
    assert requests_mock.last_request.qs["page"] == ["1"]
    assert 'class="lm-pager"' not in r.content.decode()


def test_driver_list_stale_page_shows_last_page(auth_client, requests_mock, companies):
    # 35 записей по 10: существуют страницы 1..4, дальше бэкенд отвечает 404
    def drivers(request, context):
        if request.qs["page"] in (["1"], ["4"]):
            return page_of([DRIVER], count=35)
        context.status_code = 404
        return {"detail": "Invalid page."}

    requests_mock.get(f"{BACKEND}/v1/drivers/", json=drivers)
    r = auth_client.get(reverse("drivers:driver_list") + "?page=99")
    assert r.status_code == 200
    html = r.content.decode()
    assert 'class="lm-pager"' in html
    assert "Иван Петров" in html
    assert r.context["pager"]["number"] == 4
    assert r.context["error"] is None
    assert requests_mock.last_request.qs["page"] == ["4"]


def test_driver_list_first_page_not_found_is_error(auth_client, requests_mock, companies):
    requests_mock.get(f"{BACKEND}/v1/drivers/", status_code=404, json={"detail": "Not found."})
    r = auth_client.get(reverse("drivers:driver_list"))
    assert r.status_code == 404


def test_revoked_token_sends_to_login(auth_client, requests_mock):
    requests_mock.get(f"{BACKEND}/v1/companies/", status_code=401, json={"detail": "Invalid token."})
    r = auth_client.get(reverse("drivers:driver_list"))
    assert r.status_code == 302
    assert reverse("accounts:login") in r["Location"]
    # токен выброшен: следующий запрос даже не доходит до бэкенда
    calls = requests_mock.call_count
    r2 = auth_client.get(reverse("drivers:driver_list"))
    assert r2.status_code == 302
    assert requests_mock.call_count == calls


def test_backend_failure_shows_error(auth_client, requests_mock, companies):
    requests_mock.get(f"{BACKEND}/v1/drivers/", status_code=500, text="boom")
    r = auth_client.get(reverse("drivers:driver_list"))
    assert r.status_code == 502
    assert "Сервер ответил 500" in r.content.decode()


def test_driver_detail_badges(auth_client, requests_mock):
    requests_mock.get(f"{BACKEND}/v1/drivers/5/", json=DRIVER)
    r = auth_client.get(reverse("drivers:driver_detail", args=[5]))
    assert r.status_code == 200
    html = r.content.decode()
    assert "doc-expired" in html
    assert html.count("doc-missing") == 2


def test_driver_detail_not_found(auth_client, requests_mock):
    requests_mock.get(f"{BACKEND}/v1/drivers/404/", status_code=404, json={"detail": "Не найдено."})
    r = auth_client.get(reverse("drivers:driver_detail", args=[404]))
    assert r.status_code == 404
    assert "Не найдено." in r.content.decode()


def create_post_data(**extra):
    data = {
        "driver-first_name": "Анна",
        "driver-last_name": "Смирнова",
        "driver-phone_number": "+7 900 000 00 00",
        "driver-company_code": "ACME",
        "driver-is_active": "on",
        "contracts-TOTAL_FORMS": "1",
        "contracts-INITIAL_FORMS": "0",
        "contracts-MIN_NUM_FORMS": "0",
        "contracts-MAX_NUM_FORMS": "10",
    }
    data.update(extra)
    return data


def test_create_driver_redirects_to_profile(auth_client, requests_mock, companies):
    requests_mock.post(f"{BACKEND}/v1/drivers/", json={"id": 77, "first_name": "Анна", "last_name": "Смирнова"})
    requests_mock.post(f"{BACKEND}/v1/licenses/", json={"id": 1})

    data = create_post_data(**{
        "license-file": SimpleUploadedFile("lic.pdf", b"%PDF", content_type="application/pdf"),
        "license-expiry_date": "2030-01-01",
    })
    r = auth_client.post(reverse("drivers:driver_create"), data)
    assert r.status_code == 302
    assert r["Location"] == reverse("drivers:driver_detail", args=[77])

    driver_req = next(h for h in requests_mock.request_history if h.path.endswith("/v1/drivers/"))
    payload = driver_req.json()
    assert payload["phone_number"] == "+79000000000"
    assert payload["is_active"] is True
    assert any(h.path.endswith("/v1/licenses/") for h in requests_mock.request_history)


def test_create_driver_document_without_expiry_is_invalid(auth_client, requests_mock, companies):
    data = create_post_data(**{"license-file": SimpleUploadedFile("lic.pdf", b"%PDF")})
    r = auth_client.post(reverse("drivers:driver_create"), data)
    assert r.status_code == 200
    assert "Укажите срок действия документа." in r.content.decode()
    assert not any(h.method == "POST" for h in requests_mock.request_history)


def test_create_driver_backend_validation(auth_client, requests_mock, companies):
    requests_mock.post(f"{BACKEND}/v1/drivers/", status_code=400,
                       json={"phone_number": ["Номер уже используется"]})
    r = auth_client.post(reverse("drivers:driver_create"), create_post_data())
    assert r.status_code == 200
    assert "Номер уже используется" in r.content.decode()


def test_edit_keeps_uuid(auth_client, requests_mock, companies):
    requests_mock.get(f"{BACKEND}/v1/drivers/5/", json=DRIVER)
    requests_mock.put(f"{BACKEND}/v1/drivers/5/", json=DRIVER)
    data = {
        "driver-first_name": "Иван",
        "driver-last_name": "Петров",
        "driver-phone_number": "+79001112233",
        "driver-company_code": "ACME",
    }
    r = auth_client.post(reverse("drivers:driver_edit", args=[5]), data)
    assert r.status_code == 302
    put = next(h for h in requests_mock.request_history if h.method == "PUT")
    assert put.json()["uuid"] == "u-5"
    assert put.json()["is_active"] is False


def test_delete_driver(auth_client, requests_mock):
    requests_mock.delete(f"{BACKEND}/v1/drivers/5/", status_code=204)
    r = auth_client.post(reverse("drivers:driver_delete", args=[5]))
    assert r.status_code == 302
    assert r["Location"] == reverse("drivers:driver_list")


def test_delete_requires_post(auth_client):
    r = auth_client.get(reverse("drivers:driver_delete", args=[5]))
    assert r.status_code == 405


def test_export_download(auth_client, requests_mock, companies):
    requests_mock.get(
        f"{BACKEND}/v1/drivers/export/",
        content=b"PK\x03\x04",
        headers={"Content-Disposition": 'attachment; filename="acme.xlsx"'},
    )
    r = auth_client.get(reverse("drivers:driver_export") + "?company=ACME")
    assert r.status_code == 200
    assert r["Content-Disposition"] == 'attachment; filename="acme.xlsx"'
    assert r.content == b"PK\x03\x04"


def test_contract_list(auth_client, requests_mock):
    requests_mock.get(f"{BACKEND}/v1/contracts/", json=page_of([
        {"id": 1, "driver_id": 5, "contract_number": "C-1", "expiry_date": "2000-01-01"},
    ]))
    r = auth_client.get(reverse("drivers:contract_list"))
    assert r.status_code == 200
    html = r.content.decode()
    assert "C-1" in html and "badge-danger" in html


def test_contract_list_stale_page_falls_back_to_first(auth_client, requests_mock):
    def contracts(request, context):
        if request.qs["page"] == ["1"]:
            return page_of([{"id": 1, "driver_id": 5, "contract_number": "C-1"}])
        context.status_code = 404
        return {"detail": "Invalid page."}

    requests_mock.get(f"{BACKEND}/v1/contracts/", json=contracts)
    r = auth_client.get(reverse("drivers:contract_list") + "?page=7")
    assert r.status_code == 200
    assert "C-1" in r.content.decode()
    assert r.context["pager"]["number"] == 1


def test_contract_upload(auth_client, requests_mock):
    requests_mock.post(f"{BACKEND}/v1/contracts/", json={"id": 3})
    r = auth_client.post(reverse("drivers:contract_upload"), {
        "driver_id": "5",
        "contract_number": "C-7",
        "expiry_date": "2030-12-31",
        "file": SimpleUploadedFile("c.pdf", b"%PDF"),
    })
    assert r.status_code == 302
    assert r["Location"] == reverse("drivers:driver_detail", args=[5])
    assert 'name="driver_id"' in requests_mock.last_request.text


def test_upload_list_and_create(auth_client, requests_mock, companies):
    requests_mock.get(f"{BACKEND}/v1/data-imports/", json=page_of([
        {"id": 9, "company": 1, "company_code": "ACME", "status": "completed",
         "from_date": "2025-01-01", "to_date": "2025-01-31"},
    ]))
    r = auth_client.get(reverse("drivers:trip_uploads"))
    assert r.status_code == 200
    assert r.content.decode().count('class="upload-row"') == 1
    assert requests_mock.last_request.qs["file_type"] == ["trips"]

    requests_mock.post(f"{BACKEND}/v1/data-imports/", json={"id": 10})
    r2 = auth_client.post(reverse("drivers:upload_create"), {
        "company": "1",
        "file_type": "trips",
        "file": SimpleUploadedFile("t.xlsx", b"x"),
        "from_date": "2025-02-01",
        "to_date": "2025-02-28",
    })
    assert r2.status_code == 302
    assert r2["Location"] == reverse("drivers:trip_uploads")


def test_upload_period_validation(auth_client, requests_mock, companies):
    r = auth_client.post(reverse("drivers:upload_create"), {
        "company": "1",
        "file_type": "payments",
        "file": SimpleUploadedFile("p.xlsx", b"x"),
        "from_date": "2025-03-01",
        "to_date": "2025-02-01",
    })
    assert r.status_code == 200
    assert "Конец периода раньше начала." in r.content.decode()


def test_upload_download_redirect(auth_client, requests_mock):
    requests_mock.get(f"{BACKEND}/v1/data-imports/9/", json={"id": 9, "file": "/media/uploads/p.xlsx"})
    r = auth_client.get(reverse("drivers:upload_download", args=[9]))
    assert r.status_code == 302
    assert r["Location"] == "http://backend.test/media/uploads/p.xlsx"


def test_upload_delete_returns_to_next(auth_client, requests_mock):
    requests_mock.delete(f"{BACKEND}/v1/data-imports/9/", status_code=204)
    back = reverse("drivers:trip_uploads") + "?page=2"
    r = auth_client.post(reverse("drivers:upload_delete", args=[9]), {"next": back})
    assert r.status_code == 302
    assert r["Location"] == back


def test_payment_records_ordering_whitelist(auth_client, requests_mock, companies):
    requests_mock.get(f"{BACKEND}/v1/payment-records/", json=page_of([
        {"driver_first_name": "Иван", "driver_last_name": "Петров", "total_revenue": "100", "net_earnings": "80.5"},
    ]))
    r = auth_client.get(reverse("drivers:payment_records") + "?ordering=drop_table")
    assert r.status_code == 200
    assert "80.50" in r.content.decode()
    assert requests_mock.last_request.qs["ordering"] == ["-created_at"]


def test_trip_records_for_upload(auth_client, requests_mock, companies):
    requests_mock.get(f"{BACKEND}/v1/trip-records/", json=page_of([]))
    r = auth_client.get(reverse("drivers:trip_records") + "?upload=9")
    assert r.status_code == 200
    assert requests_mock.last_request.qs["file_upload"] == ["9"]


def test_dashboard(auth_client, requests_mock):
    requests_mock.get(f"{BACKEND}/v1/data-imports/stats/", json={"by_type": [{"file_type": "payments", "count": 3}]})
    requests_mock.get(f"{BACKEND}/v1/payment-records/summary/", json={"total_net_earnings": "12.3"})
    requests_mock.get(f"{BACKEND}/v1/trip-records/summary/", json={})
    requests_mock.get(f"{BACKEND}/v1/trip-records/stats/", json={"top_drivers": [
        {"driver_id": 5, "driver_first_name": "Иван", "driver_last_name": "Петров", "trips": 4, "fare": "99"},
    ]})
    requests_mock.get(f"{BACKEND}/v1/payment-records/timeseries/", json=[])
    requests_mock.get(f"{BACKEND}/v1/trip-records/timeseries/", json=[])

    r = auth_client.get(reverse("drivers:dashboard"))
    assert r.status_code == 200
    html = r.content.decode()
    assert "12.30" in html
    assert "Иван Петров" in html
    assert 'id="payments-chart-data"' in html


def test_server_error_handler(rf):
    from drivers.views import server_error

    request = rf.get("/")
    request.session = {}
    r = server_error(request)
    assert r.status_code == 500
    assert "Что-то пошло не так" in r.content.decode()
