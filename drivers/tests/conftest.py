# LogiMS/drivers/tests/conftest.py
import pytest
from django.conf import settings
from django.core.cache import cache

BACKEND = "http://backend.test/api"
TOKEN = "test-token"


@pytest.fixture(autouse=True)
def _db(db):
    """Автоматически включаем БД для всех тестов в этом пакете."""
    pass


@pytest.fixture(autouse=True)
def backend_settings(settings):
    """Бэкенд по фиктивному адресу и без повторов: requests_mock ловит всё."""
    settings.BACKEND_API_URL = BACKEND
    settings.BACKEND_RETRIES = 0
    return settings


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


def sign_in(client, token=TOKEN, username="operator"):
    """Кладём токен в подписанную cookie-сессию тестового клиента."""
    session = client.session
    session[settings.BACKEND_TOKEN_SESSION_KEY] = token
    session["backend_username"] = username
    session.save()
    client.cookies[settings.SESSION_COOKIE_NAME] = session.session_key
    return client


@pytest.fixture
def auth_client(client):
    """Клиент с токеном бэкенда в сессии."""
    return sign_in(client)


@pytest.fixture
def backend_client():
    from drivers.services.backend import BackendClient

    return BackendClient(token=TOKEN)


@pytest.fixture
def companies(requests_mock):
    """Справочник компаний (нужен почти каждой странице с фильтрами)."""
    data = {"count": 2, "next": None, "previous": None, "results": [
        {"id": 1, "code": "ACME", "name": "Acme Logistics"},
        {"id": 2, "code": "FAST", "name": "Fast Cargo"},
    ]}
    requests_mock.get(f"{BACKEND}/v1/companies/", json=data)
    return data["results"]
