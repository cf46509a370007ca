import pytest
from django.conf import settings
from django.core.cache import cache

BACKEND = "http://backend.test/api"


@pytest.fixture(autouse=True)
def _db(db):
    pass


@pytest.fixture(autouse=True)
def backend_settings(settings):
    settings.BACKEND_API_URL = BACKEND
    settings.BACKEND_RETRIES = 0
    cache.clear()
    return settings


@pytest.fixture
def signed_in_client(client):
    """Клиент с токеном бэкенда в подписанной cookie-сессии."""
    session = client.session
    session[settings.BACKEND_TOKEN_SESSION_KEY] = "abc123"
    session["backend_username"] = "operator"
    session.save()
    client.cookies[settings.SESSION_COOKIE_NAME] = session.session_key
    return client
