from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from gotrabandhus.core.config import Settings
from gotrabandhus.core.security import CredentialService, TokenService
from gotrabandhus.main import create_app
from gotrabandhus.services.auth_service import AuthService
from gotrabandhus.storage.memory_store import InMemoryUserStore

TEST_SECRET = "test-jwt-secret-key-for-testing-only"

ASHA = {
    "firstName": "Asha",
    "lastName": "Rao",
    "nickname": "ash",
    "email": "Asha@x.com",
    "password": "secret1",
    "phone": "123",
}

ASHA_PROFILE = {
    "currentCity": "Pune",
    "currentState": "MH",
    "currentCountry": "IN",
    "gotra": "G1",
    "pravara": "P1",
    "community": "C1",
    "primaryLanguage": "Marathi",
    "gender": "female",
}


class FakeClock:
    """Controllable clock for token expiry tests"""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture()
def settings():
    # Low bcrypt cost keeps the suite fast
    return Settings(
        STORAGE_BACKEND="memory",
        JWT_SECRET=TEST_SECRET,
        PASSWORD_HASH_ROUNDS=4,
        STORAGE_MONITOR_ENABLED=False,
        LOG_LEVEL="WARNING",
        _env_file=None,
    )


@pytest.fixture()
def store():
    return InMemoryUserStore()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def token_service(clock):
    return TokenService(TEST_SECRET, clock=clock)


@pytest.fixture()
def auth_service(store, token_service):
    return AuthService(store, CredentialService(rounds=4), token_service)


@pytest.fixture()
def app(settings, store):
    return create_app(settings, store=store)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def registered(client):
    """Register Asha and return the response payload"""
    response = client.post("/api/auth/register", json=ASHA)
    assert response.status_code == 201
    return response.json()
