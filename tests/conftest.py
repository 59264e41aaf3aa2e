from __future__ import annotations

import os

# must be set before `models` creates the storage singleton
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "testing"

import pytest

from api import create_app
from models import storage
from models.credential_store import CredentialStore
from models.refresh_token import RefreshToken
from models.user import User
from services.auth import AuthService
from services.users import UserService
from utils.tokens import TokenCodec, TokenSettings


@pytest.fixture(autouse=True)
def _clean_db():
    yield
    session = storage.get_session()
    session.rollback()
    session.query(RefreshToken).delete()
    session.query(User).delete()
    session.commit()
    storage.close()


@pytest.fixture
def app():
    return create_app("testing")


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def settings() -> TokenSettings:
    return TokenSettings(
        access_secret="test-access-secret-0123456789abcdef",
        refresh_secret="test-refresh-secret-0123456789abcdef",
    )


@pytest.fixture
def codec(settings) -> TokenCodec:
    return TokenCodec(settings)


@pytest.fixture
def store() -> CredentialStore:
    return CredentialStore()


@pytest.fixture
def auth_service(store, codec) -> AuthService:
    return AuthService(store, codec)


@pytest.fixture
def user_service(store) -> UserService:
    return UserService(store)

