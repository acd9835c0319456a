import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from core.persistence import USERS, DocumentStore
from core.security import create_access_token, hash_password
from notifications.otp import OtpStore


@pytest.fixture
def store(tmp_path):
    return DocumentStore(str(tmp_path / "db"))


@pytest.fixture
def otp_store():
    return OtpStore(ttl_seconds=600)


@pytest.fixture
def client(store, otp_store):
    return TestClient(create_app(store=store, otp_store=otp_store))


def _make_user(store, email, role):
    user = store.create(
        USERS,
        {
            "name": email.split("@")[0],
            "email": email,
            "password": hash_password("secret1"),
            "phoneNumber": None,
            "isVerified": True,
            "role": role,
        },
    )
    return user, {"Authorization": f"Bearer {create_access_token(user['_id'], role)}"}


@pytest.fixture
def admin(store):
    return _make_user(store, "admin@shop.io", "admin")


@pytest.fixture
def admin_headers(admin):
    return admin[1]


@pytest.fixture
def customer(store):
    return _make_user(store, "ann@shop.io", "user")


@pytest.fixture
def user_headers(customer):
    return customer[1]
