import pytest

from api import create_app
from models.db_storage import DBStorage
from models.credential_store import CredentialStore


@pytest.fixture
def app():
    app = create_app("testing")
    yield app
    app.extensions["services"].shutdown()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return app.extensions["services"]


@pytest.fixture
def storage():
    storage = DBStorage("sqlite://")
    storage.reload()
    yield storage
    storage.dispose()


@pytest.fixture
def store(storage):
    return CredentialStore(storage)


def register(client, email="test@example.com", password="password123", name="Test User"):
    return client.post(
        "/api/v1/auth/register",
        json={"email": email, "password": password, "name": name},
    )


def auth_header(access_token):
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def user_tokens(client):
    """Register a user and return its token pair."""
    resp = register(client)
    assert resp.status_code == 201
    return resp.get_json()["data"]["tokens"]
