import mongomock
import pytest
from fastapi.testclient import TestClient

import database
import main
from database import create_document
from schemas import Role, User as UserSchema
from security import create_access_token


@pytest.fixture(autouse=True)
def db(monkeypatch):
    fake = mongomock.MongoClient()["storefront_test"]
    monkeypatch.setattr(database, "db", fake)
    return fake


@pytest.fixture
def client():
    return TestClient(main.app)


def make_user(email="shopper@example.com", name="Shopper", role=Role.USER, **extra):
    return create_document("user", UserSchema(name=name, email=email, role=role, **extra))


def token_for(user):
    return create_access_token({"sub": str(user["_id"])})


@pytest.fixture
def admin():
    return make_user(email="admin@example.com", name="Admin", role=Role.ADMIN)


@pytest.fixture
def shopper():
    return make_user()


@pytest.fixture
def admin_token(admin):
    return token_for(admin)


@pytest.fixture
def shopper_token(shopper):
    return token_for(shopper)


def auth(token):
    return {"Authorization": f"Bearer {token}"} if token else {}


def gql(client, query, variables=None, token=None):
    response = client.post(
        "/api/graphql",
        json={"query": query, "variables": variables or {}},
        headers=auth(token),
    )
    assert response.status_code == 200, response.text
    return response.json()


def error_message(result):
    assert result.get("errors"), result
    return result["errors"][0]["message"]
