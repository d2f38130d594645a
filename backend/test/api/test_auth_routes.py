"""API tests for registration, login and the current-user endpoint."""

import pytest
from fastapi.testclient import TestClient

from tavern.api.app import create_app


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client


def _register(client, email="seelah@example.com", password="iomedae1", name="Seelah"):
    return client.post("/api/auth/register", json={"name": name, "email": email, "password": password})


class TestRegister:

    def test_register_returns_token(self, client):
        response = _register(client)

        assert response.status_code == 201
        body = response.json()
        assert body["token"]
        assert body["user"]["email"] == "seelah@example.com"
        assert body["user"]["provider"] == "email"
        assert "password_hash" not in body["user"]

    def test_email_is_normalised(self, client):
        response = _register(client, email="Seelah@Example.COM")
        assert response.json()["user"]["email"] == "seelah@example.com"

    def test_duplicate_email(self, client):
        _register(client)
        response = _register(client, email="SEELAH@example.com")

        assert response.status_code == 409
        assert response.json()["detail"] == "User already exists with this email"

    def test_short_password(self, client):
        response = _register(client, password="abc")
        assert response.status_code == 422

    def test_password_over_bcrypt_limit(self, client):
        response = _register(client, password="x" * 80)

        assert response.status_code == 422
        assert "72 bytes" in response.json()["detail"]

    def test_password_at_bcrypt_limit(self, client):
        assert _register(client, password="x" * 72).status_code == 201

    def test_blank_name(self, client):
        assert _register(client, name="  ").status_code == 422

    def test_invalid_email(self, client):
        assert _register(client, email="not-an-email").status_code == 422


class TestLogin:

    def test_login(self, client):
        _register(client)

        response = client.post("/api/auth/login", json={"email": "seelah@example.com", "password": "iomedae1"})

        assert response.status_code == 200
        assert response.json()["user"]["name"] == "Seelah"

    def test_wrong_password(self, client):
        _register(client)
        response = client.post("/api/auth/login", json={"email": "seelah@example.com", "password": "wrong-one"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_unknown_user(self, client):
        response = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "whatever"})
        assert response.status_code == 401


class TestMe:

    def test_me(self, client):
        token = _register(client).json()["token"]

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["email"] == "seelah@example.com"

    def test_me_requires_token(self, client):
        assert client.get("/api/auth/me").status_code == 401

    def test_me_rejects_bad_token(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401
