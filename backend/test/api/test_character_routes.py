"""API tests for the character library endpoints."""

import pytest
from fastapi.testclient import TestClient

from tavern.api.app import create_app


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client


def _auth_headers(client, email):
    response = client.post(
        "/api/auth/register",
        json={"name": email.split("@")[0], "email": email, "password": "secret-pass"},
    )
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def alice(client):
    return _auth_headers(client, "alice@example.com")


@pytest.fixture
def bob(client):
    return _auth_headers(client, "bob@example.com")


class TestCharacterLibrary:

    def test_requires_auth(self, client):
        assert client.get("/api/characters").status_code == 401
        assert client.post("/api/characters", json={"character_data": {}}).status_code == 401

    def test_create_and_list(self, client, alice):
        response = client.post(
            "/api/characters",
            json={"character_data": {"name": "Ezren", "class": "Wizard", "level": 1}},
            headers=alice,
        )

        assert response.status_code == 201
        assert response.json()["name"] == "Ezren"

        listed = client.get("/api/characters", headers=alice).json()
        assert [c["name"] for c in listed] == ["Ezren"]
        assert listed[0]["character_data"]["class"] == "Wizard"

    def test_import(self, client, alice):
        response = client.post(
            "/api/characters/import",
            json={"characters": [{"name": "Kyra"}, {"name": "Merisiel"}, {"class": "Rogue"}]},
            headers=alice,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["imported"] == 3
        assert [c["name"] for c in body["characters"]] == ["Kyra", "Merisiel", "Unnamed Character"]

    def test_import_rejects_bad_entries(self, client, alice):
        assert client.post("/api/characters/import", json={"characters": []}, headers=alice).status_code == 422
        response = client.post(
            "/api/characters/import",
            json={"characters": [{"name": "Kyra"}, "not-an-object"]},
            headers=alice,
        )
        assert response.status_code == 422
        assert client.get("/api/characters", headers=alice).json() == []

    def test_get_replace_delete(self, client, alice):
        created = client.post("/api/characters", json={"character_data": {"name": "Amiri"}}, headers=alice).json()
        url = f"/api/characters/{created['id']}"

        assert client.get(url, headers=alice).json()["name"] == "Amiri"

        replaced = client.put(url, json={"character_data": {"name": "Amiri", "level": 2}}, headers=alice)
        assert replaced.status_code == 200
        assert replaced.json()["character_data"] == {"name": "Amiri", "level": 2}

        assert client.delete(url, headers=alice).status_code == 204
        assert client.get(url, headers=alice).status_code == 404

    def test_other_users_characters_are_invisible(self, client, alice, bob):
        created = client.post("/api/characters", json={"character_data": {"name": "Amiri"}}, headers=alice).json()
        url = f"/api/characters/{created['id']}"

        assert client.get(url, headers=bob).status_code == 404
        assert client.put(url, json={"character_data": {}}, headers=bob).status_code == 404
        assert client.delete(url, headers=bob).status_code == 404
        assert client.get("/api/characters", headers=bob).json() == []
