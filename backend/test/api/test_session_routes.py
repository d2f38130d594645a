"""
API tests for the session endpoints.

Tests:
1. Create, list and fetch sessions
2. Join rules surface as 404/400 with a detail message
3. Leave, character binding, status, deletion and history endpoints
"""

import pytest
from fastapi.testclient import TestClient

from tavern.api.app import create_app


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


def _create(client, name="Crypt of Bones", owner="Gemma", settings=None):
    body = {"name": name, "owner_name": owner}
    if settings is not None:
        body["settings"] = settings
    response = client.post("/api/sessions", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def _auth(created_or_joined):
    return {"X-Player-Token": created_or_joined["player_token"]}


class TestSessionCrud:

    def test_create_and_get(self, client):
        created = _create(client)

        assert created["session"]["status"] == "waiting"
        assert created["session"]["owner_player_id"] == created["owner_player_id"]

        response = client.get(f"/api/sessions/{created['session_id']}")
        assert response.status_code == 200
        detail = response.json()
        assert detail["participant_count"] == 1
        assert detail["players"][0]["role"] == "owner"

    def test_list(self, client):
        created = _create(client, settings={"max_participants": 4})

        response = client.get("/api/sessions")

        assert response.status_code == 200
        assert response.json() == [{
            "id": created["session_id"],
            "name": "Crypt of Bones",
            "participant_count": 1,
            "max_participants": 4,
            "status": "waiting",
            "created_at": response.json()[0]["created_at"],
        }]

    def test_get_unknown(self, client):
        response = client.get("/api/sessions/missing")
        assert response.status_code == 404
        assert "missing" in response.json()["detail"]

    def test_create_validation(self, client):
        assert client.post("/api/sessions", json={"name": "", "owner_name": "Gemma"}).status_code == 422
        response = client.post(
            "/api/sessions",
            json={"name": "Crypt", "owner_name": "Gemma", "settings": {"dice_visibility": "secret"}},
        )
        assert response.status_code == 422


class TestJoin:

    def test_join(self, client):
        created = _create(client)

        response = client.post(
            f"/api/sessions/{created['session_id']}/join",
            json={"player_name": "Valeros", "character_data": {"name": "Valeros"}},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["session"]["participant_count"] == 2
        assert body["session"]["characters"][0]["player_id"] == body["player_id"]

    def test_join_unknown(self, client):
        response = client.post("/api/sessions/missing/join", json={"player_name": "Valeros"})
        assert response.status_code == 404

    def test_join_full(self, client):
        created = _create(client, settings={"max_participants": 1})

        response = client.post(f"/api/sessions/{created['session_id']}/join", json={"player_name": "Valeros"})

        assert response.status_code == 400
        assert "full" in response.json()["detail"]

    def test_join_started_session(self, client):
        created = _create(client)
        client.post(
            f"/api/sessions/{created['session_id']}/status",
            json={"status": "active"},
            headers=_auth(created),
        )

        response = client.post(f"/api/sessions/{created['session_id']}/join", json={"player_name": "Valeros"})

        assert response.status_code == 400
        assert "not accepting" in response.json()["detail"]

    def test_token_only_in_own_response(self, client):
        created = _create(client)
        joined = client.post(
            f"/api/sessions/{created['session_id']}/join", json={"player_name": "Valeros"}
        ).json()

        assert joined["player_token"] and joined["player_token"] != created["player_token"]
        detail = client.get(f"/api/sessions/{created['session_id']}").json()
        assert all("player_token" not in player for player in detail["players"])
        assert created["player_token"] not in str(detail)


class TestPlayers:

    def _join(self, client, session_id, name="Valeros"):
        response = client.post(f"/api/sessions/{session_id}/join", json={"player_name": name})
        return response.json()

    def test_leave(self, client):
        created = _create(client)
        joined = self._join(client, created["session_id"])

        response = client.delete(
            f"/api/sessions/{created['session_id']}/players/{joined['player_id']}",
            headers=_auth(joined),
        )

        assert response.status_code == 204
        assert client.get(f"/api/sessions/{created['session_id']}").json()["participant_count"] == 1

    def test_leave_requires_token(self, client):
        created = _create(client)
        joined = self._join(client, created["session_id"])
        url = f"/api/sessions/{created['session_id']}/players/{joined['player_id']}"

        assert client.delete(url).status_code == 401
        assert client.delete(url, headers={"X-Player-Token": "forged"}).status_code == 401
        # The owner cannot remove someone else either
        assert client.delete(url, headers=_auth(created)).status_code == 403
        assert client.get(f"/api/sessions/{created['session_id']}").json()["participant_count"] == 2

    def test_owner_cannot_leave(self, client):
        created = _create(client)
        response = client.delete(
            f"/api/sessions/{created['session_id']}/players/{created['owner_player_id']}",
            headers=_auth(created),
        )
        assert response.status_code == 400

    def test_bind_character(self, client):
        created = _create(client)
        joined = self._join(client, created["session_id"])
        url = f"/api/sessions/{created['session_id']}/players/{joined['player_id']}/character"

        first = client.put(url, json={"character_data": {"hp": 12}}, headers=_auth(joined))
        second = client.put(url, json={"character_data": {"hp": 4}}, headers=_auth(joined))

        assert first.status_code == 200
        assert first.json()["created"] is True
        assert second.json()["created"] is False
        assert second.json()["character_data"] == {"hp": 4}

    def test_bind_character_for_another_player(self, client):
        created = _create(client)
        valeros = self._join(client, created["session_id"], "Valeros")
        seoni = self._join(client, created["session_id"], "Seoni")

        response = client.put(
            f"/api/sessions/{created['session_id']}/players/{valeros['player_id']}/character",
            json={"character_data": {"hp": 1}},
            headers=_auth(seoni),
        )

        assert response.status_code == 403

    def test_bind_character_requires_object(self, client):
        created = _create(client)
        joined = self._join(client, created["session_id"])

        response = client.put(
            f"/api/sessions/{created['session_id']}/players/{joined['player_id']}/character",
            json={"character_data": ["not", "an", "object"]},
            headers=_auth(joined),
        )

        assert response.status_code == 422

    def test_token_from_another_session(self, client):
        created = _create(client)
        other = _create(client, name="Other", owner="Bob")
        joined = self._join(client, created["session_id"])

        response = client.put(
            f"/api/sessions/{created['session_id']}/players/{joined['player_id']}/character",
            json={"character_data": {"hp": 1}},
            headers=_auth(other),
        )

        assert response.status_code == 401


class TestStatusAndDelete:

    def test_status_change(self, client):
        created = _create(client)

        response = client.post(
            f"/api/sessions/{created['session_id']}/status",
            json={"status": "active"},
            headers=_auth(created),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "active"

    def test_status_change_by_non_owner(self, client):
        created = _create(client)
        joined = client.post(f"/api/sessions/{created['session_id']}/join", json={"player_name": "Valeros"})

        response = client.post(
            f"/api/sessions/{created['session_id']}/status",
            json={"status": "active"},
            headers=_auth(joined.json()),
        )

        assert response.status_code == 403

    def test_status_change_without_token(self, client):
        created = _create(client)
        url = f"/api/sessions/{created['session_id']}/status"

        assert client.post(url, json={"status": "ended"}).status_code == 401
        # A public player id is not a credential
        response = client.post(
            url,
            json={"player_id": created["owner_player_id"], "status": "ended"},
            headers={"X-Player-Token": created["owner_player_id"]},
        )
        assert response.status_code == 401
        assert client.get(f"/api/sessions/{created['session_id']}").json()["status"] == "waiting"

    def test_backward_transition(self, client):
        created = _create(client)
        url = f"/api/sessions/{created['session_id']}/status"
        client.post(url, json={"status": "ended"}, headers=_auth(created))

        response = client.post(url, json={"status": "waiting"}, headers=_auth(created))

        assert response.status_code == 400

    def test_delete(self, client):
        created = _create(client)
        session_id = created["session_id"]
        joined = client.post(f"/api/sessions/{session_id}/join", json={"player_name": "Valeros"}).json()

        assert client.delete(f"/api/sessions/{session_id}", headers=_auth(joined)).status_code == 403
        response = client.delete(f"/api/sessions/{session_id}", headers=_auth(created))

        assert response.status_code == 204
        assert client.get(f"/api/sessions/{session_id}").status_code == 404

    def test_anonymous_delete_is_refused(self, client):
        created = _create(client)
        session_id = created["session_id"]
        owner_player_id = client.get(f"/api/sessions/{session_id}").json()["owner_player_id"]

        response = client.delete(f"/api/sessions/{session_id}", params={"player_id": owner_player_id})

        assert response.status_code == 401
        assert client.get(f"/api/sessions/{session_id}").status_code == 200

    def test_history_endpoints(self, client):
        created = _create(client)
        session_id = created["session_id"]

        assert client.get(f"/api/sessions/{session_id}/chat").json() == []
        assert client.get(f"/api/sessions/{session_id}/dice-rolls").json() == []
        assert client.get("/api/sessions/missing/chat").status_code == 404
        assert client.get(f"/api/sessions/{session_id}/chat", params={"limit": 0}).status_code == 422

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["database"] == "ok"


class TestPrivateDiceHistory:

    @pytest.fixture
    def private_session(self, client):
        created = _create(client, settings={"dice_visibility": "private"})
        joined = client.post(
            f"/api/sessions/{created['session_id']}/join", json={"player_name": "Valeros"}
        ).json()
        return created, joined

    async def _roll(self, client, session_id, player_id):
        events = client.app.state.session_events
        await events.roll_dice(session_id, player_id, "1d20")

    def _roll_as(self, client, session_id, player_id):
        client.portal.call(self._roll, client, session_id, player_id)

    def test_public_owner_id_does_not_reveal_private_rolls(self, client, private_session):
        created, joined = private_session
        session_id = created["session_id"]
        self._roll_as(client, session_id, joined["player_id"])
        owner_player_id = client.get(f"/api/sessions/{session_id}").json()["owner_player_id"]
        url = f"/api/sessions/{session_id}/dice-rolls"

        assert client.get(url, params={"player_id": owner_player_id}).json() == []
        assert client.get(url, headers={"X-Player-Token": owner_player_id}).status_code == 401

    def test_token_holders_see_their_rolls(self, client, private_session):
        created, joined = private_session
        session_id = created["session_id"]
        self._roll_as(client, session_id, joined["player_id"])
        url = f"/api/sessions/{session_id}/dice-rolls"

        owner_view = client.get(url, headers=_auth(created)).json()
        roller_view = client.get(url, headers=_auth(joined)).json()

        assert [roll["player_id"] for roll in owner_view] == [joined["player_id"]]
        assert [roll["player_id"] for roll in roller_view] == [joined["player_id"]]
