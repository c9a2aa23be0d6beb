"""
Tests for API layer.

Tests:
- Game lifecycle via HTTP
- Action submission and bot turns
- Recommendations, training records, weights
- Error handling
"""

import pytest
from fastapi.testclient import TestClient

from ..api.app import create_app
from ..api.service import APIService
from ..session import SessionManager
from .test_neural import weights_document


SEATS = [
    {"player_id": "human", "name": "Human", "nation": "fighter"},
    {"player_id": "bot1", "name": "Bot", "nation": "magic", "is_human": False},
]


@pytest.fixture
def service():
    """Service with a small bot budget."""
    return APIService(session_manager=SessionManager(bot_iterations=5), mcts_iterations=10)


@pytest.fixture
def client(service):
    # Requests and WebSockets share one event loop
    with TestClient(create_app(service)) as client:
        yield client


@pytest.fixture
def game(client):
    response = client.post("/api/v1/games", json={"seats": SEATS, "seed": 42})
    assert response.status_code == 200
    return response.json()


class TestGames:
    """Create / get / list / end."""

    def test_create_game(self, game):
        assert game["status"] == "active"
        assert game["turn"] == 1
        assert game["phase"] == "action"
        assert game["acting_player_id"] == "human"
        assert not game["is_bot_turn"]
        assert len(game["state"]["players"]) == 2

    def test_bot_first_seat_plays_on_create(self, client):
        seats = [SEATS[1], SEATS[0]]

        game = client.post("/api/v1/games", json={"seats": seats, "seed": 1}).json()

        assert game["acting_player_id"] == "human"

    def test_get_and_list(self, client, game):
        response = client.get(f"/api/v1/games/{game['game_id']}")
        assert response.status_code == 200
        assert response.json()["game_id"] == game["game_id"]

        listing = client.get("/api/v1/games").json()
        assert listing["games"] == [game["game_id"]]
        assert listing["count"] == 1

    def test_end_game(self, client, game):
        response = client.delete(f"/api/v1/games/{game['game_id']}")
        assert response.json() == {"success": True, "game_id": game["game_id"]}

        response = client.get(f"/api/v1/games/{game['game_id']}")
        assert response.status_code == 404
        assert response.json()["error_code"] == "GAME_NOT_FOUND"

    def test_unknown_game(self, client):
        response = client.get("/api/v1/games/missing/legal-actions")

        assert response.status_code == 404
        assert response.json()["error_code"] == "GAME_NOT_FOUND"

    def test_duplicate_player_ids(self, client):
        seats = [SEATS[0], dict(SEATS[0], name="Twin")]

        response = client.post("/api/v1/games", json={"seats": seats})

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_invalid_body(self, client):
        response = client.post("/api/v1/games", json={"seats": []})

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"


class TestActions:
    """Submitting actions."""

    def test_legal_actions(self, client, game):
        body = client.get(f"/api/v1/games/{game['game_id']}/legal-actions").json()

        assert body["player_id"] == "human"
        assert body["count"] == len(body["actions"])
        assert body["actions"][0]["type"] == "end_turn"

    def test_end_turn_runs_bots(self, client, game):
        response = client.post(
            f"/api/v1/games/{game['game_id']}/actions",
            json={"action": {"type": "end_turn", "player_id": "human"}},
        )

        body = response.json()
        assert response.status_code == 200
        assert body["applied"]
        assert body["bot_actions"] or body["forced_actions"]
        if body["game"]["winner_id"] is None:
            assert body["game"]["acting_player_id"] == "human"

    def test_without_bots(self, client, game):
        body = client.post(
            f"/api/v1/games/{game['game_id']}/actions",
            json={"action": {"type": "end_turn", "player_id": "human"}, "run_bots": False},
        ).json()

        assert body["applied"]
        assert body["game"]["is_bot_turn"]

        body = client.post(f"/api/v1/games/{game['game_id']}/bots").json()
        assert body["bot_actions"] or body["forced_actions"]

    def test_attack(self, client, game):
        human = game["state"]["players"][0]
        sword = next(c for c in human["hand"] if c["catalog_id"] == "wpn_iron_sword")

        body = client.post(
            f"/api/v1/games/{game['game_id']}/actions",
            json={
                "action": {
                    "type": "attack",
                    "player_id": "human",
                    "card_ids": [sword["card_id"]],
                    "target_id": "bot1",
                },
                "run_bots": False,
            },
        ).json()

        assert body["applied"]
        bot = body["game"]["state"]["players"][1]
        assert bot["hp"] == bot["max_hp"] - 10

    def test_rejected_action_is_not_an_error(self, client, game):
        response = client.post(
            f"/api/v1/games/{game['game_id']}/actions",
            json={"action": {"type": "bank", "player_id": "human", "amount": 100_000}},
        )

        body = response.json()
        assert response.status_code == 200
        assert not body["applied"]
        assert body["reason_code"] == "INSUFFICIENT_GOLD"
        assert body["game"]["state"] == game["state"]

    def test_out_of_turn(self, client, game):
        body = client.post(
            f"/api/v1/games/{game['game_id']}/actions",
            json={"action": {"type": "end_turn", "player_id": "bot1"}},
        ).json()

        assert not body["applied"]
        assert body["reason_code"] == "NOT_YOUR_TURN"

    def test_unseated_player(self, client, game):
        response = client.post(
            f"/api/v1/games/{game['game_id']}/actions",
            json={"action": {"type": "end_turn", "player_id": "ghost"}},
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "ILLEGAL_ACTION"

    def test_unknown_action_type(self, client, game):
        response = client.post(
            f"/api/v1/games/{game['game_id']}/actions",
            json={"action": {"type": "cheat", "player_id": "human"}},
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"


class TestSearchEndpoints:
    """Recommendation and training data."""

    def test_recommendation(self, client, game):
        body = client.get(
            f"/api/v1/games/{game['game_id']}/recommendation", params={"iterations": 12},
        ).json()

        assert body["player_id"] == "human"
        assert body["iterations"] == 12
        assert body["action"]["player_id"] == "human"
        assert sum(body["policy"].values()) == pytest.approx(1.0)

    def test_recommendation_does_not_change_game(self, client, game):
        client.get(f"/api/v1/games/{game['game_id']}/recommendation")

        after = client.get(f"/api/v1/games/{game['game_id']}").json()
        assert after["state"] == game["state"]

    def test_training_records(self, client, game):
        client.post(
            f"/api/v1/games/{game['game_id']}/actions",
            json={"action": {"type": "end_turn", "player_id": "human"}},
        )

        body = client.get(f"/api/v1/games/{game['game_id']}/training-records").json()

        assert body["count"] == len(body["records"])
        for record in body["records"]:
            assert record["player_id"] == "bot1"
            assert record["game_id"] == game["game_id"]


class TestModelWeights:

    def test_load_valid_weights(self, client):
        response = client.post("/api/v1/model/weights", json=weights_document(hidden=6))

        assert response.status_code == 200
        assert response.json() == {"loaded": True, "hidden_size": 6}
        assert client.get("/health").json()["model_loaded"]

    def test_reject_invalid_weights(self, client):
        client.post("/api/v1/model/weights", json=weights_document())

        response = client.post("/api/v1/model/weights", json={"input": {"weight": [[1.0]]}})

        body = response.json()
        assert response.status_code == 400
        assert body["error_code"] == "INVALID_WEIGHTS"
        assert body["details"]["model_loaded"]
        assert body["details"]["reason"]


class TestWebSocket:

    def test_initial_state_and_ping(self, client, game):
        with client.websocket_connect(f"/api/v1/games/{game['game_id']}/ws") as ws:
            message = ws.receive_json()
            assert message["type"] == "state_update"
            assert message["payload"]["game_id"] == game["game_id"]

            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}

    def test_broadcast_after_action(self, client, game):
        with client.websocket_connect(f"/api/v1/games/{game['game_id']}/ws") as ws:
            ws.receive_json()

            client.post(
                f"/api/v1/games/{game['game_id']}/actions",
                json={"action": {"type": "end_turn", "player_id": "human"}},
            )

            message = ws.receive_json()
            assert message["type"] in ("state_update", "game_over")
            assert message["payload"]["turn"] >= 1

    def test_unknown_game(self, client):
        with client.websocket_connect("/api/v1/games/missing/ws") as ws:
            message = ws.receive_json()
            assert message["type"] == "error"
            assert message["payload"]["error_code"] == "GAME_NOT_FOUND"
            assert "missing" not in client.app.state.ws_connections

    def test_disconnect_releases_registry_entry(self, client, game):
        connections = client.app.state.ws_connections

        with client.websocket_connect(f"/api/v1/games/{game['game_id']}/ws") as ws:
            ws.receive_json()
            assert len(connections[game["game_id"]]) == 1

        assert game["game_id"] not in connections

    def test_end_game_releases_registry_entry(self, client, game):
        connections = client.app.state.ws_connections

        with client.websocket_connect(f"/api/v1/games/{game['game_id']}/ws") as ws:
            ws.receive_json()
            client.delete(f"/api/v1/games/{game['game_id']}")

            assert game["game_id"] not in connections


class TestSystem:

    def test_health(self, client):
        body = client.get("/health").json()

        assert body["status"] == "healthy"
        assert body["service"] == "nationcards-engine"
        assert not body["model_loaded"]

    def test_root(self, client):
        body = client.get("/").json()

        assert body["docs"] == "/api/docs"
