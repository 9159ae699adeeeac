"""Unit tests for the game API.

Tests cover:
- Health check and room listing
- Starting games and sending commands
- Status and deletion, including unknown sessions
- Request validation and error mapping
"""

import pytest
from fastapi.testclient import TestClient

from escaperoom.api.game import NewGameRequest
from escaperoom.engine.dispatcher import NO_SESSION_MESSAGE, CommandDispatcher
from escaperoom.engine.session import SessionOrchestrator
from escaperoom.main import create_app
from escaperoom.models.command import GameMode


class TestGameApi:
    """Tests for the /api/game routes."""

    @pytest.fixture
    def dispatcher(self, catalog, mock_generator) -> CommandDispatcher:
        return CommandDispatcher(catalog=catalog, generator=mock_generator())

    @pytest.fixture
    def client(self, dispatcher) -> TestClient:
        return TestClient(create_app(dispatcher))

    @pytest.fixture
    def session_id(self, client) -> str:
        """Start a default game and return its id."""
        response = client.post("/api/game/new", json={})
        assert response.status_code == 200
        return response.json()["session_id"]

    def test_health_check(self, client) -> None:
        """The root endpoint reports ok."""
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_list_rooms(self, client) -> None:
        """The default catalog rooms are listed."""
        rooms = client.get("/api/game/rooms").json()["rooms"]

        assert len(rooms) == 3
        assert rooms[0]["name"] == "The Foyer of Fading Secrets"

    def test_new_game(self, client) -> None:
        """A new game returns the first room."""
        data = client.post("/api/game/new", json={"mode": "default"}).json()

        assert data["command"] == "newgame"
        assert data["status"]["current_room"] == 1
        assert data["objects"] == ["Manual", "Chest", "Book"]

    def test_new_generated_game(self, client) -> None:
        """The request credential is used for generated games."""
        data = client.post(
            "/api/game/new", json={"mode": "single", "credential": "secret"}
        ).json()

        assert data["status"]["mode"] == "single"
        assert "The Lantern Archive" in data["message"]

    def test_new_game_bad_room_count(self, client) -> None:
        """A room count the mode cannot satisfy is a 400."""
        response = client.post("/api/game/new", json={"mode": "default", "room_count": 9})
        assert response.status_code == 400

    def test_new_game_invalid_body(self, client) -> None:
        """Invalid request fields are rejected by validation."""
        assert client.post("/api/game/new", json={"room_count": 0}).status_code == 422
        assert client.post("/api/game/new", json={"mode": "hard"}).status_code == 422

    def test_command(self, client, session_id) -> None:
        """Commands are processed against the session."""
        data = client.post(
            "/api/game/command", json={"session_id": session_id, "command": "guess 007"}
        ).json()

        assert data["unlocked"] is True
        assert data["next_room"]["sequence_index"] == 2

    def test_command_without_session(self, client) -> None:
        """Commands without a session get a normal result."""
        data = client.post("/api/game/command", json={"command": "look"}).json()
        assert data["message"] == NO_SESSION_MESSAGE

    def test_command_on_unstarted_session(self, client, dispatcher, catalog) -> None:
        """Using a session before its first room is ready is a 409."""
        pending = SessionOrchestrator.from_catalog(catalog, [1])
        dispatcher.store.create("pending", pending, GameMode.DEFAULT)

        response = client.post(
            "/api/game/command", json={"session_id": "pending", "command": "look"}
        )

        assert response.status_code == 409

    def test_status(self, client, session_id) -> None:
        """Status reflects progress."""
        client.post(
            "/api/game/command", json={"session_id": session_id, "command": "guess 007"}
        )

        data = client.get(f"/api/game/status/{session_id}").json()

        assert data["current_room"] == 2
        assert data["progress_percent"] == 33
        assert data["completed"] is False
        assert [room["unlocked"] for room in data["rooms"]] == [True, True, False]
        assert data["rooms"][1]["current"] is True

    def test_status_unknown_session(self, client) -> None:
        """Unknown sessions are a 404."""
        assert client.get("/api/game/status/nope").status_code == 404

    def test_delete(self, client, session_id) -> None:
        """Deleting a session ends it."""
        response = client.delete(f"/api/game/{session_id}")

        assert response.status_code == 200
        assert response.json()["deleted"] is True
        assert client.delete(f"/api/game/{session_id}").status_code == 404


class TestNewGameRequest:
    """Tests for NewGameRequest."""

    def test_defaults(self) -> None:
        """A bare request starts the default game."""
        request = NewGameRequest()
        assert request.mode == GameMode.DEFAULT
        assert request.room_count is None
        assert request.credential is None
