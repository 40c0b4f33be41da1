"""Tests for the draft WebSocket relay."""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from draft_room.main import app
from draft_room.models.session import DraftMode, SessionConfig
from draft_room.repositories.draft_repository import DraftRepository
from draft_room.services.session_manager import DraftSessionManager
from draft_room.services.sync_channel import SyncHub


def _install_manager(tmp_path, catalog, **kwargs) -> DraftSessionManager:
    # Set state directly on app.state (lifespan keeps existing attributes)
    app.state.catalog = catalog
    app.state.repository = DraftRepository(tmp_path / "drafts.duckdb")
    app.state.hub = SyncHub()
    app.state.session_manager = DraftSessionManager(
        app.state.hub, catalog, app.state.repository, **kwargs
    )
    return app.state.session_manager


@pytest.fixture
def manager(tmp_path, catalog):
    return _install_manager(tmp_path, catalog, tick_interval=None)


@pytest.fixture
def client(manager):
    with TestClient(app) as client:
        yield client


def receive_until(websocket, message_type: str, limit: int = 200) -> dict:
    for _ in range(limit):
        message = websocket.receive_json()
        if message["type"] == message_type:
            return message
    raise AssertionError(f"No {message_type} within {limit} messages")


class TestJoin:
    """Connection setup."""

    def test_unknown_session_closes_4004(self, client):
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect("/ws/drafts/missing") as websocket:
                websocket.receive_json()
        assert exc.value.code == 4004

    def test_locked_game_closes_4403(self, client, manager):
        session = manager.create_session(SessionConfig(best_of=3, mode=DraftMode.FEARLESS))
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect(f"/ws/drafts/{session.id}?side=blue&game=2") as websocket:
                websocket.receive_json()
        assert exc.value.code == 4403

    def test_unknown_side_closes_4400(self, client, manager):
        session = manager.create_session(SessionConfig())
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect(f"/ws/drafts/{session.id}?side=purple") as websocket:
                websocket.receive_json()
        assert exc.value.code == 4400

    def test_join_sends_role_then_snapshot(self, client, manager):
        session = manager.create_session(SessionConfig(blue_name="T1"))
        with client.websocket_connect(f"/ws/drafts/{session.id}?side=blue&game=1") as websocket:
            joined = websocket.receive_json()
            assert joined["type"] == "joined"
            assert joined["role"] == "participant"
            assert joined["side"] == "blue"
            assert joined["config"]["blue_name"] == "T1"

            snapshot = websocket.receive_json()
            assert snapshot["type"] == "full_state_snapshot"
            assert snapshot["game_index"] == 1
            assert snapshot["draft"]["step_index"] == 0
            assert snapshot["sender"] == f"host-{session.id}-1"

    def test_spectate_side_joins_as_spectator(self, client, manager):
        session = manager.create_session(SessionConfig())
        with client.websocket_connect(f"/ws/drafts/{session.id}?side=spectate") as websocket:
            assert websocket.receive_json()["role"] == "spectator"


class TestRelay:
    """Frames published between clients."""

    def test_readiness_relays_and_starts_countdown(self, client, manager):
        session = manager.create_session(SessionConfig())
        base = f"/ws/drafts/{session.id}"
        with client.websocket_connect(f"{base}?side=blue") as blue:
            receive_until(blue, "full_state_snapshot")
            with client.websocket_connect(f"{base}?side=red") as red:
                receive_until(red, "full_state_snapshot")
                # Red's join announces a snapshot to everyone
                receive_until(blue, "full_state_snapshot")

                blue.send_json({"type": "readiness_marked", "side": "blue"})
                assert receive_until(red, "readiness_marked")["side"] == "blue"

                red.send_json({"type": "readiness_marked", "side": "red"})
                assert receive_until(blue, "readiness_marked")["side"] == "red"
                receive_until(blue, "countdown_started")
                receive_until(red, "countdown_started")

    def test_forbidden_frames_are_dropped(self, client, manager):
        session = manager.create_session(SessionConfig())
        base = f"/ws/drafts/{session.id}"
        with client.websocket_connect(f"{base}?side=red") as red:
            receive_until(red, "full_state_snapshot")
            with client.websocket_connect(f"{base}?side=spectate") as spectator:
                receive_until(spectator, "joined")
                with client.websocket_connect(f"{base}?side=blue") as blue:
                    receive_until(blue, "joined")

                    spectator.send_json({"type": "readiness_marked", "side": "red"})
                    blue.send_json({"type": "readiness_marked", "side": "red"})
                    blue.send_json({"type": "countdown_started"})
                    blue.send_json({"type": "readiness_marked", "side": "blue"})

                    message = receive_until(red, "readiness_marked")
                    assert message["side"] == "blue"

    def test_malformed_frames_are_ignored(self, client, manager):
        session = manager.create_session(SessionConfig())
        base = f"/ws/drafts/{session.id}"
        with client.websocket_connect(f"{base}?side=red") as red:
            receive_until(red, "full_state_snapshot")
            with client.websocket_connect(f"{base}?side=blue") as blue:
                receive_until(blue, "full_state_snapshot")
                blue.send_text("not json")
                blue.send_json({"type": "init", "state": {}})
                blue.send_json({"type": "readiness_marked", "side": "blue"})
                assert receive_until(red, "readiness_marked")["side"] == "blue"


class TestCoordinatorClient:
    """A client joined without a side drives the hosted coordinator."""

    def test_coordinator_readies_both_sides(self, client, manager):
        session = manager.create_session(SessionConfig())
        with client.websocket_connect(f"/ws/drafts/{session.id}") as coordinator:
            assert coordinator.receive_json()["role"] == "coordinator"
            receive_until(coordinator, "full_state_snapshot")

            coordinator.send_json({"type": "readiness_marked", "side": "blue"})
            coordinator.send_json({"type": "readiness_marked", "side": "red"})

            assert receive_until(coordinator, "readiness_marked")["side"] == "blue"
            assert receive_until(coordinator, "readiness_marked")["side"] == "red"
            receive_until(coordinator, "countdown_started")

    def test_coordinator_locks_after_release(self, tmp_path, catalog):
        manager = _install_manager(
            tmp_path, catalog, ready_countdown_seconds=1, tick_interval=0.05
        )
        session = manager.create_session(SessionConfig())
        with TestClient(app) as client:
            with client.websocket_connect(f"/ws/drafts/{session.id}") as coordinator:
                receive_until(coordinator, "full_state_snapshot")
                coordinator.send_json({"type": "readiness_marked", "side": "blue"})
                coordinator.send_json({"type": "readiness_marked", "side": "red"})

                release = receive_until(coordinator, "timer_tick")
                assert release["scope"] == "readiness"
                assert release["remaining"] == 0

                coordinator.send_json(
                    {"type": "confirmed_lock", "side": "blue", "champion_id": "aatrox"}
                )
                lock = receive_until(coordinator, "confirmed_lock")
                assert lock["champion_id"] == "aatrox"
                assert lock["side"] == "blue"

