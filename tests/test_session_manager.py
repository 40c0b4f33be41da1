"""Tests for draft session hosting."""

import pytest

from draft_room.models.draft import DraftPhase, Side
from draft_room.models.session import DraftMode, SessionConfig
from draft_room.repositories.draft_repository import DraftRepository
from draft_room.services.series_manager import SeriesAccessDenied
from draft_room.services.session_manager import DraftSessionManager
from draft_room.services.sync_channel import SyncHub

pytestmark = pytest.mark.anyio


@pytest.fixture
def repository(tmp_path):
    return DraftRepository(tmp_path / "drafts.duckdb")


@pytest.fixture
async def manager(catalog, repository):
    manager = DraftSessionManager(SyncHub(), catalog, repository, tick_interval=None)
    yield manager
    await manager.shutdown()


def draft_whole_game(host, champion_ids):
    host.mark_ready(Side.BLUE)
    host.mark_ready(Side.RED)
    while not host.gate.is_released:
        host.tick()
    for champion_id in champion_ids:
        turn = host.machine.active_turn
        host.select(turn.side, champion_id)
        host.confirm()


class TestSessions:
    """Create, look up and remove sessions."""

    async def test_create_and_get(self, manager):
        session = manager.create_session(SessionConfig(best_of=3))
        assert len(session.id) == 8
        assert manager.get_session(session.id) is session
        assert session.series.total_games == 3

    async def test_session_reloads_from_repository(self, catalog, repository, manager):
        session = manager.create_session(SessionConfig(blue_name="T1"))

        fresh = DraftSessionManager(SyncHub(), catalog, repository, tick_interval=None)
        loaded = fresh.get_session(session.id)
        assert loaded.config.blue_name == "T1"
        assert fresh.get_session("missing") is None

    async def test_remove_session(self, manager):
        session = manager.create_session(SessionConfig())
        manager.ensure_host(session, 1)
        assert await manager.remove_session(session.id) is True
        assert manager.get_session(session.id) is None
        assert await manager.remove_session(session.id) is False

    async def test_list_sessions_reads_repository(self, catalog, repository, manager):
        session = manager.create_session(SessionConfig(blue_name="T1", best_of=3))

        fresh = DraftSessionManager(SyncHub(), catalog, repository, tick_interval=None)
        [summary] = fresh.list_sessions()
        assert summary["id"] == session.id
        assert summary["blue_name"] == "T1"
        assert summary["best_of"] == 3
        assert summary["completed_games"] == 0

    async def test_list_sessions_without_repository(self, catalog):
        manager = DraftSessionManager(SyncHub(), catalog, tick_interval=None)
        first = manager.create_session(SessionConfig())
        second = manager.create_session(SessionConfig(mode=DraftMode.FEARLESS, best_of=5))
        summaries = manager.list_sessions()
        assert {s["id"] for s in summaries} == {first.id, second.id}
        assert len(manager.list_sessions(limit=1)) == 1

    async def test_channel_name(self, manager):
        assert manager.channel_name("abc", 2) == "lol_draft_sync:abc:2"


class TestHosting:
    """Hosted coordinators per game."""

    async def test_host_is_reused(self, manager):
        session = manager.create_session(SessionConfig())
        assert manager.ensure_host(session, 1) is manager.ensure_host(session, 1)
        assert manager.ensure_host(session, 1).role.is_coordinator

    async def test_future_game_is_locked(self, manager):
        session = manager.create_session(SessionConfig(best_of=3))
        with pytest.raises(SeriesAccessDenied):
            manager.ensure_host(session, 2)

    async def test_completion_advances_series_and_persists(self, manager, repository, champion_ids):
        session = manager.create_session(SessionConfig(best_of=3))
        host = manager.ensure_host(session, 1)
        draft_whole_game(host, champion_ids)

        assert session.series.is_game_completed(1)
        assert session.series.active_game_index == 2
        stored = repository.load_session(session.id)
        assert stored.series.active_game_index == 2

    async def test_fearless_game_two_excludes_game_one(self, manager, champion_ids):
        session = manager.create_session(SessionConfig(best_of=3, mode=DraftMode.FEARLESS))
        draft_whole_game(manager.ensure_host(session, 1), champion_ids)

        game_two = manager.ensure_host(session, 2)
        assert game_two.machine.excluded == frozenset(champion_ids)
        available = {c.id for c in game_two.machine.available_champions()}
        assert available.isdisjoint(champion_ids)

    async def test_normal_game_two_excludes_nothing(self, manager, champion_ids):
        session = manager.create_session(SessionConfig(best_of=3))
        draft_whole_game(manager.ensure_host(session, 1), champion_ids)
        assert manager.ensure_host(session, 2).machine.excluded == frozenset()

    async def test_completed_game_is_served_as_terminal_snapshot(
        self, catalog, repository, manager, champion_ids
    ):
        session = manager.create_session(SessionConfig(best_of=3))
        draft_whole_game(manager.ensure_host(session, 1), champion_ids)

        fresh = DraftSessionManager(SyncHub(), catalog, repository, tick_interval=None)
        reloaded = fresh.get_session(session.id)
        host = fresh.ensure_host(reloaded, 1)

        assert host.machine.phase == DraftPhase.COMPLETE
        assert host.gate.is_released
        assert host.machine.blue.picks == session.series.get_result(1).blue.picks
        await fresh.shutdown()

    async def test_declare_winner(self, manager, champion_ids):
        session = manager.create_session(SessionConfig(best_of=3))
        assert manager.declare_winner(session, 1, Side.BLUE) is None

        draft_whole_game(manager.ensure_host(session, 1), champion_ids)
        result = manager.declare_winner(session, 1, Side.BLUE)
        assert result.winner == Side.BLUE
        assert session.series.series_score == (1, 0)
