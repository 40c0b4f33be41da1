"""Draft session hosting."""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from draft_room.models.draft import STANDARD_TURN_SCHEDULE, DraftResult, GateState, ReadinessSnapshot, Side
from draft_room.models.roster import RosterCatalog
from draft_room.models.series import GameResult, SeriesState
from draft_room.models.session import ContextRole, SessionConfig
from draft_room.repositories.draft_repository import DraftRepository
from draft_room.services.draft_context import DraftContext
from draft_room.services.readiness_gate import DEFAULT_COUNTDOWN_SECONDS
from draft_room.services.series_manager import SeriesManager
from draft_room.services.sync_channel import SyncHub

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL_PREFIX = "lol_draft_sync"


@dataclass
class DraftSession:
    """A configured draft series and the coordinators hosting its games."""

    id: str
    config: SessionConfig
    series: SeriesManager
    created_at: datetime = field(default_factory=datetime.now)
    hosts: dict[int, DraftContext] = field(default_factory=dict)


class DraftSessionManager:
    """In-memory manager for draft sessions, backed by the repository."""

    def __init__(
        self,
        hub: SyncHub,
        catalog: RosterCatalog,
        repository: Optional[DraftRepository] = None,
        *,
        channel_prefix: str = DEFAULT_CHANNEL_PREFIX,
        ready_countdown_seconds: int = DEFAULT_COUNTDOWN_SECONDS,
        tick_interval: Optional[float] = 1.0,
    ):
        """Initialize the manager.

        Args:
            hub: Sync hub every hosted and joined context subscribes to
            catalog: Champion roster shared by all sessions
            repository: Optional persistence; sessions live in memory only
                without it
            channel_prefix: Prefix of the per-game channel names
            ready_countdown_seconds: Countdown once both sides are ready
            tick_interval: Seconds per countdown tick (None for manual ticks)
        """
        self.hub = hub
        self.catalog = catalog
        self.repository = repository
        self.channel_prefix = channel_prefix
        self.ready_countdown_seconds = ready_countdown_seconds
        self.tick_interval = tick_interval
        self.sessions: dict[str, DraftSession] = {}

    def channel_name(self, session_id: str, game_index: int) -> str:
        return f"{self.channel_prefix}:{session_id}:{game_index}"

    def create_session(self, config: SessionConfig) -> DraftSession:
        session_id = str(uuid.uuid4())[:8]  # Short ID for URLs
        session = DraftSession(
            id=session_id,
            config=config,
            series=SeriesManager(total_games=config.best_of),
        )
        self.sessions[session_id] = session
        self._persist(session)
        logger.info(
            f"Created session {session_id}: {config.blue_name} vs {config.red_name}, "
            f"Bo{config.best_of} {config.mode.value}"
        )
        return session

    def get_session(self, session_id: str) -> Optional[DraftSession]:
        """Get a session by ID, loading it from the repository if needed."""
        session = self.sessions.get(session_id)
        if session is not None or self.repository is None:
            return session

        stored = self.repository.load_session(session_id)
        if stored is None:
            return None
        session = DraftSession(
            id=stored.id,
            config=stored.config,
            series=SeriesManager.from_snapshot(stored.series),
            created_at=stored.created_at or datetime.now(),
        )
        self.sessions[session_id] = session
        logger.info(f"Loaded session {session_id} from repository")
        return session

    async def remove_session(self, session_id: str) -> bool:
        """Close a session's hosted contexts and forget it."""
        session = self.sessions.pop(session_id, None)
        if session is not None:
            await self._close_hosts(session)
        deleted = self.repository.delete_session(session_id) if self.repository else False
        return session is not None or deleted

    async def shutdown(self) -> None:
        for session in self.sessions.values():
            await self._close_hosts(session)

    def ensure_host(self, session: DraftSession, game_index: int) -> DraftContext:
        """Return the coordinator hosting ``game_index``, starting it if needed.

        Must be called on the running event loop.

        Raises:
            SeriesAccessDenied: if an earlier game is still being drafted
        """
        session.series.require_accessible(game_index)
        host = session.hosts.get(game_index)
        if host is not None:
            return host

        channel = self.hub.subscribe(
            self.channel_name(session.id, game_index),
            context_id=f"host-{session.id}-{game_index}",
        )
        host = DraftContext(
            ContextRole.coordinator(),
            channel,
            self.catalog,
            game_index=game_index,
            schedule=STANDARD_TURN_SCHEDULE,
            turn_seconds=session.config.turn_seconds,
            ready_countdown_seconds=self.ready_countdown_seconds,
            excluded=session.series.compute_excluded_entities(session.config.mode),
            tick_interval=self.tick_interval,
            on_complete=lambda result: self._record_completion(session, result),
        )

        completed = session.series.get_result(game_index)
        if completed is not None:
            host.load(
                completed.to_draft_snapshot(len(STANDARD_TURN_SCHEDULE)),
                ReadinessSnapshot(blue=True, red=True, state=GateState.RELEASED),
            )

        session.hosts[game_index] = host
        host.start()
        return host

    def declare_winner(self, session: DraftSession, game_index: int, winner: Side) -> Optional[GameResult]:
        result = session.series.declare_winner(game_index, winner)
        if result is not None:
            self._persist(session)
            logger.info(f"Session {session.id} game {game_index} won by {Side(winner).value}")
        return result

    def list_sessions(self, limit: int = 50) -> list[dict]:
        """Summaries of the most recently updated sessions, newest first.

        Reads persisted sessions when a repository is configured, so
        sessions not loaded since a restart are listed too.
        """
        if self.repository is not None:
            return [
                self._summarize(s.id, s.config, s.series, s.created_at)
                for s in self.repository.list_sessions(limit)
            ]
        sessions = sorted(self.sessions.values(), key=lambda s: s.created_at, reverse=True)
        return [
            self._summarize(s.id, s.config, s.series.snapshot(), s.created_at) for s in sessions[:limit]
        ]

    @staticmethod
    def _summarize(
        session_id: str, config: SessionConfig, series: SeriesState, created_at: Optional[datetime]
    ) -> dict:
        return {
            "id": session_id,
            "blue_name": config.blue_name,
            "red_name": config.red_name,
            "mode": config.mode.value,
            "best_of": config.best_of,
            "active_game_index": series.active_game_index,
            "completed_games": len(series.results),
            "created_at": created_at.isoformat() if created_at else None,
        }

    def _record_completion(self, session: DraftSession, result: DraftResult) -> None:
        recorded = session.series.record_completion(
            result.game_index, result.blue, result.red, result.winner
        )
        if recorded is not None:
            self._persist(session)

    def _persist(self, session: DraftSession) -> None:
        if self.repository is not None:
            self.repository.save_session(session.id, session.config, session.series.snapshot())

    async def _close_hosts(self, session: DraftSession) -> None:
        hosts = list(session.hosts.values())
        session.hosts.clear()
        for host in hosts:
            await host.close()
