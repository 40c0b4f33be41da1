"""Business logic services."""

from draft_room.services.draft_context import DraftContext
from draft_room.services.draft_state_machine import (
    DraftEvent,
    DraftEventKind,
    DraftStateMachine,
)
from draft_room.services.join_links import build_join_links, parse_role
from draft_room.services.readiness_gate import ReadinessGate
from draft_room.services.series_manager import SeriesAccessDenied, SeriesManager
from draft_room.services.session_manager import DraftSession, DraftSessionManager
from draft_room.services.sync_channel import SyncChannel, SyncHub

__all__ = [
    "DraftContext",
    "DraftEvent",
    "DraftEventKind",
    "DraftStateMachine",
    "DraftSession",
    "DraftSessionManager",
    "ReadinessGate",
    "SeriesAccessDenied",
    "SeriesManager",
    "SyncChannel",
    "SyncHub",
    "build_join_links",
    "parse_role",
]
