"""Data models for the draft room."""

from draft_room.models.draft import (
    STANDARD_TURN_SCHEDULE,
    ActionKind,
    DraftPhase,
    DraftResult,
    DraftSnapshot,
    GateState,
    ReadinessSnapshot,
    ResolutionSource,
    Side,
    SideSnapshot,
    SideState,
    TurnRecord,
    TurnSpec,
)
from draft_room.models.messages import (
    ConfirmedLock,
    CountdownStarted,
    FullStateSnapshot,
    ReadinessMarked,
    SyncMessage,
    TentativeSelection,
    TimerTick,
)
from draft_room.models.roster import Champion, RosterCatalog, load_catalog
from draft_room.models.series import GameResult, SeriesState
from draft_room.models.session import ContextRole, DraftMode, RoleKind, SessionConfig

__all__ = [
    "STANDARD_TURN_SCHEDULE",
    "ActionKind",
    "DraftPhase",
    "DraftResult",
    "DraftSnapshot",
    "GateState",
    "ReadinessSnapshot",
    "ResolutionSource",
    "Side",
    "SideSnapshot",
    "SideState",
    "TurnRecord",
    "TurnSpec",
    "ConfirmedLock",
    "CountdownStarted",
    "FullStateSnapshot",
    "ReadinessMarked",
    "SyncMessage",
    "TentativeSelection",
    "TimerTick",
    "Champion",
    "RosterCatalog",
    "load_catalog",
    "GameResult",
    "SeriesState",
    "ContextRole",
    "DraftMode",
    "RoleKind",
    "SessionConfig",
]
