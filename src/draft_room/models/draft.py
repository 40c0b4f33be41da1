"""Draft turn schedule and per-game state models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Side(str, Enum):
    """Draft sides. Blue is the first side, red the second."""

    BLUE = "blue"
    RED = "red"

    @property
    def opponent(self) -> "Side":
        return Side.RED if self is Side.BLUE else Side.BLUE


class ActionKind(str, Enum):
    """Kind of action a turn performs."""

    BAN = "ban"
    PICK = "pick"


class DraftPhase(str, Enum):
    """Lifecycle of a single game's draft."""

    AWAITING_READINESS = "awaiting_readiness"
    COUNTING_DOWN = "counting_down"
    TURN_ACTIVE = "turn_active"
    COMPLETE = "complete"


class ResolutionSource(str, Enum):
    """How a turn was resolved."""

    CONFIRMED = "confirmed"  # Explicit lock-in by this context
    TIMEOUT = "timeout"  # Countdown expired (auto-lock or pass)
    REMOTE = "remote"  # Lock received from another context


@dataclass(frozen=True)
class TurnSpec:
    """One entry of a turn schedule."""

    side: Side
    action: ActionKind


def _turns(*entries: tuple[str, str]) -> tuple[TurnSpec, ...]:
    return tuple(TurnSpec(Side(side), ActionKind(action)) for side, action in entries)


# Standard professional draft order (20 turns)
STANDARD_TURN_SCHEDULE: tuple[TurnSpec, ...] = _turns(
    # Ban phase 1
    ("blue", "ban"), ("red", "ban"), ("blue", "ban"), ("red", "ban"), ("blue", "ban"), ("red", "ban"),
    # Pick phase 1
    ("blue", "pick"), ("red", "pick"), ("red", "pick"), ("blue", "pick"), ("blue", "pick"), ("red", "pick"),
    # Ban phase 2
    ("red", "ban"), ("blue", "ban"), ("red", "ban"), ("blue", "ban"),
    # Pick phase 2
    ("red", "pick"), ("blue", "pick"), ("blue", "pick"), ("red", "pick"),
)


def slot_count(schedule: tuple[TurnSpec, ...], side: Side, action: ActionKind) -> int:
    """Number of turns a side gets for an action kind in a schedule."""
    return sum(1 for turn in schedule if turn.side == side and turn.action == action)


def slot_index(schedule: tuple[TurnSpec, ...], step: int) -> int:
    """0-based position of a step within its side's ban or pick slots.

    Used by clients to address the ban/pick slot a turn fills.
    """
    turn = schedule[step]
    return sum(
        1 for earlier in schedule[:step]
        if earlier.side == turn.side and earlier.action == turn.action
    )


@dataclass
class SideState:
    """Bans and picks of one side, in order. Append-only during a draft."""

    bans: list[str] = field(default_factory=list)
    picks: list[str] = field(default_factory=list)

    def record(self, action: ActionKind, champion_id: str) -> None:
        if action == ActionKind.BAN:
            self.bans.append(champion_id)
        else:
            self.picks.append(champion_id)

    @property
    def champions(self) -> list[str]:
        """Every champion this side banned or picked."""
        return self.bans + self.picks

    def copy(self) -> "SideState":
        return SideState(bans=list(self.bans), picks=list(self.picks))


@dataclass(frozen=True)
class TurnRecord:
    """Outcome of one resolved turn. ``champion_id`` is None for a pass."""

    step: int
    side: Side
    action: ActionKind
    champion_id: Optional[str]
    source: ResolutionSource

    @property
    def is_pass(self) -> bool:
        return self.champion_id is None


@dataclass(frozen=True)
class DraftResult:
    """Terminal summary of a game's draft, handed to persistence."""

    game_index: int
    blue: SideState
    red: SideState
    winner: Optional[Side] = None


class SideSnapshot(BaseModel):
    """Serializable SideState."""

    bans: list[str] = Field(default_factory=list)
    picks: list[str] = Field(default_factory=list)

    @classmethod
    def from_state(cls, state: SideState) -> "SideSnapshot":
        return cls(bans=list(state.bans), picks=list(state.picks))

    def to_state(self) -> SideState:
        return SideState(bans=list(self.bans), picks=list(self.picks))


class DraftSnapshot(BaseModel):
    """Full serializable state of a draft state machine."""

    step_index: int = 0
    phase: DraftPhase = DraftPhase.AWAITING_READINESS
    blue: SideSnapshot = Field(default_factory=SideSnapshot)
    red: SideSnapshot = Field(default_factory=SideSnapshot)
    unavailable: list[str] = Field(default_factory=list)
    excluded: list[str] = Field(default_factory=list)
    tentative: Optional[str] = None
    countdown: int = 0


class GateState(str, Enum):
    """Readiness handshake states."""

    IDLE = "idle"
    ONE_READY = "one_ready"
    BOTH_READY = "both_ready"
    COUNTDOWN_RUNNING = "countdown_running"
    RELEASED = "released"


class ReadinessSnapshot(BaseModel):
    """Serializable readiness gate state."""

    blue: bool = False
    red: bool = False
    state: GateState = GateState.IDLE
    remaining: int = 0
