"""Session configuration and per-context role models."""

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from draft_room.models.draft import Side


class DraftMode(str, Enum):
    """Series modes. Fearless excludes champions used in earlier games."""

    NORMAL = "normal"
    FEARLESS = "fearless"


class RoleKind(str, Enum):
    COORDINATOR = "coordinator"
    PARTICIPANT = "participant"
    SPECTATOR = "spectator"


@dataclass(frozen=True)
class ContextRole:
    """Role assigned to one execution context when it joins a session.

    A coordinator may act for either side, a participant only for its own
    side, a spectator never.
    """

    kind: RoleKind
    side: Optional[Side] = None

    @classmethod
    def coordinator(cls) -> "ContextRole":
        return cls(RoleKind.COORDINATOR)

    @classmethod
    def participant(cls, side: Side) -> "ContextRole":
        return cls(RoleKind.PARTICIPANT, Side(side))

    @classmethod
    def spectator(cls) -> "ContextRole":
        return cls(RoleKind.SPECTATOR)

    @property
    def is_coordinator(self) -> bool:
        return self.kind == RoleKind.COORDINATOR

    @property
    def is_spectator(self) -> bool:
        return self.kind == RoleKind.SPECTATOR

    def may_act_for(self, side: Optional[Side]) -> bool:
        """Whether this context may select/lock/ready for ``side``."""
        if side is None or self.is_spectator:
            return False
        return self.is_coordinator or self.side == side

    def is_timer_authority(self, active_side: Optional[Side]) -> bool:
        """Coordinator, or the participant whose side holds the active turn."""
        if self.is_coordinator:
            return True
        return active_side is not None and self.side == active_side

    def __str__(self) -> str:
        if self.side is not None:
            return f"{self.kind.value}:{self.side.value}"
        return self.kind.value


class SessionConfig(BaseModel):
    """Draft session setup, shared by every context joining the session."""

    blue_name: str = Field(default="BLUE TEAM", min_length=1, max_length=64)
    red_name: str = Field(default="RED TEAM", min_length=1, max_length=64)
    turn_seconds: int = Field(default=30, gt=0, le=600)
    best_of: Literal[1, 3, 5] = 1
    mode: DraftMode = DraftMode.NORMAL

    @model_validator(mode="after")
    def _fearless_needs_series(self) -> "SessionConfig":
        if self.mode == DraftMode.FEARLESS and self.best_of == 1:
            raise ValueError("fearless mode requires a best-of-3 or best-of-5 series")
        return self
