"""Sync channel message kinds.

Every message a context broadcasts is one of a closed set of kinds, each
with a fixed payload shape. ``type`` is the discriminator on the wire.
"""

import logging
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from draft_room.models.draft import DraftSnapshot, ReadinessSnapshot, Side

logger = logging.getLogger(__name__)


class _SyncMessage(BaseModel):
    # Context id of the sender, stamped by the channel on broadcast
    sender: Optional[str] = None


class FullStateSnapshot(_SyncMessage):
    """Coordinator catch-up message for late joiners."""

    type: Literal["full_state_snapshot"] = "full_state_snapshot"
    game_index: int = 1
    draft: DraftSnapshot
    readiness: ReadinessSnapshot


class TentativeSelection(_SyncMessage):
    """Preview of the champion the active side is hovering."""

    type: Literal["tentative_selection"] = "tentative_selection"
    side: Side
    champion_id: str
    step: int = Field(default=0, ge=0)


class ConfirmedLock(_SyncMessage):
    """A champion locked in for the turn at ``step``."""

    type: Literal["confirmed_lock"] = "confirmed_lock"
    side: Side
    champion_id: str
    step: int = Field(default=0, ge=0)


class TimerTick(_SyncMessage):
    """Countdown value after one tick.

    ``scope`` tells turn ticks from readiness countdown ticks; ``step`` is
    the turn the tick belongs to so stale ticks can be ignored.
    """

    type: Literal["timer_tick"] = "timer_tick"
    remaining: int = Field(ge=0)
    step: int = Field(default=0, ge=0)
    scope: Literal["turn", "readiness"] = "turn"


class ReadinessMarked(_SyncMessage):
    type: Literal["readiness_marked"] = "readiness_marked"
    side: Side


class CountdownStarted(_SyncMessage):
    type: Literal["countdown_started"] = "countdown_started"


SyncMessage = Annotated[
    Union[
        FullStateSnapshot,
        TentativeSelection,
        ConfirmedLock,
        TimerTick,
        ReadinessMarked,
        CountdownStarted,
    ],
    Field(discriminator="type"),
]

_adapter: TypeAdapter = TypeAdapter(SyncMessage)


def parse_message(data: Any) -> Optional[SyncMessage]:
    """Validate a raw payload into a SyncMessage.

    Returns None (and logs) for unknown kinds or malformed payloads.
    """
    try:
        return _adapter.validate_python(data)
    except ValidationError as e:
        logger.warning(f"Dropping invalid sync message: {e.error_count()} error(s) in {data!r}")
        return None


def dump_message(message: BaseModel) -> dict:
    """JSON-compatible dict for sending a message over the wire."""
    return message.model_dump(mode="json")
