"""Two-party readiness handshake that gates the start of a draft."""

import logging
from typing import Callable

from draft_room.models.draft import GateState, ReadinessSnapshot, Side
from draft_room.models.session import ContextRole

logger = logging.getLogger(__name__)

DEFAULT_COUNTDOWN_SECONDS = 5

GateListener = Callable[[GateState], None]


class ReadinessGate:
    """Blue/red ready check followed by a short synchronized countdown.

    Only the coordinator drives the countdown with ``tick``; every other
    context mirrors the broadcast value with ``mirror_remaining``. Once
    released the gate ignores further readiness.
    """

    def __init__(self, role: ContextRole, countdown_seconds: int = DEFAULT_COUNTDOWN_SECONDS):
        if countdown_seconds <= 0:
            raise ValueError(f"countdown_seconds must be positive, got {countdown_seconds}")
        self.role = role
        self.countdown_seconds = countdown_seconds
        self.ready: dict[Side, bool] = {Side.BLUE: False, Side.RED: False}
        self.state = GateState.IDLE
        self.remaining = countdown_seconds
        self._listeners: list[GateListener] = []

    def subscribe(self, listener: GateListener) -> None:
        """Register a listener called with the new state on every transition."""
        self._listeners.append(listener)

    def _transition(self, state: GateState) -> None:
        self.state = state
        for listener in list(self._listeners):
            listener(state)

    @property
    def is_released(self) -> bool:
        return self.state == GateState.RELEASED

    @property
    def both_ready(self) -> bool:
        return all(self.ready.values())

    def mark_ready(self, side: Side) -> bool:
        """Mark ``side`` ready on behalf of this context.

        A participant may only ready its own side and a spectator never.
        Returns whether the flag changed.
        """
        if not self.role.may_act_for(side):
            logger.debug(f"Rejected ready for {side}: role {self.role}")
            return False
        return self._set_ready(side)

    def apply_remote_ready(self, side: Side) -> bool:
        return self._set_ready(side)

    def start_countdown(self) -> bool:
        """Mirror a countdown started by the coordinator."""
        if self.state in (GateState.COUNTDOWN_RUNNING, GateState.RELEASED):
            return False
        self.ready = {Side.BLUE: True, Side.RED: True}
        self._begin_countdown()
        return True

    def tick(self) -> int:
        """Advance the countdown by one second (coordinator only)."""
        if self.state != GateState.COUNTDOWN_RUNNING:
            return self.remaining
        self.remaining = max(0, self.remaining - 1)
        if self.remaining == 0:
            self._release()
        return self.remaining

    def mirror_remaining(self, remaining: int) -> None:
        """Adopt the coordinator's countdown value."""
        if self.is_released:
            return
        if self.state != GateState.COUNTDOWN_RUNNING:
            # The countdown_started message was missed
            self.start_countdown()
        self.remaining = max(0, remaining)
        if self.remaining == 0:
            self._release()

    def _set_ready(self, side: Side) -> bool:
        if self.is_released or self.ready[side]:
            return False
        self.ready[side] = True
        logger.info(f"{side.value} side ready")
        if self.both_ready:
            self._transition(GateState.BOTH_READY)
            self._begin_countdown()
        else:
            self._transition(GateState.ONE_READY)
        return True

    def _begin_countdown(self) -> None:
        self.remaining = self.countdown_seconds
        logger.info(f"Both sides ready, draft starts in {self.countdown_seconds}s")
        self._transition(GateState.COUNTDOWN_RUNNING)

    def _release(self) -> None:
        self.remaining = 0
        logger.info("Readiness gate released")
        self._transition(GateState.RELEASED)

    def snapshot(self) -> ReadinessSnapshot:
        return ReadinessSnapshot(
            blue=self.ready[Side.BLUE],
            red=self.ready[Side.RED],
            state=self.state,
            remaining=self.remaining,
        )

    def restore(self, snapshot: ReadinessSnapshot) -> None:
        """Adopt a coordinator snapshot. A released gate stays released."""
        if self.is_released:
            return
        self.ready = {Side.BLUE: snapshot.blue, Side.RED: snapshot.red}
        self.remaining = snapshot.remaining
        if snapshot.state != self.state:
            self._transition(snapshot.state)
