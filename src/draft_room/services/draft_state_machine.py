"""Turn-sequencing state machine for one game's pick/ban draft.

The machine owns the draft state of a single execution context. Local
actions go through the role-checked operations (``select_tentative``,
``confirm_selection``); state arriving from other contexts goes through
the ``apply_remote_*`` / ``mirror_countdown`` / ``restore`` receivers.
Invalid actions are logged no-ops, never exceptions, so a stale client
replaying sync messages cannot break the machine.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional

from draft_room.models.draft import (
    STANDARD_TURN_SCHEDULE,
    DraftPhase,
    DraftResult,
    DraftSnapshot,
    ResolutionSource,
    Side,
    SideSnapshot,
    SideState,
    TurnRecord,
    TurnSpec,
)
from draft_room.models.roster import Champion, RosterCatalog
from draft_room.models.session import ContextRole

logger = logging.getLogger(__name__)


class DraftEventKind(str, Enum):
    TENTATIVE_SELECTED = "tentative_selected"
    TURN_STARTED = "turn_started"
    TURN_RESOLVED = "turn_resolved"
    COUNTDOWN = "countdown"
    RESTORED = "restored"
    COMPLETED = "completed"


@dataclass(frozen=True)
class DraftEvent:
    """State-change notification delivered to subscribers."""

    kind: DraftEventKind
    step: int
    record: Optional[TurnRecord] = None
    champion_id: Optional[str] = None
    countdown: Optional[int] = None


DraftListener = Callable[[DraftEvent], None]


class DraftStateMachine:
    """Advances through a turn schedule, one resolved turn at a time."""

    def __init__(
        self,
        role: ContextRole,
        catalog: RosterCatalog,
        schedule: tuple[TurnSpec, ...] = STANDARD_TURN_SCHEDULE,
        turn_seconds: int = 30,
        excluded: Iterable[str] = (),
    ):
        """Initialize a fresh draft.

        Args:
            role: Role of the context owning this machine
            catalog: Selectable champions
            schedule: Turn order (the standard 20-turn table by default)
            turn_seconds: Countdown length of every turn
            excluded: Champion ids unavailable before the draft starts
                (fearless carry-over from earlier games)
        """
        if turn_seconds <= 0:
            raise ValueError(f"turn_seconds must be positive, got {turn_seconds}")
        if not schedule:
            raise ValueError("Turn schedule must not be empty")

        self.role = role
        self.catalog = catalog
        self.schedule = tuple(schedule)
        self.turn_seconds = turn_seconds

        self.excluded: frozenset[str] = frozenset(excluded)
        self.blue = SideState()
        self.red = SideState()
        self.unavailable: set[str] = set(self.excluded)
        self.step_index = 0
        self.tentative: Optional[str] = None
        self.countdown = turn_seconds
        self.phase = DraftPhase.AWAITING_READINESS
        self.history: list[TurnRecord] = []

        self._listeners: list[DraftListener] = []

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def subscribe(self, listener: DraftListener) -> Callable[[], None]:
        """Register a state-change listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, kind: DraftEventKind, **kwargs) -> None:
        event = DraftEvent(kind=kind, step=self.step_index, **kwargs)
        for listener in list(self._listeners):
            listener(event)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def active_turn(self) -> Optional[TurnSpec]:
        """The turn being played, or None outside the turn_active phase."""
        if self.phase != DraftPhase.TURN_ACTIVE or self.step_index >= len(self.schedule):
            return None
        return self.schedule[self.step_index]

    @property
    def is_complete(self) -> bool:
        return self.phase == DraftPhase.COMPLETE

    def side_state(self, side: Side) -> SideState:
        return self.blue if side == Side.BLUE else self.red

    def is_available(self, champion_id: str) -> bool:
        return champion_id in self.catalog and champion_id not in self.unavailable

    def available_champions(self) -> list[Champion]:
        return self.catalog.available(self.unavailable)

    def can_act(self) -> bool:
        """Whether this context may act on the active turn."""
        turn = self.active_turn
        return turn is not None and self.role.may_act_for(turn.side)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def mark_counting_down(self) -> None:
        """Reflect the readiness countdown on the draft phase."""
        if self.phase == DraftPhase.AWAITING_READINESS:
            self.phase = DraftPhase.COUNTING_DOWN

    def start(self) -> bool:
        """Begin the first turn. Returns False if the draft already started."""
        if self.phase not in (DraftPhase.AWAITING_READINESS, DraftPhase.COUNTING_DOWN):
            return False
        self.phase = DraftPhase.TURN_ACTIVE
        logger.info(f"Draft started ({len(self.schedule)} turns, {self.turn_seconds}s each)")
        self._begin_turn()
        return True

    def _begin_turn(self) -> None:
        if self.step_index >= len(self.schedule):
            self._complete()
            return
        self.tentative = None
        self.countdown = self.turn_seconds
        self._emit(DraftEventKind.TURN_STARTED, countdown=self.countdown)

    def _complete(self) -> None:
        self.phase = DraftPhase.COMPLETE
        self.tentative = None
        self.countdown = 0
        logger.info(
            f"Draft complete: blue bans={self.blue.bans} picks={self.blue.picks}, "
            f"red bans={self.red.bans} picks={self.red.picks}"
        )
        self._emit(DraftEventKind.COMPLETED)

    # ------------------------------------------------------------------
    # Local actions (role-checked)
    # ------------------------------------------------------------------

    def select_tentative(self, side: Side, champion_id: str) -> bool:
        """Hover a champion for the active turn.

        No-op unless this context may act for ``side``, ``side`` holds the
        active turn and the champion is available. Returns whether the
        selection was applied.
        """
        if not self.role.may_act_for(side):
            logger.debug(f"Rejected selection of {champion_id} for {side}: role {self.role}")
            return False
        return self._set_tentative(side, champion_id)

    def confirm_selection(self) -> Optional[TurnRecord]:
        """Lock in the tentative selection and advance to the next turn."""
        turn = self.active_turn
        if turn is None or self.tentative is None:
            return None
        if not self.role.may_act_for(turn.side):
            logger.debug(f"Rejected lock for {turn.side}: role {self.role}")
            return None
        return self._resolve(self.tentative, ResolutionSource.CONFIRMED)

    def advance_on_timeout(self) -> Optional[TurnRecord]:
        """Resolve the active turn on countdown expiry.

        Locks the tentative selection when there is one, otherwise passes
        and leaves the turn's slot empty.
        """
        if self.active_turn is None:
            return None
        return self._resolve(self.tentative, ResolutionSource.TIMEOUT)

    def tick(self) -> int:
        """Advance the countdown by one second.

        Reaching zero resolves the turn through ``advance_on_timeout``.
        Returns the remaining seconds of the turn that was ticked.
        """
        if self.active_turn is None:
            return self.countdown
        if self.countdown > 0:
            self.countdown -= 1
            self._emit(DraftEventKind.COUNTDOWN, countdown=self.countdown)
        remaining = self.countdown
        if remaining == 0:
            self.advance_on_timeout()
        return remaining

    # ------------------------------------------------------------------
    # Remote state (from other contexts)
    # ------------------------------------------------------------------

    def apply_remote_tentative(self, side: Side, champion_id: str, step: int) -> bool:
        if step != self.step_index:
            logger.debug(f"Ignoring selection for step {step} (local step {self.step_index})")
            return False
        return self._set_tentative(side, champion_id)

    def apply_remote_lock(self, side: Side, champion_id: str, step: int) -> Optional[TurnRecord]:
        """Apply a lock broadcast by another context for turn ``step``.

        A lock for a champion already recorded, or for a turn this context
        has already resolved, is absorbed as a no-op, so duplicate or late
        locks never land on a later slot.
        """
        if champion_id in self.unavailable:
            logger.debug(f"Ignoring lock for already unavailable {champion_id}")
            return None
        if step != self.step_index:
            logger.info(f"Ignoring lock {side.value}:{champion_id} for step {step} (local step {self.step_index})")
            return None
        turn = self.active_turn
        if turn is None or turn.side != side or champion_id not in self.catalog:
            logger.debug(f"Ignoring out-of-turn lock {side}:{champion_id} at step {self.step_index}")
            return None
        return self._resolve(champion_id, ResolutionSource.REMOTE)

    def mirror_countdown(self, remaining: int, step: int) -> None:
        """Adopt a countdown value broadcast by the timer authority.

        Ticks for another step are stale and ignored; a mirrored zero
        resolves the turn locally.
        """
        if self.active_turn is None or step != self.step_index:
            return
        self.countdown = max(0, remaining)
        self._emit(DraftEventKind.COUNTDOWN, countdown=self.countdown)
        if self.countdown == 0:
            self.advance_on_timeout()

    def restore(self, snapshot: DraftSnapshot) -> bool:
        """Replace local state with a coordinator snapshot.

        Snapshots behind the local step are ignored so the step index
        never moves backwards.
        """
        if snapshot.step_index < self.step_index:
            logger.info(
                f"Ignoring stale snapshot at step {snapshot.step_index} (local step {self.step_index})"
            )
            return False

        self.step_index = min(snapshot.step_index, len(self.schedule))
        self.phase = snapshot.phase
        self.blue = snapshot.blue.to_state()
        self.red = snapshot.red.to_state()
        self.excluded = frozenset(snapshot.excluded)
        self.unavailable = set(snapshot.unavailable) | self.excluded
        self.tentative = snapshot.tentative
        self.countdown = max(0, snapshot.countdown)
        self.history = []
        if self.step_index >= len(self.schedule):
            self.phase = DraftPhase.COMPLETE
            self.tentative = None
        self._emit(DraftEventKind.RESTORED)
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _set_tentative(self, side: Side, champion_id: str) -> bool:
        turn = self.active_turn
        if turn is None or turn.side != side:
            logger.debug(f"Ignoring selection for {side}: not the active side at step {self.step_index}")
            return False
        if not self.is_available(champion_id):
            logger.debug(f"Ignoring selection of unavailable champion {champion_id}")
            return False
        self.tentative = champion_id
        self._emit(DraftEventKind.TENTATIVE_SELECTED, champion_id=champion_id)
        return True

    def _resolve(self, champion_id: Optional[str], source: ResolutionSource) -> TurnRecord:
        turn = self.schedule[self.step_index]
        if champion_id is not None:
            self.side_state(turn.side).record(turn.action, champion_id)
            self.unavailable.add(champion_id)

        record = TurnRecord(
            step=self.step_index,
            side=turn.side,
            action=turn.action,
            champion_id=champion_id,
            source=source,
        )
        self.history.append(record)
        self.tentative = None
        self.step_index += 1

        if record.is_pass:
            logger.info(f"Turn {record.step + 1} ({turn.side.value} {turn.action.value}) passed on timeout")
        else:
            logger.info(
                f"Turn {record.step + 1}: {turn.side.value} {turn.action.value} {champion_id} ({source.value})"
            )

        self._emit(DraftEventKind.TURN_RESOLVED, record=record)
        self._begin_turn()
        return record

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def snapshot(self) -> DraftSnapshot:
        return DraftSnapshot(
            step_index=self.step_index,
            phase=self.phase,
            blue=SideSnapshot.from_state(self.blue),
            red=SideSnapshot.from_state(self.red),
            unavailable=sorted(self.unavailable),
            excluded=sorted(self.excluded),
            tentative=self.tentative,
            countdown=self.countdown,
        )

    def result(self, game_index: int) -> Optional[DraftResult]:
        """Terminal result of the draft, or None while it is running."""
        if not self.is_complete:
            return None
        return DraftResult(game_index=game_index, blue=self.blue.copy(), red=self.red.copy())
