"""One execution context (tab) participating in a shared draft.

A context owns its own state machine and readiness gate, and keeps them
convergent with other contexts purely through the sync channel: local
actions are applied and then broadcast, inbound messages are dispatched
by kind onto the receiver operations. Countdowns run as cancellable
asyncio tasks owned by the context.
"""

import asyncio
import logging
from typing import Any, Callable, Coroutine, Iterable, Optional

from draft_room.models.draft import (
    STANDARD_TURN_SCHEDULE,
    DraftResult,
    DraftSnapshot,
    GateState,
    ReadinessSnapshot,
    ResolutionSource,
    Side,
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
from draft_room.models.roster import RosterCatalog
from draft_room.models.session import ContextRole
from draft_room.services.draft_state_machine import DraftEvent, DraftEventKind, DraftStateMachine
from draft_room.services.readiness_gate import DEFAULT_COUNTDOWN_SECONDS, ReadinessGate
from draft_room.services.sync_channel import SyncChannel

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[DraftResult], Any]


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class DraftContext:
    """Binds a draft state machine, readiness gate and sync endpoint."""

    def __init__(
        self,
        role: ContextRole,
        channel: SyncChannel,
        catalog: RosterCatalog,
        *,
        game_index: int = 1,
        schedule: tuple[TurnSpec, ...] = STANDARD_TURN_SCHEDULE,
        turn_seconds: int = 30,
        ready_countdown_seconds: int = DEFAULT_COUNTDOWN_SECONDS,
        excluded: Iterable[str] = (),
        tick_interval: Optional[float] = 1.0,
        on_complete: Optional[CompletionCallback] = None,
    ):
        """Initialize a context.

        Args:
            role: Explicit role of this context in the session
            channel: This context's sync endpoint
            catalog: Selectable champions
            game_index: Game of the series being drafted (1-based)
            schedule: Turn order
            turn_seconds: Countdown per turn
            ready_countdown_seconds: Countdown after both sides are ready
            excluded: Champions unavailable from the start (fearless)
            tick_interval: Seconds per countdown tick; None disables the
                timer tasks so the clock is driven through ``tick()``
            on_complete: Called once with the DraftResult when the
                schedule is exhausted
        """
        self.role = role
        self.channel = channel
        self.game_index = game_index
        self.tick_interval = tick_interval
        self.on_complete = on_complete

        self.machine = DraftStateMachine(
            role,
            catalog,
            schedule=schedule,
            turn_seconds=turn_seconds,
            excluded=excluded,
        )
        self.gate = ReadinessGate(role, countdown_seconds=ready_countdown_seconds)

        self._turn_task: Optional[asyncio.Task] = None
        self._ready_task: Optional[asyncio.Task] = None
        self._receive_task: Optional[asyncio.Task] = None
        self._completion_sent = False

        self.machine.subscribe(self._on_draft_event)
        self.gate.subscribe(self._on_gate_state)

    @property
    def context_id(self) -> str:
        return self.channel.context_id

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        """Announce this context. A coordinator publishes its full state."""
        logger.info(f"Context {self.context_id} ({self.role}) opened on {self.channel.name}")
        self.announce_state()

    def start(self) -> asyncio.Task:
        """Open the context and start its receive loop on the running loop."""
        self.open()
        self._receive_task = asyncio.get_running_loop().create_task(self.run())
        return self._receive_task

    async def run(self) -> None:
        """Apply inbound messages until the channel closes or the task is cancelled."""
        while not self.channel.closed:
            message = await self.channel.receive()
            try:
                self.handle(message)
            except Exception:
                logger.exception(f"Context {self.context_id} failed to apply {message.type}")

    def pump(self) -> int:
        """Apply every queued message without waiting. Returns the count."""
        messages = self.channel.drain()
        for message in messages:
            self.handle(message)
        return len(messages)

    async def close(self) -> None:
        """Cancel timers and the receive loop, then leave the channel."""
        tasks = [t for t in (self._turn_task, self._ready_task, self._receive_task) if t]
        self._turn_task = self._ready_task = self._receive_task = None
        current = _current_task()
        for task in tasks:
            if task is not current and not task.done():
                task.cancel()
        for task in tasks:
            if task is current:
                continue
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.channel.close()
        logger.info(f"Context {self.context_id} closed")

    def load(self, draft: DraftSnapshot, readiness: ReadinessSnapshot) -> None:
        """Adopt persisted state, e.g. a completed game opened for viewing."""
        self.machine.restore(draft)
        self.gate.restore(readiness)

    # ------------------------------------------------------------------
    # Local actions
    # ------------------------------------------------------------------

    def announce_state(self) -> bool:
        """Broadcast a full state snapshot (coordinator only)."""
        if not self.role.is_coordinator:
            return False
        self.channel.broadcast(
            FullStateSnapshot(
                game_index=self.game_index,
                draft=self.machine.snapshot(),
                readiness=self.gate.snapshot(),
            )
        )
        return True

    def mark_ready(self, side: Side) -> bool:
        if self.gate.is_released or self.gate.ready[side] or not self.role.may_act_for(side):
            return False
        self.channel.broadcast(ReadinessMarked(side=side))
        return self.gate.mark_ready(side)

    def select(self, side: Side, champion_id: str) -> bool:
        if not self.machine.select_tentative(side, champion_id):
            return False
        self.channel.broadcast(
            TentativeSelection(side=side, champion_id=champion_id, step=self.machine.step_index)
        )
        return True

    def confirm(self) -> Optional[TurnRecord]:
        # The lock broadcast happens in the TURN_RESOLVED listener
        return self.machine.confirm_selection()

    def tick(self) -> Optional[int]:
        """Drive one second of whichever countdown this context owns.

        Returns the remaining seconds, or None if this context is not the
        timer authority for the running countdown.
        """
        if self.gate.state == GateState.COUNTDOWN_RUNNING:
            if not self.role.is_coordinator:
                return None
            return self._tick_readiness()
        turn = self.machine.active_turn
        if turn is None or not self.role.is_timer_authority(turn.side):
            return None
        return self._tick_turn()

    # ------------------------------------------------------------------
    # Inbound messages
    # ------------------------------------------------------------------

    def handle(self, message: SyncMessage) -> None:
        """Apply one message received from another context."""
        if message.sender == self.context_id:
            return

        if isinstance(message, FullStateSnapshot):
            self._apply_snapshot(message)
        elif isinstance(message, TentativeSelection):
            self.machine.apply_remote_tentative(message.side, message.champion_id, message.step)
        elif isinstance(message, ConfirmedLock):
            self.machine.apply_remote_lock(message.side, message.champion_id, message.step)
        elif isinstance(message, TimerTick):
            self._apply_tick(message)
        elif isinstance(message, ReadinessMarked):
            self.gate.apply_remote_ready(message.side)
        elif isinstance(message, CountdownStarted):
            if not self.role.is_coordinator:
                self.gate.start_countdown()

    def _apply_snapshot(self, message: FullStateSnapshot) -> None:
        if self.role.is_coordinator or message.game_index != self.game_index:
            return
        self.machine.restore(message.draft)
        self.gate.restore(message.readiness)

    def _apply_tick(self, message: TimerTick) -> None:
        if message.scope == "readiness":
            if not self.role.is_coordinator:
                self.gate.mirror_remaining(message.remaining)
            return
        turn = self.machine.active_turn
        if turn is None or self.role.is_timer_authority(turn.side):
            return
        self.machine.mirror_countdown(message.remaining, message.step)

    # ------------------------------------------------------------------
    # State-change reactions
    # ------------------------------------------------------------------

    def _on_draft_event(self, event: DraftEvent) -> None:
        if event.kind == DraftEventKind.TURN_RESOLVED:
            record = event.record
            if (
                record is not None
                and record.source != ResolutionSource.REMOTE
                and record.champion_id is not None
                and self.role.may_act_for(record.side)
            ):
                self.channel.broadcast(
                    ConfirmedLock(side=record.side, champion_id=record.champion_id, step=record.step)
                )
        elif event.kind in (DraftEventKind.TURN_STARTED, DraftEventKind.RESTORED):
            self._restart_turn_timer()
        elif event.kind == DraftEventKind.COMPLETED:
            self._cancel(self._turn_task)
            self._turn_task = None
            self._notify_complete()

    def _on_gate_state(self, state: GateState) -> None:
        if state == GateState.COUNTDOWN_RUNNING:
            self.machine.mark_counting_down()
            if self.role.is_coordinator:
                self.channel.broadcast(CountdownStarted())
                self._start_ready_timer()
        elif state == GateState.RELEASED:
            self._cancel(self._ready_task)
            self._ready_task = None
            self.machine.start()

    def _notify_complete(self) -> None:
        if self._completion_sent:
            return
        self._completion_sent = True
        result = self.machine.result(self.game_index)
        if self.on_complete is not None and result is not None:
            self.on_complete(result)

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        return asyncio.get_running_loop().create_task(coro)

    @staticmethod
    def _cancel(task: Optional[asyncio.Task]) -> None:
        # A task resolving its own turn must not cancel itself
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()

    def _restart_turn_timer(self) -> None:
        self._cancel(self._turn_task)
        self._turn_task = None
        if self.tick_interval is None:
            return
        turn = self.machine.active_turn
        if turn is None or not self.role.is_timer_authority(turn.side):
            return
        self._turn_task = self._spawn(self._run_turn_countdown(self.machine.step_index))

    def _start_ready_timer(self) -> None:
        self._cancel(self._ready_task)
        self._ready_task = None
        if self.tick_interval is not None:
            self._ready_task = self._spawn(self._run_ready_countdown())

    async def _run_turn_countdown(self, step: int) -> None:
        while self.machine.step_index == step and self.machine.active_turn is not None:
            await asyncio.sleep(self.tick_interval)
            if self.machine.step_index != step or self.machine.active_turn is None:
                return
            self._tick_turn()

    async def _run_ready_countdown(self) -> None:
        while self.gate.state == GateState.COUNTDOWN_RUNNING:
            await asyncio.sleep(self.tick_interval)
            if self.gate.state != GateState.COUNTDOWN_RUNNING:
                return
            self._tick_readiness()

    def _tick_turn(self) -> int:
        step = self.machine.step_index
        remaining = self.machine.tick()
        self.channel.broadcast(TimerTick(remaining=remaining, step=step, scope="turn"))
        if remaining == 0:
            # Contexts whose clock lags the coordinator's adopt its resolution
            self.announce_state()
        return remaining

    def _tick_readiness(self) -> int:
        remaining = self.gate.tick()
        self.channel.broadcast(TimerTick(remaining=remaining, step=0, scope="readiness"))
        return remaining
