"""Tests for sync message parsing."""

from draft_room.models.draft import DraftSnapshot, GateState, ReadinessSnapshot, Side
from draft_room.models.messages import (
    ConfirmedLock,
    CountdownStarted,
    FullStateSnapshot,
    TimerTick,
    dump_message,
    parse_message,
)


class TestParseMessage:
    """Tests for parse_message()."""

    def test_dispatches_on_type(self):
        message = parse_message({"type": "confirmed_lock", "side": "red", "champion_id": "ahri"})
        assert isinstance(message, ConfirmedLock)
        assert message.side == Side.RED

    def test_lock_carries_its_step(self):
        message = parse_message(
            {"type": "confirmed_lock", "side": "red", "champion_id": "ahri", "step": 8}
        )
        assert message.step == 8
        hover = {"type": "tentative_selection", "side": "red", "champion_id": "ahri", "step": -1}
        assert parse_message(hover) is None

    def test_timer_tick_defaults(self):
        message = parse_message({"type": "timer_tick", "remaining": 12})
        assert isinstance(message, TimerTick)
        assert message.scope == "turn"
        assert message.step == 0

    def test_countdown_started_has_no_payload(self):
        assert isinstance(parse_message({"type": "countdown_started"}), CountdownStarted)

    def test_unknown_type_is_dropped(self):
        assert parse_message({"type": "init", "state": {}}) is None

    def test_invalid_payload_is_dropped(self):
        assert parse_message({"type": "confirmed_lock", "side": "green", "champion_id": "ahri"}) is None
        assert parse_message({"type": "timer_tick", "remaining": -1}) is None
        assert parse_message("not a dict") is None


class TestDumpMessage:
    def test_snapshot_is_json_compatible(self):
        message = FullStateSnapshot(
            game_index=2,
            draft=DraftSnapshot(step_index=4, unavailable=["ahri"]),
            readiness=ReadinessSnapshot(blue=True, red=True, state=GateState.RELEASED),
        )
        data = dump_message(message)
        assert data["type"] == "full_state_snapshot"
        assert data["draft"]["phase"] == "awaiting_readiness"
        assert data["readiness"]["state"] == "released"
        assert parse_message(data) == message
