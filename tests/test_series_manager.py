"""Tests for series progress and fearless exclusions."""

import pytest

from draft_room.models.draft import Side, SideState
from draft_room.models.roster import RosterCatalog
from draft_room.models.session import ContextRole, DraftMode
from draft_room.services.draft_state_machine import DraftStateMachine
from draft_room.services.series_manager import SeriesAccessDenied, SeriesManager


def _sides(blue_pick: str = "ahri", red_pick: str = "akali"):
    return (
        SideState(bans=["aatrox"], picks=[blue_pick]),
        SideState(bans=["alistar"], picks=[red_pick]),
    )


class TestAccess:
    """Tests for is_game_accessible() and require_accessible()."""

    def test_only_first_game_accessible_initially(self):
        series = SeriesManager(total_games=3)
        assert series.is_game_accessible(1) is True
        assert series.is_game_accessible(2) is False
        assert series.is_game_accessible(0) is False

    def test_require_accessible_raises_for_future_game(self):
        series = SeriesManager(total_games=3)
        with pytest.raises(SeriesAccessDenied) as exc:
            series.require_accessible(2)
        assert exc.value.game_index == 2
        assert exc.value.active_game_index == 1
        assert "game 1 must be completed" in str(exc.value)

    def test_completed_games_stay_accessible(self):
        series = SeriesManager(total_games=3)
        series.record_completion(1, *_sides())
        assert series.is_game_accessible(1) is True
        assert series.is_game_accessible(2) is True


class TestRecordCompletion:
    """Tests for record_completion()."""

    def test_advances_active_game(self):
        series = SeriesManager(total_games=3)
        result = series.record_completion(1, *_sides())
        assert result.game_index == 1
        assert series.active_game_index == 2

    def test_last_game_does_not_advance(self):
        series = SeriesManager(total_games=1)
        series.record_completion(1, *_sides())
        assert series.active_game_index == 1
        assert series.is_complete

    def test_duplicate_completion_is_ignored(self):
        series = SeriesManager(total_games=3)
        series.record_completion(1, *_sides())
        assert series.record_completion(1, *_sides("braum", "brand")) is None
        assert series.active_game_index == 2
        assert series.get_result(1).blue.picks == ["ahri"]

    def test_inaccessible_game_is_rejected(self):
        series = SeriesManager(total_games=3)
        assert series.record_completion(3, *_sides()) is None
        assert series.results == []

    def test_invalid_total(self):
        with pytest.raises(ValueError):
            SeriesManager(total_games=0)


class TestExcludedEntities:
    """Tests for compute_excluded_entities()."""

    def test_fearless_excludes_picks_and_bans(self):
        series = SeriesManager(total_games=3)
        series.record_completion(1, *_sides())
        assert series.compute_excluded_entities(DraftMode.FEARLESS) == {
            "aatrox", "ahri", "alistar", "akali",
        }

    def test_normal_mode_excludes_nothing(self):
        series = SeriesManager(total_games=3)
        series.record_completion(1, *_sides())
        assert series.compute_excluded_entities(DraftMode.NORMAL) == set()

    def test_fearless_game_two_rejects_game_one_pick(self, catalog: RosterCatalog):
        series = SeriesManager(total_games=3)
        series.record_completion(1, SideState(picks=["jinx"]), SideState())

        game_two = DraftStateMachine(
            ContextRole.coordinator(),
            catalog,
            excluded=series.compute_excluded_entities(DraftMode.FEARLESS),
        )
        game_two.start()
        assert game_two.select_tentative(Side.BLUE, "jinx") is False
        assert game_two.select_tentative(Side.BLUE, "ahri") is True

    def test_normal_game_two_allows_game_one_pick(self, catalog: RosterCatalog):
        series = SeriesManager(total_games=3)
        series.record_completion(1, SideState(picks=["jinx"]), SideState())

        game_two = DraftStateMachine(
            ContextRole.coordinator(),
            catalog,
            excluded=series.compute_excluded_entities(DraftMode.NORMAL),
        )
        game_two.start()
        assert game_two.select_tentative(Side.BLUE, "jinx") is True


class TestWinnersAndScore:
    def test_declare_winner_updates_score(self):
        series = SeriesManager(total_games=3)
        series.record_completion(1, *_sides())
        series.declare_winner(1, Side.RED)
        assert series.series_score == (0, 1)
        assert series.is_complete is False

    def test_declare_winner_for_undrafted_game(self):
        series = SeriesManager(total_games=3)
        assert series.declare_winner(1, Side.BLUE) is None

    def test_two_wins_complete_best_of_three(self):
        series = SeriesManager(total_games=3)
        series.record_completion(1, *_sides(), winner=Side.BLUE)
        series.record_completion(2, *_sides(), winner=Side.BLUE)
        assert series.is_complete

    def test_snapshot_round_trip(self):
        series = SeriesManager(total_games=5)
        series.record_completion(1, *_sides(), winner=Side.BLUE)
        restored = SeriesManager.from_snapshot(series.snapshot())
        assert restored.active_game_index == 2
        assert restored.get_result(1).winner == Side.BLUE
        assert restored.total_games == 5
