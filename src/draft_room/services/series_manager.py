"""Series progress tracking for best-of-N drafts."""

import logging
from typing import Iterable, Optional

from draft_room.models.draft import Side, SideSnapshot, SideState
from draft_room.models.series import GameResult, SeriesState
from draft_room.models.session import DraftMode

logger = logging.getLogger(__name__)


class SeriesAccessDenied(PermissionError):
    """Raised when a game beyond the active one is requested."""

    def __init__(self, game_index: int, active_game_index: int):
        self.game_index = game_index
        self.active_game_index = active_game_index
        super().__init__(
            f"Game {game_index} is locked: game {active_game_index} must be completed first"
        )


class SeriesManager:
    """Tracks which game of a series is active and what earlier games used.

    Games are numbered from 1. A game becomes accessible once every game
    before it has been drafted; its result is recorded exactly once.
    """

    def __init__(
        self,
        total_games: int = 1,
        results: Iterable[GameResult] = (),
        active_game_index: int = 1,
    ):
        if total_games < 1:
            raise ValueError(f"total_games must be at least 1, got {total_games}")
        self.total_games = total_games
        self.results: list[GameResult] = sorted(results, key=lambda r: r.game_index)
        self.active_game_index = min(max(1, active_game_index), total_games)

    def is_game_accessible(self, game_index: int) -> bool:
        return 1 <= game_index <= self.active_game_index

    def require_accessible(self, game_index: int) -> None:
        """Raise SeriesAccessDenied unless ``game_index`` may be opened."""
        if not self.is_game_accessible(game_index):
            raise SeriesAccessDenied(game_index, self.active_game_index)

    def get_result(self, game_index: int) -> Optional[GameResult]:
        return next((r for r in self.results if r.game_index == game_index), None)

    def is_game_completed(self, game_index: int) -> bool:
        return self.get_result(game_index) is not None

    def record_completion(
        self,
        game_index: int,
        blue: SideState,
        red: SideState,
        winner: Optional[Side] = None,
    ) -> Optional[GameResult]:
        """Record a finished draft.

        Rejected (returns None) for a game already recorded or not yet
        accessible. Recording the active game advances the series unless
        it was the last game.
        """
        if self.is_game_completed(game_index):
            logger.info(f"Game {game_index} already recorded, ignoring duplicate completion")
            return None
        if not self.is_game_accessible(game_index):
            logger.warning(f"Refusing to record game {game_index}: active game is {self.active_game_index}")
            return None

        result = GameResult(
            game_index=game_index,
            blue=SideSnapshot.from_state(blue),
            red=SideSnapshot.from_state(red),
            winner=winner,
        )
        self.results.append(result)
        self.results.sort(key=lambda r: r.game_index)

        if game_index == self.active_game_index and game_index < self.total_games:
            self.active_game_index += 1
            logger.info(f"Game {game_index} recorded, advancing to game {self.active_game_index}")
        else:
            logger.info(f"Game {game_index} recorded")
        return result

    def declare_winner(self, game_index: int, winner: Side) -> Optional[GameResult]:
        """Attach the match outcome to a recorded game."""
        result = self.get_result(game_index)
        if result is None:
            return None
        result.winner = Side(winner)
        return result

    def compute_excluded_entities(self, mode: DraftMode) -> set[str]:
        """Champions unavailable for the next game because of earlier games."""
        if DraftMode(mode) != DraftMode.FEARLESS:
            return set()
        excluded: set[str] = set()
        for result in self.results:
            excluded |= result.champions
        return excluded

    @property
    def series_score(self) -> tuple[int, int]:
        blue_wins = sum(1 for r in self.results if r.winner == Side.BLUE)
        red_wins = sum(1 for r in self.results if r.winner == Side.RED)
        return blue_wins, red_wins

    @property
    def is_complete(self) -> bool:
        blue_wins, red_wins = self.series_score
        wins_needed = (self.total_games // 2) + 1
        return (
            blue_wins >= wins_needed
            or red_wins >= wins_needed
            or len(self.results) >= self.total_games
        )

    def snapshot(self) -> SeriesState:
        return SeriesState(
            total_games=self.total_games,
            active_game_index=self.active_game_index,
            results=[r.model_copy(deep=True) for r in self.results],
        )

    @classmethod
    def from_snapshot(cls, state: SeriesState) -> "SeriesManager":
        return cls(
            total_games=state.total_games,
            results=[r.model_copy(deep=True) for r in state.results],
            active_game_index=state.active_game_index,
        )
