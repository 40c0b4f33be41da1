"""Series models for multi-game formats."""

from typing import Optional

from pydantic import BaseModel, Field

from draft_room.models.draft import DraftPhase, DraftSnapshot, Side, SideSnapshot


class GameResult(BaseModel):
    """A completed game's draft plus its (possibly undeclared) winner."""

    game_index: int = Field(ge=1)
    blue: SideSnapshot
    red: SideSnapshot
    winner: Optional[Side] = None

    @property
    def champions(self) -> set[str]:
        """Every champion banned or picked in this game."""
        return set(self.blue.bans + self.blue.picks + self.red.bans + self.red.picks)

    def to_draft_snapshot(self, schedule_length: int) -> DraftSnapshot:
        """Terminal draft snapshot for viewing a completed game."""
        return DraftSnapshot(
            step_index=schedule_length,
            phase=DraftPhase.COMPLETE,
            blue=self.blue,
            red=self.red,
            unavailable=sorted(self.champions),
        )


class SeriesState(BaseModel):
    """Serializable series progress."""

    total_games: int = Field(default=1, ge=1)
    active_game_index: int = Field(default=1, ge=1)
    results: list[GameResult] = Field(default_factory=list)
