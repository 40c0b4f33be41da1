"""Role assignment from join-link parameters, and link generation."""

from typing import Optional
from urllib.parse import urlencode

from draft_room.models.draft import Side
from draft_room.models.session import ContextRole

SPECTATOR_PARAMS = {"spectate", "spectator"}
COORDINATOR_PARAMS = {"", "coordinator", "admin"}


def parse_role(side: Optional[str]) -> ContextRole:
    """Map a ``side`` join parameter to an explicit context role.

    ``blue``/``red`` join as that side's participant, ``spectate`` as a
    spectator, and a missing parameter as the coordinator.

    Raises:
        ValueError: for any other value
    """
    if side is None:
        return ContextRole.coordinator()
    value = side.strip().lower()
    if value in COORDINATOR_PARAMS:
        return ContextRole.coordinator()
    if value in SPECTATOR_PARAMS:
        return ContextRole.spectator()
    try:
        return ContextRole.participant(Side(value))
    except ValueError:
        raise ValueError(f"Unknown side parameter: {side!r}") from None


def build_join_links(base_url: str, session_id: str, game_index: int = 1) -> dict[str, str]:
    """Shareable URLs for the blue, red and spectator seats of one game."""
    base = base_url.rstrip("/")

    def link(side: str) -> str:
        query = urlencode({"session": session_id, "side": side, "game": game_index})
        return f"{base}?{query}"

    return {
        "blue": link(Side.BLUE.value),
        "red": link(Side.RED.value),
        "spectator": link("spectate"),
    }
