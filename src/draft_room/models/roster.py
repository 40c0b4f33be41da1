"""Champion roster catalog."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional

from draft_room.utils.role_normalizer import normalize_role_filter, normalize_role_strict

DEFAULT_CATALOG_PATH = Path(__file__).parent.parent / "data" / "champions.json"


@dataclass(frozen=True)
class Champion:
    """A selectable roster entry."""

    id: str
    name: str
    role: str  # top, jungle, mid, bot, support
    image: str
    custom: bool = False  # image is a splash reference, not a square icon

    @property
    def splash(self) -> str:
        """Splash art URL derived from the icon reference."""
        if self.custom:
            return self.image
        file_name = self.image.rsplit("/", 1)[-1].split(".")[0]
        return f"https://ddragon.leagueoflegends.com/cdn/img/champion/splash/{file_name}_0.jpg"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "image": self.image,
            "splash": self.splash,
        }


class RosterCatalog:
    """Ordered, read-only collection of champions keyed by id."""

    def __init__(self, champions: Iterable[Champion], patch: Optional[str] = None):
        self._champions = tuple(champions)
        self._by_id = {c.id: c for c in self._champions}
        if len(self._by_id) != len(self._champions):
            raise ValueError("Champion ids must be unique")
        self.patch = patch

    def __contains__(self, champion_id: object) -> bool:
        return champion_id in self._by_id

    def __iter__(self) -> Iterator[Champion]:
        return iter(self._champions)

    def __len__(self) -> int:
        return len(self._champions)

    def get(self, champion_id: str) -> Optional[Champion]:
        return self._by_id.get(champion_id)

    @property
    def ids(self) -> list[str]:
        return [c.id for c in self._champions]

    def filter(
        self,
        role: Optional[str] = None,
        query: Optional[str] = None,
        exclude: Iterable[str] = (),
    ) -> list[Champion]:
        """Filter by role tag, case-insensitive name query and excluded ids.

        Raises:
            ValueError: If ``role`` is not a known role tag
        """
        role_tag = normalize_role_filter(role)
        needle = (query or "").strip().lower()
        excluded = set(exclude)
        return [
            c for c in self._champions
            if (role_tag is None or c.role == role_tag)
            and (not needle or needle in c.name.lower())
            and c.id not in excluded
        ]

    def available(self, unavailable: Iterable[str]) -> list[Champion]:
        """Champions not in ``unavailable``, in catalog order."""
        return self.filter(exclude=unavailable)

    @classmethod
    def from_dict(cls, data: dict) -> "RosterCatalog":
        champions = [
            Champion(
                id=entry["id"],
                name=entry["name"],
                role=normalize_role_strict(entry["role"]),
                image=entry["image"],
                custom=bool(entry.get("custom", False)),
            )
            for entry in data.get("champions", [])
        ]
        return cls(champions, patch=data.get("patch"))


def load_catalog(path: Optional[Path] = None) -> RosterCatalog:
    """Load the roster catalog from a JSON file (bundled catalog by default)."""
    catalog_path = path or DEFAULT_CATALOG_PATH
    with open(catalog_path, encoding="utf-8") as f:
        return RosterCatalog.from_dict(json.load(f))
