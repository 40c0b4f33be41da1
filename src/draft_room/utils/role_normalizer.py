"""Role tag normalization for the champion roster.

Roster entries and role filters share one closed set of lowercase tags:
top, jungle, mid, bot, support.
"""

from typing import Optional

CANONICAL_ROLES = frozenset({"top", "jungle", "mid", "bot", "support"})

ROLE_ALIASES: dict[str, str] = {
    "toplane": "top",
    "jng": "jungle",
    "jg": "jungle",
    "jungler": "jungle",
    "middle": "mid",
    "midlane": "mid",
    "adc": "bot",
    "bottom": "bot",
    "marksman": "bot",
    "sup": "support",
    "supp": "support",
}

# Filter values that mean "no role filter"
ANY_ROLE = frozenset({"", "all", "any"})


def normalize_role(role: Optional[str]) -> Optional[str]:
    """Normalize a role tag to its canonical lowercase form.

    Examples:
        >>> normalize_role("JNG")
        'jungle'
        >>> normalize_role("ADC")
        'bot'
        >>> normalize_role("wizard") is None
        True
    """
    if role is None:
        return None

    role_lower = role.strip().lower()
    if role_lower in CANONICAL_ROLES:
        return role_lower
    return ROLE_ALIASES.get(role_lower)


def normalize_role_strict(role: str) -> str:
    """Normalize a role tag, raising ValueError if unknown."""
    normalized = normalize_role(role)
    if normalized is None:
        raise ValueError(f"Unknown role: {role}")
    return normalized


def normalize_role_filter(role: Optional[str]) -> Optional[str]:
    """Normalize a role filter value; ``None`` means every role.

    Raises:
        ValueError: If the filter names an unknown role
    """
    if role is None or role.strip().lower() in ANY_ROLE:
        return None
    return normalize_role_strict(role)
