"""Utility modules for draft_room."""

from draft_room.utils.role_normalizer import (
    CANONICAL_ROLES,
    normalize_role,
    normalize_role_filter,
    normalize_role_strict,
)

__all__ = [
    "CANONICAL_ROLES",
    "normalize_role",
    "normalize_role_filter",
    "normalize_role_strict",
]
