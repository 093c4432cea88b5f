from __future__ import annotations

from enum import Enum
from typing import Optional


class Role(str, Enum):
    """Roles known to the district hierarchy."""
    CEO = "CEO"
    DEO = "DEO"
    DDEO = "DDEO"
    AEO = "AEO"
    HEAD_TEACHER = "HEAD_TEACHER"
    TEACHER = "TEACHER"


# DDEO and AEO share a tier; neither supervises the other.
HIERARCHY_RANKS: dict[Role, int] = {
    Role.CEO: 5,
    Role.DEO: 4,
    Role.DDEO: 3,
    Role.AEO: 3,
    Role.HEAD_TEACHER: 2,
    Role.TEACHER: 1,
}

UNKNOWN_RANK = 0

SCHOOL_STAFF_ROLES = frozenset({Role.HEAD_TEACHER, Role.TEACHER})


# PUBLIC_INTERFACE
def parse_role(value: Optional[str]) -> Optional[Role]:
    """Return the Role for a role string, or None when the string is not a known role."""
    if value is None:
        return None
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        return None


# PUBLIC_INTERFACE
def hierarchy_rank(role: Optional[str]) -> int:
    """
    Return the supervisory rank of a role.

    Unknown or missing roles rank 0, below every real role, so they never
    outrank anyone.
    """
    parsed = parse_role(role)
    if parsed is None:
        return UNKNOWN_RANK
    return HIERARCHY_RANKS[parsed]
