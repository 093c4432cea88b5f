"""
Request visibility rules.

Decides whether a user may see a data request. Pure functions over rows the
caller has already loaded; nothing here touches the database.

Checks run in a fixed order and the first match wins:

1. the user created the request
2. the user is a named assignee
3. school staff (head teacher / teacher) whose school holds a school-level assignment
4. the user outranks the creator and the creator's jurisdiction falls inside the user's

Archived requests are filtered out by the caller before any of this runs.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Literal, Optional, Protocol
from uuid import UUID

from src.core.hierarchy import SCHOOL_STAFF_ROLES, Role, hierarchy_rank, parse_role

SchoolMatch = Literal["school_name", "school_id"]


class RequestLike(Protocol):
    id: UUID
    created_by: UUID
    created_by_role: str
    created_by_school_id: Optional[UUID]
    created_by_cluster_id: Optional[UUID]
    created_by_district_id: Optional[UUID]


class AssigneeLike(Protocol):
    request_id: UUID
    user_id: UUID
    school_id: Optional[UUID]
    school_name: Optional[str]


@dataclass(frozen=True)
class Viewer:
    """The requesting user's identity and jurisdiction, fixed for one visibility check."""
    id: Optional[UUID]
    role: Optional[str]
    school_id: Optional[UUID] = None
    school_name: Optional[str] = None
    cluster_id: Optional[UUID] = None
    district_id: Optional[UUID] = None


class VisibilityReason(str, Enum):
    """Which rule granted visibility."""
    CREATOR = "creator"
    ASSIGNEE = "assignee"
    SCHOOL = "school"
    HIERARCHY = "hierarchy"


def _same(a: Optional[UUID], b: Optional[UUID]) -> bool:
    # Missing jurisdiction on either side never matches
    return a is not None and b is not None and a == b


def _matches_school(
    request: RequestLike,
    school_assignees: Iterable[AssigneeLike],
    viewer: Viewer,
    school_match: SchoolMatch,
) -> bool:
    if school_match == "school_id":
        if viewer.school_id is None:
            return False
        return any(
            a.request_id == request.id and _same(a.school_id, viewer.school_id)
            for a in school_assignees
        )

    if not viewer.school_name:
        return False
    wanted = viewer.school_name.upper()
    return any(
        a.request_id == request.id and a.school_name is not None and a.school_name.upper() == wanted
        for a in school_assignees
    )


def _within_jurisdiction(request: RequestLike, viewer: Viewer) -> bool:
    role = parse_role(viewer.role)
    if role is Role.CEO:
        return True
    if role in (Role.DEO, Role.DDEO):
        return _same(viewer.district_id, request.created_by_district_id)
    if role is Role.AEO:
        return _same(viewer.cluster_id, request.created_by_cluster_id)
    if role is Role.HEAD_TEACHER:
        return _same(viewer.school_id, request.created_by_school_id)
    return False


# PUBLIC_INTERFACE
def visibility_reason(
    request: RequestLike,
    assignees: Iterable[AssigneeLike],
    school_assignees: Iterable[AssigneeLike],
    viewer: Viewer,
    *,
    school_match: SchoolMatch = "school_name",
) -> Optional[VisibilityReason]:
    """
    Return the rule that makes `request` visible to `viewer`, or None when it is hidden.

    Parameters:
        request: the data request row
        assignees: assignee rows of this request
        school_assignees: assignee rows that may match the viewer's school; rows of
            other requests are ignored, so a wider set (even every assignee) is fine
        viewer: requesting user's identity and jurisdiction
        school_match: compare school-level assignments by upper-cased name (default)
            or by school id
    """
    if viewer.id is not None and request.created_by == viewer.id:
        return VisibilityReason.CREATOR

    if viewer.id is not None and any(a.user_id == viewer.id for a in assignees):
        return VisibilityReason.ASSIGNEE

    if parse_role(viewer.role) in SCHOOL_STAFF_ROLES and _matches_school(
        request, school_assignees, viewer, school_match
    ):
        return VisibilityReason.SCHOOL

    # Only a strictly higher rank supervises; DDEO and AEO share rank 3.
    if hierarchy_rank(viewer.role) > hierarchy_rank(request.created_by_role) and _within_jurisdiction(
        request, viewer
    ):
        return VisibilityReason.HIERARCHY

    return None


# PUBLIC_INTERFACE
def is_request_visible(
    request: RequestLike,
    assignees: Iterable[AssigneeLike],
    school_assignees: Iterable[AssigneeLike],
    viewer: Viewer,
    *,
    school_match: SchoolMatch = "school_name",
) -> bool:
    """Return True when any visibility rule grants `viewer` access to `request`."""
    return (
        visibility_reason(request, assignees, school_assignees, viewer, school_match=school_match)
        is not None
    )
