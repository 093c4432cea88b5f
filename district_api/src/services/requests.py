from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.hierarchy import SCHOOL_STAFF_ROLES, parse_role
from src.db.models.requests import DataRequest, RequestAssignee
from src.repositories.requests import DataRequestRepository
from src.repositories.users import UserRepository
from src.schemas.requests import AssigneeCreate, AssigneeUpdate, DataRequestCreate, DataRequestUpdate
from src.services.base import BaseService
from src.services.visibility import SchoolMatch, Viewer, visibility_reason

logger = logging.getLogger(__name__)


class RequestService(BaseService):
    """
    Domain service for data-collection requests.

    Owns the visible-request listing (archived filter, batched assignee loads,
    indexed school lookup, then the visibility rules) and the request/assignee
    write workflows.
    """

    def __init__(self, session: AsyncSession, school_match: SchoolMatch = "school_name") -> None:
        super().__init__(session)
        self.school_match = school_match
        self.request_repo = DataRequestRepository(session)
        self.user_repo = UserRepository(session)

    # PUBLIC_INTERFACE
    async def build_viewer(
        self,
        *,
        user_id: Optional[UUID],
        role: Optional[str],
        school_id: Optional[UUID] = None,
        cluster_id: Optional[UUID] = None,
        district_id: Optional[UUID] = None,
        school_name: Optional[str] = None,
    ) -> Viewer:
        """
        Build the viewer for a visibility check from request parameters.

        Role and jurisdiction come from the caller. The school name is taken from
        the stored user record when one exists, falling back to the supplied name.
        Missing school/cluster/district ids are filled from the stored record.
        """
        stored = await self.user_repo.get_user_by_id(user_id) if user_id else None
        if stored is None:
            return Viewer(
                id=user_id,
                role=role,
                school_id=school_id,
                school_name=school_name,
                cluster_id=cluster_id,
                district_id=district_id,
            )
        return Viewer(
            id=user_id,
            role=role or stored.role,
            school_id=school_id or stored.school_id,
            school_name=stored.school_name or school_name,
            cluster_id=cluster_id or stored.cluster_id,
            district_id=district_id or stored.district_id,
        )

    # PUBLIC_INTERFACE
    async def list_visible_requests(self, viewer: Viewer) -> List[DataRequest]:
        """
        Return the non-archived requests `viewer` may see, newest first.

        Assignees for all candidate requests are loaded in one query. School staff
        additionally get one indexed lookup for school-level assignments.
        """
        requests = await self.request_repo.list_active_requests()
        if not requests:
            return []
        request_ids = [r.id for r in requests]

        by_request: dict[UUID, List[RequestAssignee]] = defaultdict(list)
        for a in await self.request_repo.list_assignees_for_requests(request_ids):
            by_request[a.request_id].append(a)

        school_rows: List[RequestAssignee] = []
        if parse_role(viewer.role) in SCHOOL_STAFF_ROLES:
            if self.school_match == "school_id":
                if viewer.school_id is not None:
                    school_rows = await self.request_repo.find_assignees_by_school_id(
                        request_ids, viewer.school_id
                    )
            elif viewer.school_name:
                school_rows = await self.request_repo.find_assignees_by_school_name(
                    request_ids, viewer.school_name
                )

        visible: List[DataRequest] = []
        for req in requests:
            reason = visibility_reason(
                req, by_request.get(req.id, []), school_rows, viewer, school_match=self.school_match
            )
            if reason is not None:
                visible.append(req)
        logger.debug(
            "Visible requests for user %s (%s): %d of %d",
            viewer.id, viewer.role, len(visible), len(requests),
        )
        return visible

    # PUBLIC_INTERFACE
    async def get_request_with_assignees(
        self, request_id: UUID
    ) -> Optional[Tuple[DataRequest, List[RequestAssignee]]]:
        """Return the request and its assignees, or None if it does not exist."""
        req = await self.request_repo.get_request(request_id)
        if req is None:
            return None
        assignees = await self.request_repo.list_assignees(request_id)
        return req, assignees

    # PUBLIC_INTERFACE
    async def create_request(self, payload: DataRequestCreate) -> DataRequest:
        """
        Create a request with its initial assignees.

        The creator's name, role and jurisdiction are snapshotted from the stored
        user when it exists; payload values are used otherwise.
        """
        creator = await self.user_repo.get_user_by_id(payload.created_by)
        if creator is not None:
            snapshot = {
                "created_by_name": creator.name,
                "created_by_role": creator.role,
                "created_by_school_id": creator.school_id,
                "created_by_cluster_id": creator.cluster_id,
                "created_by_district_id": creator.district_id,
            }
        else:
            snapshot = {
                "created_by_name": payload.created_by_name or "Unknown",
                "created_by_role": payload.created_by_role.value if payload.created_by_role else "",
                "created_by_school_id": payload.created_by_school_id,
                "created_by_cluster_id": payload.created_by_cluster_id,
                "created_by_district_id": payload.created_by_district_id,
            }
            logger.warning("Creating request for unknown creator %s; using supplied jurisdiction", payload.created_by)

        values = {
            "title": payload.title,
            "description": payload.description,
            "created_by": payload.created_by,
            "priority": payload.priority,
            "status": payload.status,
            "due_date": payload.due_date or datetime.now(tz=timezone.utc),
            "fields": payload.fields,
            **snapshot,
        }
        created = await self.request_repo.create_request(values, payload.assignees)
        logger.info("Created request %s with %d assignee(s)", created.id, len(payload.assignees))
        return created

    # PUBLIC_INTERFACE
    async def update_request(self, request_id: UUID, payload: DataRequestUpdate) -> Optional[DataRequest]:
        """Apply a partial update; None when the request does not exist."""
        if await self.request_repo.get_request(request_id) is None:
            return None
        values = payload.model_dump(exclude_unset=True)
        return await self.request_repo.update_request(request_id, values)

    # PUBLIC_INTERFACE
    async def delete_request(self, request_id: UUID) -> bool:
        """Delete a request and its assignees; False when nothing was deleted."""
        deleted = await self.request_repo.delete_request(request_id)
        return deleted > 0

    # PUBLIC_INTERFACE
    async def add_assignee(self, request_id: UUID, payload: AssigneeCreate) -> Optional[RequestAssignee]:
        """Attach an assignee to an existing request; None when the request does not exist."""
        if await self.request_repo.get_request(request_id) is None:
            return None
        return await self.request_repo.create_assignee(request_id, payload)

    # PUBLIC_INTERFACE
    async def update_assignee(self, assignee_id: UUID, payload: AssigneeUpdate) -> Optional[RequestAssignee]:
        """
        Update an assignee's status or responses.

        Completing an assignee stamps submitted_at with the current time unless
        the caller supplied one.
        """
        if await self.request_repo.get_assignee(assignee_id) is None:
            return None
        values = payload.model_dump(exclude_unset=True)
        if values.get("status") == "completed" and values.get("submitted_at") is None:
            values["submitted_at"] = datetime.now(tz=timezone.utc)
        return await self.request_repo.update_assignee(assignee_id, values)
