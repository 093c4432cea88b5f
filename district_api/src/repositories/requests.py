from __future__ import annotations

from typing import Any, Iterable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import Select, delete, func, select, update

from src.db.models.requests import DataRequest, RequestAssignee
from src.schemas.requests import AssigneeCreate
from .base import BaseRepository


def school_name_assignees_statement(request_ids: Sequence[UUID], school_name: str) -> Select:
    """
    Assignee rows of the given requests whose school name matches case-insensitively.

    Uses upper(school_name) on both sides so the ix_request_assignees_upper_school_name
    functional index applies.
    """
    return select(RequestAssignee).where(
        RequestAssignee.request_id.in_(list(request_ids)),
        func.upper(RequestAssignee.school_name) == school_name.upper(),
    )


def school_id_assignees_statement(request_ids: Sequence[UUID], school_id: UUID) -> Select:
    """Assignee rows of the given requests that were assigned to a school id."""
    return select(RequestAssignee).where(
        RequestAssignee.request_id.in_(list(request_ids)),
        RequestAssignee.school_id == school_id,
    )


class DataRequestRepository(BaseRepository):
    """Repository for data requests and their assignees."""

    # Requests
    async def list_active_requests(self) -> List[DataRequest]:
        stmt = (
            select(DataRequest)
            .where(DataRequest.is_archived.is_(False))
            .order_by(DataRequest.created_at.desc())
        )
        res = await self.scalars(stmt)
        return list(res)

    async def get_request(self, request_id: UUID) -> Optional[DataRequest]:
        stmt = select(DataRequest).where(DataRequest.id == request_id)
        return await self.scalar_one_or_none(stmt)

    async def create_request(
        self, values: dict[str, Any], assignees: Iterable[AssigneeCreate] = ()
    ) -> DataRequest:
        row = DataRequest(**values)
        await self.add(row)
        # id is server-generated; flush before building assignee rows
        await self.flush()
        await self.add_all(
            RequestAssignee(request_id=row.id, **a.model_dump()) for a in assignees
        )
        await self.commit()
        return (await self.get_request(row.id))  # type: ignore

    async def update_request(self, request_id: UUID, values: dict[str, Any]) -> Optional[DataRequest]:
        stmt = (
            update(DataRequest)
            .where(DataRequest.id == request_id)
            .values(**values, updated_at=func.now())
            .execution_options(synchronize_session="fetch")
        )
        await self.execute(stmt)
        await self.commit()
        return await self.get_request(request_id)

    async def delete_request(self, request_id: UUID) -> int:
        await self.execute(delete(RequestAssignee).where(RequestAssignee.request_id == request_id))
        res = await self.execute(delete(DataRequest).where(DataRequest.id == request_id))
        await self.commit()
        return res.rowcount

    # Assignees
    async def list_assignees(self, request_id: UUID) -> List[RequestAssignee]:
        stmt = (
            select(RequestAssignee)
            .where(RequestAssignee.request_id == request_id)
            .order_by(RequestAssignee.created_at.asc())
        )
        res = await self.scalars(stmt)
        return list(res)

    async def list_assignees_for_requests(self, request_ids: Sequence[UUID]) -> List[RequestAssignee]:
        if not request_ids:
            return []
        stmt = select(RequestAssignee).where(RequestAssignee.request_id.in_(list(request_ids)))
        res = await self.scalars(stmt)
        return list(res)

    async def find_assignees_by_school_name(
        self, request_ids: Sequence[UUID], school_name: str
    ) -> List[RequestAssignee]:
        if not request_ids or not school_name:
            return []
        res = await self.scalars(school_name_assignees_statement(request_ids, school_name))
        return list(res)

    async def find_assignees_by_school_id(
        self, request_ids: Sequence[UUID], school_id: UUID
    ) -> List[RequestAssignee]:
        if not request_ids:
            return []
        res = await self.scalars(school_id_assignees_statement(request_ids, school_id))
        return list(res)

    async def get_assignee(self, assignee_id: UUID) -> Optional[RequestAssignee]:
        stmt = select(RequestAssignee).where(RequestAssignee.id == assignee_id)
        return await self.scalar_one_or_none(stmt)

    async def create_assignee(self, request_id: UUID, payload: AssigneeCreate) -> RequestAssignee:
        row = RequestAssignee(request_id=request_id, **payload.model_dump())
        await self.add(row)
        await self.commit()
        return (await self.get_assignee(row.id))  # type: ignore

    async def update_assignee(self, assignee_id: UUID, values: dict[str, Any]) -> Optional[RequestAssignee]:
        if values:
            stmt = (
                update(RequestAssignee)
                .where(RequestAssignee.id == assignee_id)
                .values(**values, updated_at=func.now())
                .execution_options(synchronize_session="fetch")
            )
            await self.execute(stmt)
            await self.commit()
        return await self.get_assignee(assignee_id)
