from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy import Select, func, select, update

from src.db.models.visits import FieldVisit, VisitSession
from src.schemas.visits import FieldVisitCreate, VisitSessionStart
from .base import BaseRepository


def school_visits_statement(school_id: UUID, limit: Optional[int] = None) -> Select:
    """Visits of any type recorded at one school, newest submission first."""
    stmt = (
        select(FieldVisit)
        .where(FieldVisit.school_id == school_id)
        .order_by(FieldVisit.submitted_at.desc())
    )
    if limit:
        stmt = stmt.limit(limit)
    return stmt


class VisitSessionRepository(BaseRepository):
    """Repository for GPS visit sessions."""

    async def list_sessions(self, *, aeo_id: Optional[UUID] = None) -> List[VisitSession]:
        stmt = select(VisitSession)
        if aeo_id:
            stmt = stmt.where(VisitSession.aeo_id == aeo_id)
        stmt = stmt.order_by(VisitSession.start_timestamp.desc())
        res = await self.scalars(stmt)
        return list(res)

    async def get_session(self, session_id: UUID) -> Optional[VisitSession]:
        stmt = select(VisitSession).where(VisitSession.id == session_id)
        return await self.scalar_one_or_none(stmt)

    async def get_active_session(self, aeo_id: UUID) -> Optional[VisitSession]:
        stmt = (
            select(VisitSession)
            .where(VisitSession.aeo_id == aeo_id, VisitSession.status == "in_progress")
            .order_by(VisitSession.start_timestamp.desc())
            .limit(1)
        )
        return await self.scalar_one_or_none(stmt)

    async def create_session(self, payload: VisitSessionStart, started_at: datetime) -> VisitSession:
        row = VisitSession(
            **payload.model_dump(),
            start_timestamp=started_at,
            status="in_progress",
        )
        await self.add(row)
        await self.commit()
        return (await self.get_session(row.id))  # type: ignore

    async def update_session(self, session_id: UUID, values: dict[str, Any]) -> Optional[VisitSession]:
        if values:
            stmt = (
                update(VisitSession)
                .where(VisitSession.id == session_id)
                .values(**values, updated_at=func.now())
                .execution_options(synchronize_session="fetch")
            )
            await self.execute(stmt)
            await self.commit()
        return await self.get_session(session_id)


class FieldVisitRepository(BaseRepository):
    """Repository for submitted field visits."""

    async def list_visits(self, *, visit_type: str, aeo_id: Optional[UUID] = None) -> List[FieldVisit]:
        stmt = select(FieldVisit).where(FieldVisit.visit_type == visit_type)
        if aeo_id:
            stmt = stmt.where(FieldVisit.aeo_id == aeo_id)
        stmt = stmt.order_by(FieldVisit.submitted_at.desc())
        res = await self.scalars(stmt)
        return list(res)

    async def get_visit(self, visit_id: UUID) -> Optional[FieldVisit]:
        stmt = select(FieldVisit).where(FieldVisit.id == visit_id)
        return await self.scalar_one_or_none(stmt)

    async def list_school_visits(self, school_id: UUID, *, limit: Optional[int] = None) -> List[FieldVisit]:
        res = await self.scalars(school_visits_statement(school_id, limit))
        return list(res)

    async def get_latest_school_visit(self, school_id: UUID) -> Optional[FieldVisit]:
        visits = await self.list_school_visits(school_id, limit=1)
        return visits[0] if visits else None

    async def latest_visit_per_school(self) -> dict[UUID, FieldVisit]:
        """Most recent visit of any type for every school that has one."""
        stmt = (
            select(FieldVisit)
            .where(FieldVisit.school_id.is_not(None))
            .distinct(FieldVisit.school_id)
            .order_by(FieldVisit.school_id, FieldVisit.submitted_at.desc())
        )
        res = await self.scalars(stmt)
        return {v.school_id: v for v in res}

    async def create_visit(self, visit_type: str, payload: FieldVisitCreate, submitted_at: datetime) -> FieldVisit:
        values = payload.model_dump(exclude={"submitted_at"})
        row = FieldVisit(visit_type=visit_type, submitted_at=submitted_at, **values)
        await self.add(row)
        await self.commit()
        return (await self.get_visit(row.id))  # type: ignore
