from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models.visits import FieldVisit, VisitSession
from src.repositories.visits import FieldVisitRepository, VisitSessionRepository
from src.schemas.visits import (
    FieldVisitCreate,
    VisitSessionEnd,
    VisitSessionStart,
    VisitSessionUpdate,
    VisitType,
)
from src.services.base import BaseService
from src.services.location_tracking import LinkOutcome, LocationTrackingService

logger = logging.getLogger(__name__)

IN_PROGRESS = "in_progress"
COMPLETED = "completed"
CANCELLED = "cancelled"


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


class VisitService(BaseService):
    """
    Visit sessions and visit submissions.

    A session is opened when an AEO starts a visit form and closed when the
    form is submitted or abandoned. Submitting a visit with a session attached
    stops the session and then moves its GPS samples onto the new visit.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.session_repo = VisitSessionRepository(session)
        self.visit_repo = FieldVisitRepository(session)
        self.tracker = LocationTrackingService(session)

    # Sessions

    # PUBLIC_INTERFACE
    async def start_session(self, payload: VisitSessionStart) -> VisitSession:
        """Open a session; an AEO may only have one in progress at a time (409 otherwise)."""
        active = await self.session_repo.get_active_session(payload.aeo_id)
        if active is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="An active visit session already exists; end it first",
            )
        created = await self.session_repo.create_session(payload, started_at=_now())
        logger.info("Started visit session %s for AEO %s at %s", created.id, payload.aeo_id, payload.school_name)
        return created

    async def list_sessions(self, aeo_id: Optional[UUID] = None) -> List[VisitSession]:
        return await self.session_repo.list_sessions(aeo_id=aeo_id)

    async def get_session(self, session_id: UUID) -> Optional[VisitSession]:
        return await self.session_repo.get_session(session_id)

    async def get_active_session(self, aeo_id: UUID) -> Optional[VisitSession]:
        return await self.session_repo.get_active_session(aeo_id)

    async def _require_in_progress(self, session_id: UUID) -> Optional[VisitSession]:
        current = await self.session_repo.get_session(session_id)
        if current is None:
            return None
        if current.status != IN_PROGRESS:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Visit session is already {current.status}",
            )
        return current

    # PUBLIC_INTERFACE
    async def end_session(self, session_id: UUID, payload: VisitSessionEnd) -> Optional[VisitSession]:
        """Complete an in-progress session with its end position. None if unknown, 409 if not in progress."""
        if await self._require_in_progress(session_id) is None:
            return None
        values = payload.model_dump(exclude_none=True)
        values.update(end_timestamp=_now(), status=COMPLETED)
        return await self.session_repo.update_session(session_id, values)

    # PUBLIC_INTERFACE
    async def cancel_session(self, session_id: UUID) -> Optional[VisitSession]:
        """Abandon an in-progress session. Its samples stay tagged with the session id."""
        if await self._require_in_progress(session_id) is None:
            return None
        return await self.session_repo.update_session(
            session_id, {"status": CANCELLED, "end_timestamp": _now()}
        )

    async def update_session(self, session_id: UUID, payload: VisitSessionUpdate) -> Optional[VisitSession]:
        if await self.session_repo.get_session(session_id) is None:
            return None
        values = payload.model_dump(exclude_unset=True)
        if "visit_type" in values and values["visit_type"] is not None:
            values["visit_type"] = VisitType(values["visit_type"]).value
        return await self.session_repo.update_session(session_id, values)

    # Visit submissions

    async def list_visits(self, visit_type: VisitType, aeo_id: Optional[UUID] = None) -> List[FieldVisit]:
        return await self.visit_repo.list_visits(visit_type=visit_type.value, aeo_id=aeo_id)

    async def get_visit(self, visit_type: VisitType, visit_id: UUID) -> Optional[FieldVisit]:
        visit = await self.visit_repo.get_visit(visit_id)
        if visit is None or visit.visit_type != visit_type.value:
            return None
        return visit

    async def list_school_visits(self, school_id: UUID, limit: Optional[int] = None) -> List[FieldVisit]:
        """Visits of every type recorded for a school, newest first."""
        return await self.visit_repo.list_school_visits(school_id, limit=limit)

    async def get_latest_school_visit(self, school_id: UUID) -> Optional[FieldVisit]:
        return await self.visit_repo.get_latest_school_visit(school_id)

    async def _stop_session_for_visit(self, session_id: UUID, visit_id: UUID, visit_type: str) -> None:
        """Close the session and point it at the visit. Failures are logged and rolled back, not raised."""
        try:
            current = await self.session_repo.get_session(session_id)
            if current is None:
                logger.warning("Visit %s references unknown session %s", visit_id, session_id)
                return
            values = {"visit_id": visit_id, "visit_type": visit_type}
            if current.status == IN_PROGRESS:
                values.update(status=COMPLETED, end_timestamp=_now())
            await self.session_repo.update_session(session_id, values)
        except Exception:
            logger.exception("Failed to stop visit session %s after visit %s", session_id, visit_id)
            try:
                await self.session.rollback()
            except Exception:
                logger.exception("Rollback after failed session stop also failed")

    # PUBLIC_INTERFACE
    async def submit_visit(
        self, visit_type: VisitType, payload: FieldVisitCreate
    ) -> Tuple[FieldVisit, Optional[LinkOutcome]]:
        """
        Save a visit and, when it came from a GPS session, attach the session's trail.

        Steps:
          1. the visit is created and committed; errors here propagate
          2. the session is stopped so tracking writes no further samples
          3. samples are linked through LocationTrackingService.try_link

        Steps 2 and 3 are best effort: their failures never undo or fail the visit.
        Both roll the session back on failure, so the saved visit is detached from
        the session first and stays readable afterwards.

        Returns:
            (visit, link outcome or None when no session was attached)
        """
        visit = await self.visit_repo.create_visit(
            visit_type.value, payload, submitted_at=payload.submitted_at or _now()
        )
        visit_id = visit.id
        logger.info("Saved %s visit %s for AEO %s", visit_type.value, visit_id, payload.aeo_id)

        if payload.session_id is None:
            return visit, None

        await self.visit_repo.detach(visit)
        await self._stop_session_for_visit(payload.session_id, visit_id, visit_type.value)
        outcome = await self.tracker.try_link(payload.session_id, visit_id, visit_type.value)
        if not outcome.ok:
            logger.warning(
                "Visit %s saved without its GPS trail (session %s): %s",
                visit_id, payload.session_id, outcome.error,
            )
        return visit, outcome
