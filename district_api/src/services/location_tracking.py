from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models.visits import LocationSample
from src.repositories.location import LocationSampleRepository
from src.schemas.location import SESSION_ENTITY_TYPE, LocationSampleBatch
from src.services.base import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkResult:
    """Samples moved from a session onto a visit."""
    updated_count: int


@dataclass(frozen=True)
class LinkOutcome:
    """
    Result of a best-effort link.

    ok is False when the store failed; callers treat that as a warning, the
    visit they just saved stays saved.
    """
    ok: bool
    updated_count: int = 0
    error: Optional[str] = None


class LocationTrackingService(BaseService):
    """
    GPS sample ingestion and session-to-visit linking.

    Samples are tagged with the visit session id while the visit form is open.
    Once the visit is submitted, link() re-tags them with the visit id. Samples
    that arrive after link() keep the session id and are not migrated; callers
    stop tracking before linking.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.sample_repo = LocationSampleRepository(session)

    # PUBLIC_INTERFACE
    async def record_samples(self, batch: LocationSampleBatch) -> int:
        """Store a batch of samples against their visit session; returns how many were stored."""
        count = await self.sample_repo.add_samples(
            entity_id=batch.session_id,
            entity_type=SESSION_ENTITY_TYPE,
            user_id=batch.user_id,
            samples=batch.samples,
        )
        logger.debug("Recorded %d location sample(s) for session %s", count, batch.session_id)
        return count

    # PUBLIC_INTERFACE
    async def list_samples(self, entity_id: UUID) -> List[LocationSample]:
        """Samples currently tagged with entity_id (a session or a visit), oldest first."""
        return await self.sample_repo.list_samples(entity_id)

    # PUBLIC_INTERFACE
    async def link(self, session_id: UUID, visit_id: UUID, visit_type: str) -> LinkResult:
        """
        Re-tag every sample of `session_id` with `visit_id`/`visit_type`.

        Safe to retry: once moved, the samples no longer match `session_id`, so a
        second call returns updated_count=0. Storage errors propagate.
        """
        updated = await self.sample_repo.relink_samples(session_id, visit_id, visit_type)
        logger.info(
            "Linked %d location sample(s) from session %s to %s visit %s",
            updated, session_id, visit_type, visit_id,
        )
        return LinkResult(updated_count=updated)

    # PUBLIC_INTERFACE
    async def try_link(self, session_id: UUID, visit_id: UUID, visit_type: str) -> LinkOutcome:
        """
        Best-effort link() for the visit submission workflow.

        Never raises for store failures: GPS trail metadata is not worth failing a
        saved visit over. The failure is logged and returned as ok=False.
        """
        try:
            result = await self.link(session_id, visit_id, visit_type)
        except Exception as exc:
            logger.exception(
                "Failed to link location samples from session %s to visit %s", session_id, visit_id
            )
            try:
                await self.session.rollback()
            except Exception:
                logger.exception("Rollback after failed sample link also failed")
            return LinkOutcome(ok=False, error=str(exc) or exc.__class__.__name__)
        return LinkOutcome(ok=True, updated_count=result.updated_count)
