from __future__ import annotations

from typing import Iterable, List
from uuid import UUID

from sqlalchemy import Update, func, select, update

from src.db.models.visits import LocationSample
from src.schemas.location import LocationSampleIn
from .base import BaseRepository


def relink_samples_statement(old_entity_id: UUID, new_entity_id: UUID, new_entity_type: str) -> Update:
    """Single UPDATE moving every sample tagged with old_entity_id onto the new entity."""
    return (
        update(LocationSample)
        .where(LocationSample.entity_id == old_entity_id)
        .values(entity_id=new_entity_id, entity_type=new_entity_type, updated_at=func.now())
        .execution_options(synchronize_session=False)
    )


class LocationSampleRepository(BaseRepository):
    """Repository for GPS location samples."""

    async def add_samples(
        self,
        *,
        entity_id: UUID,
        entity_type: str,
        user_id: UUID,
        samples: Iterable[LocationSampleIn],
    ) -> int:
        rows = [
            LocationSample(
                entity_id=entity_id,
                entity_type=entity_type,
                user_id=user_id,
                recorded_at=s.recorded_at,
                latitude=s.latitude,
                longitude=s.longitude,
                accuracy=s.accuracy,
            )
            for s in samples
        ]
        await self.add_all(rows)
        await self.commit()
        return len(rows)

    async def list_samples(self, entity_id: UUID) -> List[LocationSample]:
        stmt = (
            select(LocationSample)
            .where(LocationSample.entity_id == entity_id)
            .order_by(LocationSample.recorded_at.asc())
        )
        res = await self.scalars(stmt)
        return list(res)

    async def relink_samples(self, old_entity_id: UUID, new_entity_id: UUID, new_entity_type: str) -> int:
        """
        Re-tag samples from one entity to another and return the number of rows moved.

        Match and rewrite happen in one statement, so concurrent callers cannot
        double count and a repeat call matches nothing.
        """
        res = await self.execute(relink_samples_statement(old_entity_id, new_entity_id, new_entity_type))
        await self.commit()
        return res.rowcount
