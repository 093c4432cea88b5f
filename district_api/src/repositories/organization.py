from __future__ import annotations

from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select, update

from src.db.models.organization import Cluster, District, School
from src.schemas.organization import ClusterCreate, DistrictCreate, SchoolCreate
from .base import BaseRepository


class DistrictRepository(BaseRepository):
    """Repository for districts."""

    async def list_districts(self) -> List[District]:
        stmt = select(District).order_by(District.name)
        res = await self.scalars(stmt)
        return list(res)

    async def get_district(self, district_id: UUID) -> Optional[District]:
        stmt = select(District).where(District.id == district_id)
        return await self.scalar_one_or_none(stmt)

    async def get_district_by_code(self, code: str) -> Optional[District]:
        stmt = select(District).where(District.code == code)
        return await self.scalar_one_or_none(stmt)

    async def create_district(self, payload: DistrictCreate) -> District:
        row = District(name=payload.name, code=payload.code)
        await self.add(row)
        await self.commit()
        return (await self.get_district(row.id))  # type: ignore

    async def update_district(self, district_id: UUID, values: dict[str, Any]) -> Optional[District]:
        if values:
            stmt = (
                update(District)
                .where(District.id == district_id)
                .values(**values, updated_at=func.now())
                .execution_options(synchronize_session="fetch")
            )
            await self.execute(stmt)
            await self.commit()
        return await self.get_district(district_id)

    async def delete_district(self, district_id: UUID) -> int:
        res = await self.execute(delete(District).where(District.id == district_id))
        await self.commit()
        return res.rowcount


class ClusterRepository(BaseRepository):
    """Repository for clusters."""

    async def list_clusters(self, *, district_id: Optional[UUID] = None) -> List[Cluster]:
        stmt = select(Cluster)
        if district_id:
            stmt = stmt.where(Cluster.district_id == district_id)
        stmt = stmt.order_by(Cluster.name)
        res = await self.scalars(stmt)
        return list(res)

    async def get_cluster(self, cluster_id: UUID) -> Optional[Cluster]:
        stmt = select(Cluster).where(Cluster.id == cluster_id)
        return await self.scalar_one_or_none(stmt)

    async def get_cluster_by_code(self, code: str) -> Optional[Cluster]:
        stmt = select(Cluster).where(Cluster.code == code)
        return await self.scalar_one_or_none(stmt)

    async def create_cluster(self, payload: ClusterCreate) -> Cluster:
        row = Cluster(name=payload.name, code=payload.code, district_id=payload.district_id)
        await self.add(row)
        await self.commit()
        return (await self.get_cluster(row.id))  # type: ignore

    async def update_cluster(self, cluster_id: UUID, values: dict[str, Any]) -> Optional[Cluster]:
        if values:
            stmt = (
                update(Cluster)
                .where(Cluster.id == cluster_id)
                .values(**values, updated_at=func.now())
                .execution_options(synchronize_session="fetch")
            )
            await self.execute(stmt)
            await self.commit()
        return await self.get_cluster(cluster_id)

    async def delete_cluster(self, cluster_id: UUID) -> int:
        res = await self.execute(delete(Cluster).where(Cluster.id == cluster_id))
        await self.commit()
        return res.rowcount


class SchoolRepository(BaseRepository):
    """Repository for schools."""

    async def list_schools(
        self, *, cluster_id: Optional[UUID] = None, district_id: Optional[UUID] = None
    ) -> List[School]:
        stmt = select(School)
        # cluster is the narrower filter and wins when both are given
        if cluster_id:
            stmt = stmt.where(School.cluster_id == cluster_id)
        elif district_id:
            stmt = stmt.where(School.district_id == district_id)
        stmt = stmt.order_by(School.name)
        res = await self.scalars(stmt)
        return list(res)

    async def get_school(self, school_id: UUID) -> Optional[School]:
        stmt = select(School).where(School.id == school_id)
        return await self.scalar_one_or_none(stmt)

    async def get_school_by_code(self, code: str) -> Optional[School]:
        stmt = select(School).where(School.code == code)
        return await self.scalar_one_or_none(stmt)

    async def create_school(self, payload: SchoolCreate) -> School:
        row = School(**payload.model_dump())
        await self.add(row)
        await self.commit()
        return (await self.get_school(row.id))  # type: ignore

    async def update_school(self, school_id: UUID, values: dict[str, Any]) -> Optional[School]:
        if values:
            stmt = (
                update(School)
                .where(School.id == school_id)
                .values(**values, updated_at=func.now())
                .execution_options(synchronize_session="fetch")
            )
            await self.execute(stmt)
            await self.commit()
        return await self.get_school(school_id)

    async def delete_school(self, school_id: UUID) -> int:
        res = await self.execute(delete(School).where(School.id == school_id))
        await self.commit()
        return res.rowcount
