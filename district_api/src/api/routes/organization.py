from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.deps import get_db_session
from src.repositories.organization import ClusterRepository, DistrictRepository, SchoolRepository
from src.schemas.organization import (
    ClusterCreate,
    ClusterRead,
    ClusterUpdate,
    DistrictCreate,
    DistrictRead,
    DistrictUpdate,
    SchoolCreate,
    SchoolRead,
    SchoolUpdate,
)

router = APIRouter(prefix="/admin", tags=["Organisation"])


def _duplicate_code(kind: str, code: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"{kind} with code '{code}' already exists")


# Districts

# PUBLIC_INTERFACE
@router.get("/districts", response_model=List[DistrictRead], summary="List districts")
async def list_districts(session: AsyncSession = Depends(get_db_session)) -> List[DistrictRead]:
    items = await DistrictRepository(session).list_districts()
    return [DistrictRead.model_validate(x) for x in items]


# PUBLIC_INTERFACE
@router.post("/districts", response_model=DistrictRead, status_code=status.HTTP_201_CREATED, summary="Create district")
async def create_district(
    payload: DistrictCreate,
    session: AsyncSession = Depends(get_db_session),
) -> DistrictRead:
    repo = DistrictRepository(session)
    if await repo.get_district_by_code(payload.code):
        raise _duplicate_code("District", payload.code)
    created = await repo.create_district(payload)
    return DistrictRead.model_validate(created)


# PUBLIC_INTERFACE
@router.get("/districts/{district_id}", response_model=DistrictRead, summary="Get district")
async def get_district(
    district_id: UUID = Path(...),
    session: AsyncSession = Depends(get_db_session),
) -> DistrictRead:
    found = await DistrictRepository(session).get_district(district_id)
    if not found:
        raise HTTPException(status_code=404, detail="District not found")
    return DistrictRead.model_validate(found)


# PUBLIC_INTERFACE
@router.patch("/districts/{district_id}", response_model=DistrictRead, summary="Update district")
async def update_district(
    payload: DistrictUpdate,
    district_id: UUID = Path(...),
    session: AsyncSession = Depends(get_db_session),
) -> DistrictRead:
    repo = DistrictRepository(session)
    current = await repo.get_district(district_id)
    if not current:
        raise HTTPException(status_code=404, detail="District not found")
    values = payload.model_dump(exclude_unset=True)
    if values.get("code") and values["code"] != current.code and await repo.get_district_by_code(values["code"]):
        raise _duplicate_code("District", values["code"])
    updated = await repo.update_district(district_id, values)
    return DistrictRead.model_validate(updated)


# PUBLIC_INTERFACE
@router.delete("/districts/{district_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete district")
async def delete_district(
    district_id: UUID = Path(...),
    session: AsyncSession = Depends(get_db_session),
) -> None:
    if not await DistrictRepository(session).delete_district(district_id):
        raise HTTPException(status_code=404, detail="District not found")


# Clusters

# PUBLIC_INTERFACE
@router.get("/clusters", response_model=List[ClusterRead], summary="List clusters")
async def list_clusters(
    district_id: UUID | None = Query(None, description="Only clusters of this district"),
    session: AsyncSession = Depends(get_db_session),
) -> List[ClusterRead]:
    items = await ClusterRepository(session).list_clusters(district_id=district_id)
    return [ClusterRead.model_validate(x) for x in items]


# PUBLIC_INTERFACE
@router.post("/clusters", response_model=ClusterRead, status_code=status.HTTP_201_CREATED, summary="Create cluster")
async def create_cluster(
    payload: ClusterCreate,
    session: AsyncSession = Depends(get_db_session),
) -> ClusterRead:
    repo = ClusterRepository(session)
    if await repo.get_cluster_by_code(payload.code):
        raise _duplicate_code("Cluster", payload.code)
    created = await repo.create_cluster(payload)
    return ClusterRead.model_validate(created)


# PUBLIC_INTERFACE
@router.get("/clusters/{cluster_id}", response_model=ClusterRead, summary="Get cluster")
async def get_cluster(
    cluster_id: UUID = Path(...),
    session: AsyncSession = Depends(get_db_session),
) -> ClusterRead:
    found = await ClusterRepository(session).get_cluster(cluster_id)
    if not found:
        raise HTTPException(status_code=404, detail="Cluster not found")
    return ClusterRead.model_validate(found)


# PUBLIC_INTERFACE
@router.patch("/clusters/{cluster_id}", response_model=ClusterRead, summary="Update cluster")
async def update_cluster(
    payload: ClusterUpdate,
    cluster_id: UUID = Path(...),
    session: AsyncSession = Depends(get_db_session),
) -> ClusterRead:
    repo = ClusterRepository(session)
    current = await repo.get_cluster(cluster_id)
    if not current:
        raise HTTPException(status_code=404, detail="Cluster not found")
    values = payload.model_dump(exclude_unset=True)
    if values.get("code") and values["code"] != current.code and await repo.get_cluster_by_code(values["code"]):
        raise _duplicate_code("Cluster", values["code"])
    updated = await repo.update_cluster(cluster_id, values)
    return ClusterRead.model_validate(updated)


# PUBLIC_INTERFACE
@router.delete("/clusters/{cluster_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete cluster")
async def delete_cluster(
    cluster_id: UUID = Path(...),
    session: AsyncSession = Depends(get_db_session),
) -> None:
    if not await ClusterRepository(session).delete_cluster(cluster_id):
        raise HTTPException(status_code=404, detail="Cluster not found")


# Schools

# PUBLIC_INTERFACE
@router.get(
    "/schools",
    response_model=List[SchoolRead],
    summary="List schools",
    description="List schools, filtered by cluster or district. The cluster filter wins when both are given.",
)
async def list_schools(
    cluster_id: UUID | None = Query(None),
    district_id: UUID | None = Query(None),
    session: AsyncSession = Depends(get_db_session),
) -> List[SchoolRead]:
    items = await SchoolRepository(session).list_schools(cluster_id=cluster_id, district_id=district_id)
    return [SchoolRead.model_validate(x) for x in items]


# PUBLIC_INTERFACE
@router.post("/schools", response_model=SchoolRead, status_code=status.HTTP_201_CREATED, summary="Create school")
async def create_school(
    payload: SchoolCreate,
    session: AsyncSession = Depends(get_db_session),
) -> SchoolRead:
    repo = SchoolRepository(session)
    if await repo.get_school_by_code(payload.code):
        raise _duplicate_code("School", payload.code)
    created = await repo.create_school(payload)
    return SchoolRead.model_validate(created)


# PUBLIC_INTERFACE
@router.get("/schools/{school_id}", response_model=SchoolRead, summary="Get school")
async def get_school(
    school_id: UUID = Path(...),
    session: AsyncSession = Depends(get_db_session),
) -> SchoolRead:
    found = await SchoolRepository(session).get_school(school_id)
    if not found:
        raise HTTPException(status_code=404, detail="School not found")
    return SchoolRead.model_validate(found)


# PUBLIC_INTERFACE
@router.patch("/schools/{school_id}", response_model=SchoolRead, summary="Update school")
async def update_school(
    payload: SchoolUpdate,
    school_id: UUID = Path(...),
    session: AsyncSession = Depends(get_db_session),
) -> SchoolRead:
    repo = SchoolRepository(session)
    current = await repo.get_school(school_id)
    if not current:
        raise HTTPException(status_code=404, detail="School not found")
    values = payload.model_dump(exclude_unset=True)
    if values.get("code") and values["code"] != current.code and await repo.get_school_by_code(values["code"]):
        raise _duplicate_code("School", values["code"])
    updated = await repo.update_school(school_id, values)
    return SchoolRead.model_validate(updated)


# PUBLIC_INTERFACE
@router.delete("/schools/{school_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete school")
async def delete_school(
    school_id: UUID = Path(...),
    session: AsyncSession = Depends(get_db_session),
) -> None:
    if not await SchoolRepository(session).delete_school(school_id):
        raise HTTPException(status_code=404, detail="School not found")
