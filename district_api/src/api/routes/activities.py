from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from src.core.deps import get_visit_service
from src.schemas.visits import FieldVisitCreate, FieldVisitRead, FieldVisitSubmitted, GpsLinkStatus, VisitType
from src.services.visits import VisitService

router = APIRouter(prefix="/activities", tags=["Activities"])


# PUBLIC_INTERFACE
@router.get(
    "/schools/{school_id}/history",
    response_model=List[FieldVisitRead],
    summary="School visit history",
    description="Visits of every type recorded for a school, newest first.",
)
async def school_visit_history(
    school_id: UUID = Path(...),
    limit: Optional[int] = Query(None, ge=1, le=500),
    service: VisitService = Depends(get_visit_service),
) -> List[FieldVisitRead]:
    items = await service.list_school_visits(school_id, limit=limit)
    return [FieldVisitRead.model_validate(v) for v in items]


# PUBLIC_INTERFACE
@router.get(
    "/schools/{school_id}/latest",
    response_model=Optional[FieldVisitRead],
    summary="Latest school visit",
    description="Most recent visit for a school, or null when it has never been visited.",
)
async def latest_school_visit(
    school_id: UUID = Path(...),
    service: VisitService = Depends(get_visit_service),
) -> Optional[FieldVisitRead]:
    visit = await service.get_latest_school_visit(school_id)
    return FieldVisitRead.model_validate(visit) if visit else None


# PUBLIC_INTERFACE
@router.post(
    "/{visit_type}",
    response_model=FieldVisitSubmitted,
    status_code=status.HTTP_201_CREATED,
    summary="Submit visit",
    description=(
        "Save a field visit. When session_id is given the session is stopped and its GPS "
        "samples are moved onto the visit; gps_link reports how that went. A failed link "
        "never fails the submission."
    ),
)
async def submit_visit(
    payload: FieldVisitCreate,
    visit_type: VisitType = Path(..., description="monitoring | mentoring | office | other"),
    service: VisitService = Depends(get_visit_service),
) -> FieldVisitSubmitted:
    visit, outcome = await service.submit_visit(visit_type, payload)
    base = FieldVisitRead.model_validate(visit).model_dump()
    gps_link = (
        GpsLinkStatus(ok=outcome.ok, updated_count=outcome.updated_count, error=outcome.error)
        if outcome is not None
        else None
    )
    return FieldVisitSubmitted(**base, gps_link=gps_link)


# PUBLIC_INTERFACE
@router.get("/{visit_type}", response_model=List[FieldVisitRead], summary="List visits")
async def list_visits(
    visit_type: VisitType = Path(...),
    aeo_id: Optional[UUID] = Query(None),
    service: VisitService = Depends(get_visit_service),
) -> List[FieldVisitRead]:
    items = await service.list_visits(visit_type, aeo_id=aeo_id)
    return [FieldVisitRead.model_validate(v) for v in items]


# PUBLIC_INTERFACE
@router.get("/{visit_type}/{visit_id}", response_model=FieldVisitRead, summary="Get visit")
async def get_visit(
    visit_type: VisitType = Path(...),
    visit_id: UUID = Path(...),
    service: VisitService = Depends(get_visit_service),
) -> FieldVisitRead:
    visit = await service.get_visit(visit_type, visit_id)
    if not visit:
        raise HTTPException(status_code=404, detail="Visit not found")
    return FieldVisitRead.model_validate(visit)
