from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Path, status

from src.core.deps import get_location_service
from src.schemas.location import (
    LinkToVisitRequest,
    LinkToVisitResponse,
    LocationSampleBatch,
    LocationSampleRead,
    RecordedSamples,
)
from src.services.location_tracking import LocationTrackingService

router = APIRouter(prefix="/location-tracking", tags=["Location Tracking"])


# PUBLIC_INTERFACE
@router.post(
    "/samples",
    response_model=RecordedSamples,
    status_code=status.HTTP_201_CREATED,
    summary="Record location samples",
    description="Store a batch of GPS samples against a running visit session.",
)
async def record_samples(
    payload: LocationSampleBatch,
    service: LocationTrackingService = Depends(get_location_service),
) -> RecordedSamples:
    count = await service.record_samples(payload)
    return RecordedSamples(recorded_count=count)


# PUBLIC_INTERFACE
@router.get(
    "/{entity_id}/samples",
    response_model=List[LocationSampleRead],
    summary="List location samples",
    description="Samples tagged with a visit session id or, after linking, a visit id.",
)
async def list_samples(
    entity_id: UUID = Path(...),
    service: LocationTrackingService = Depends(get_location_service),
) -> List[LocationSampleRead]:
    items = await service.list_samples(entity_id)
    return [LocationSampleRead.model_validate(s) for s in items]


# PUBLIC_INTERFACE
@router.patch(
    "/link-to-visit",
    response_model=LinkToVisitResponse,
    summary="Link session samples to a visit",
    description=(
        "Re-tag every sample recorded for session_id with visit_id and visit_type. "
        "Calling again with the same session returns updated_count=0."
    ),
)
async def link_to_visit(
    payload: LinkToVisitRequest,
    service: LocationTrackingService = Depends(get_location_service),
) -> LinkToVisitResponse:
    result = await service.link(payload.session_id, payload.visit_id, payload.visit_type.value)
    return LinkToVisitResponse(updated_count=result.updated_count)
