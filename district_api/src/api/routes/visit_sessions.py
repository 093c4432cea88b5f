from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from src.core.deps import get_visit_service
from src.schemas.visits import VisitSessionEnd, VisitSessionRead, VisitSessionStart, VisitSessionUpdate
from src.services.visits import VisitService

router = APIRouter(prefix="/visit-sessions", tags=["Visit Sessions"])


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=VisitSessionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Start visit session",
    description="Open a GPS-tracked visit session. 409 when the AEO already has one in progress.",
)
async def start_session(
    payload: VisitSessionStart,
    service: VisitService = Depends(get_visit_service),
) -> VisitSessionRead:
    created = await service.start_session(payload)
    return VisitSessionRead.model_validate(created)


# PUBLIC_INTERFACE
@router.get("", response_model=List[VisitSessionRead], summary="List visit sessions")
async def list_sessions(
    aeo_id: Optional[UUID] = Query(None, description="Only sessions of this AEO"),
    service: VisitService = Depends(get_visit_service),
) -> List[VisitSessionRead]:
    items = await service.list_sessions(aeo_id=aeo_id)
    return [VisitSessionRead.model_validate(s) for s in items]


# PUBLIC_INTERFACE
@router.get(
    "/active/{aeo_id}",
    response_model=Optional[VisitSessionRead],
    summary="Active visit session",
    description="The AEO's in-progress session, or null.",
)
async def get_active_session(
    aeo_id: UUID = Path(...),
    service: VisitService = Depends(get_visit_service),
) -> Optional[VisitSessionRead]:
    active = await service.get_active_session(aeo_id)
    return VisitSessionRead.model_validate(active) if active else None


# PUBLIC_INTERFACE
@router.get("/{session_id}", response_model=VisitSessionRead, summary="Get visit session")
async def get_session(
    session_id: UUID = Path(...),
    service: VisitService = Depends(get_visit_service),
) -> VisitSessionRead:
    found = await service.get_session(session_id)
    if not found:
        raise HTTPException(status_code=404, detail="Visit session not found")
    return VisitSessionRead.model_validate(found)


# PUBLIC_INTERFACE
@router.post("/{session_id}/end", response_model=VisitSessionRead, summary="End visit session")
async def end_session(
    payload: VisitSessionEnd,
    session_id: UUID = Path(...),
    service: VisitService = Depends(get_visit_service),
) -> VisitSessionRead:
    ended = await service.end_session(session_id, payload)
    if not ended:
        raise HTTPException(status_code=404, detail="Visit session not found")
    return VisitSessionRead.model_validate(ended)


# PUBLIC_INTERFACE
@router.post("/{session_id}/cancel", response_model=VisitSessionRead, summary="Cancel visit session")
async def cancel_session(
    session_id: UUID = Path(...),
    service: VisitService = Depends(get_visit_service),
) -> VisitSessionRead:
    cancelled = await service.cancel_session(session_id)
    if not cancelled:
        raise HTTPException(status_code=404, detail="Visit session not found")
    return VisitSessionRead.model_validate(cancelled)


# PUBLIC_INTERFACE
@router.patch("/{session_id}", response_model=VisitSessionRead, summary="Update visit session")
async def update_session(
    payload: VisitSessionUpdate,
    session_id: UUID = Path(...),
    service: VisitService = Depends(get_visit_service),
) -> VisitSessionRead:
    updated = await service.update_session(session_id, payload)
    if not updated:
        raise HTTPException(status_code=404, detail="Visit session not found")
    return VisitSessionRead.model_validate(updated)
