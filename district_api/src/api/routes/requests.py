from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from src.core.deps import get_acting_user_id, get_request_service
from src.schemas.requests import (
    AssigneeCreate,
    AssigneeRead,
    AssigneeUpdate,
    DataRequestCreate,
    DataRequestDetail,
    DataRequestRead,
    DataRequestUpdate,
)
from src.services.requests import RequestService

router = APIRouter(tags=["Requests"])


def _to_detail(req, assignees) -> DataRequestDetail:
    base = DataRequestRead.model_validate(req).model_dump()
    return DataRequestDetail(**base, assignees=[AssigneeRead.model_validate(a) for a in assignees])


# PUBLIC_INTERFACE
@router.get(
    "/requests",
    response_model=List[DataRequestRead],
    summary="List visible requests",
    description=(
        "List non-archived data requests the given user may see: requests they created, "
        "requests assigned to them or their school, and requests from lower-ranked users "
        "inside their jurisdiction. user_id falls back to the X-User-ID header."
    ),
)
async def list_requests(
    user_id: Optional[UUID] = Query(None, description="Requesting user id"),
    user_role: Optional[str] = Query(None, description="Requesting user's role"),
    school_id: Optional[UUID] = Query(None),
    cluster_id: Optional[UUID] = Query(None),
    district_id: Optional[UUID] = Query(None),
    school_name: Optional[str] = Query(None, description="Used when the user has no stored school name"),
    acting_user: Optional[UUID] = Depends(get_acting_user_id),
    service: RequestService = Depends(get_request_service),
) -> List[DataRequestRead]:
    viewer_id = user_id or acting_user
    if viewer_id is None:
        raise HTTPException(status_code=400, detail="user_id query parameter or X-User-ID header is required")
    viewer = await service.build_viewer(
        user_id=viewer_id,
        role=user_role,
        school_id=school_id,
        cluster_id=cluster_id,
        district_id=district_id,
        school_name=school_name,
    )
    items = await service.list_visible_requests(viewer)
    return [DataRequestRead.model_validate(r) for r in items]


# PUBLIC_INTERFACE
@router.post(
    "/requests",
    response_model=DataRequestDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Create request",
    description="Create a data request together with its initial assignees.",
)
async def create_request(
    payload: DataRequestCreate,
    service: RequestService = Depends(get_request_service),
) -> DataRequestDetail:
    created = await service.create_request(payload)
    loaded = await service.get_request_with_assignees(created.id)
    if loaded is None:
        raise HTTPException(status_code=500, detail="Request vanished after creation")
    return _to_detail(*loaded)


# PUBLIC_INTERFACE
@router.get("/requests/{request_id}", response_model=DataRequestDetail, summary="Get request")
async def get_request(
    request_id: UUID = Path(...),
    service: RequestService = Depends(get_request_service),
) -> DataRequestDetail:
    loaded = await service.get_request_with_assignees(request_id)
    if loaded is None:
        raise HTTPException(status_code=404, detail="Request not found")
    return _to_detail(*loaded)


# PUBLIC_INTERFACE
@router.patch("/requests/{request_id}", response_model=DataRequestRead, summary="Update request")
async def update_request(
    payload: DataRequestUpdate,
    request_id: UUID = Path(...),
    service: RequestService = Depends(get_request_service),
) -> DataRequestRead:
    updated = await service.update_request(request_id, payload)
    if updated is None:
        raise HTTPException(status_code=404, detail="Request not found")
    return DataRequestRead.model_validate(updated)


# PUBLIC_INTERFACE
@router.delete(
    "/requests/{request_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete request",
    description="Delete a request and all of its assignees.",
)
async def delete_request(
    request_id: UUID = Path(...),
    service: RequestService = Depends(get_request_service),
) -> None:
    if not await service.delete_request(request_id):
        raise HTTPException(status_code=404, detail="Request not found")


# PUBLIC_INTERFACE
@router.post(
    "/requests/{request_id}/assignees",
    response_model=AssigneeRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add assignee",
)
async def add_assignee(
    payload: AssigneeCreate,
    request_id: UUID = Path(...),
    service: RequestService = Depends(get_request_service),
) -> AssigneeRead:
    created = await service.add_assignee(request_id, payload)
    if created is None:
        raise HTTPException(status_code=404, detail="Request not found")
    return AssigneeRead.model_validate(created)


# PUBLIC_INTERFACE
@router.patch(
    "/assignees/{assignee_id}",
    response_model=AssigneeRead,
    summary="Update assignee",
    description="Update an assignee's status or responses. Completing stamps submitted_at.",
)
async def update_assignee(
    payload: AssigneeUpdate,
    assignee_id: UUID = Path(...),
    service: RequestService = Depends(get_request_service),
) -> AssigneeRead:
    updated = await service.update_assignee(assignee_id, payload)
    if updated is None:
        raise HTTPException(status_code=404, detail="Assignee not found")
    return AssigneeRead.model_validate(updated)
