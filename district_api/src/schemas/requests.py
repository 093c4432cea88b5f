from __future__ import annotations

from datetime import datetime
from typing import Any, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.core.hierarchy import Role

RequestPriority = Literal["low", "medium", "high"]
RequestStatus = Literal["draft", "active", "completed"]
AssigneeStatus = Literal["pending", "completed", "overdue"]


class AssigneeCreate(BaseModel):
    """Assign a request to a user, optionally on behalf of a school."""
    user_id: UUID = Field(..., description="Responding user")
    user_name: str = Field(..., min_length=1)
    user_role: str = Field(..., min_length=1)
    school_id: Optional[UUID] = Field(None, description="Set when the request is assigned at school level")
    school_name: Optional[str] = Field(None)
    status: AssigneeStatus = Field("pending")
    field_responses: List[Any] = Field(default_factory=list)


class AssigneeUpdate(BaseModel):
    """Assignee response/status update."""
    status: Optional[AssigneeStatus] = Field(None)
    field_responses: Optional[List[Any]] = Field(None)
    submitted_at: Optional[datetime] = Field(None)


class AssigneeRead(BaseModel):
    """Assignee read model."""
    id: UUID
    request_id: UUID
    user_id: UUID
    user_name: str
    user_role: str
    school_id: Optional[UUID] = None
    school_name: Optional[str] = None
    status: str
    field_responses: List[Any] = Field(default_factory=list)
    submitted_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class DataRequestCreate(BaseModel):
    """
    Create data request payload.

    Creator jurisdiction fields are only used when the creator has no user
    record; otherwise they are copied from the stored user.
    """
    title: str = Field(..., min_length=1)
    description: Optional[str] = Field(None)
    created_by: UUID = Field(..., description="Creating user id")
    created_by_name: Optional[str] = Field(None)
    created_by_role: Optional[Role] = Field(None)
    created_by_school_id: Optional[UUID] = Field(None)
    created_by_cluster_id: Optional[UUID] = Field(None)
    created_by_district_id: Optional[UUID] = Field(None)
    priority: RequestPriority = Field("medium")
    status: RequestStatus = Field("active")
    due_date: Optional[datetime] = Field(None, description="Defaults to now when omitted")
    fields: List[Any] = Field(default_factory=list, description="Field definitions to collect")
    assignees: List[AssigneeCreate] = Field(default_factory=list, description="Assignees created with the request")


class DataRequestUpdate(BaseModel):
    """Partial data request update."""
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None)
    priority: Optional[RequestPriority] = Field(None)
    status: Optional[RequestStatus] = Field(None)
    is_archived: Optional[bool] = Field(None)
    due_date: Optional[datetime] = Field(None)
    fields: Optional[List[Any]] = Field(None)


class DataRequestRead(BaseModel):
    """Data request read model."""
    id: UUID
    title: str
    description: Optional[str] = None
    created_by: UUID
    created_by_name: str
    created_by_role: str
    created_by_school_id: Optional[UUID] = None
    created_by_cluster_id: Optional[UUID] = None
    created_by_district_id: Optional[UUID] = None
    priority: str
    status: str
    is_archived: bool
    due_date: datetime
    fields: List[Any] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DataRequestDetail(DataRequestRead):
    """Data request with its assignees."""
    assignees: List[AssigneeRead] = Field(default_factory=list)
