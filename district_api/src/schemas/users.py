from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.core.hierarchy import Role

UserStatus = Literal["active", "pending", "restricted"]


class UserCreate(BaseModel):
    """Create user payload (admin)."""
    name: str = Field(..., min_length=1)
    phone_number: str = Field(..., min_length=5, description="Login phone number, unique")
    password: str = Field(..., min_length=6)
    role: Role = Field(..., description="One of CEO, DEO, DDEO, AEO, HEAD_TEACHER, TEACHER")
    status: UserStatus = Field("active")
    school_id: Optional[UUID] = Field(None)
    school_name: Optional[str] = Field(None)
    cluster_id: Optional[UUID] = Field(None)
    district_id: Optional[UUID] = Field(None)


class UserUpdate(BaseModel):
    """Partial user update (admin). Password is re-hashed when supplied."""
    name: Optional[str] = Field(None, min_length=1)
    phone_number: Optional[str] = Field(None, min_length=5)
    password: Optional[str] = Field(None, min_length=6)
    role: Optional[Role] = Field(None)
    school_id: Optional[UUID] = Field(None)
    school_name: Optional[str] = Field(None)
    cluster_id: Optional[UUID] = Field(None)
    district_id: Optional[UUID] = Field(None)


class UserRead(BaseModel):
    """User read model; never carries the password hash."""
    id: UUID
    name: str
    phone_number: str
    role: str
    status: str
    school_id: Optional[UUID] = None
    school_name: Optional[str] = None
    cluster_id: Optional[UUID] = None
    district_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
