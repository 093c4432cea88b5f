from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class DistrictCreate(BaseModel):
    """Create district payload."""
    name: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1, description="Unique district code")


class DistrictUpdate(BaseModel):
    """Partial district update."""
    name: Optional[str] = Field(None, min_length=1)
    code: Optional[str] = Field(None, min_length=1)


class DistrictRead(BaseModel):
    """District read model."""
    id: UUID
    name: str
    code: str
    created_at: datetime

    class Config:
        from_attributes = True


class ClusterCreate(BaseModel):
    """Create cluster payload."""
    name: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1, description="Unique cluster code")
    district_id: UUID = Field(..., description="Owning district")


class ClusterUpdate(BaseModel):
    """Partial cluster update."""
    name: Optional[str] = Field(None, min_length=1)
    code: Optional[str] = Field(None, min_length=1)
    district_id: Optional[UUID] = Field(None)


class ClusterRead(BaseModel):
    """Cluster read model."""
    id: UUID
    name: str
    code: str
    district_id: UUID
    created_at: datetime

    class Config:
        from_attributes = True


class SchoolCreate(BaseModel):
    """Create school payload."""
    name: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1, description="Unique school code")
    emis_number: Optional[str] = Field(None, description="Education Management Information System number")
    cluster_id: UUID = Field(...)
    district_id: UUID = Field(...)
    address: Optional[str] = Field(None)
    total_students: int = Field(0, ge=0)
    present_students: int = Field(0, ge=0)
    total_teachers: int = Field(0, ge=0)
    present_teachers: int = Field(0, ge=0)


class SchoolUpdate(BaseModel):
    """Partial school update."""
    name: Optional[str] = Field(None, min_length=1)
    code: Optional[str] = Field(None, min_length=1)
    emis_number: Optional[str] = Field(None)
    cluster_id: Optional[UUID] = Field(None)
    district_id: Optional[UUID] = Field(None)
    address: Optional[str] = Field(None)
    total_students: Optional[int] = Field(None, ge=0)
    present_students: Optional[int] = Field(None, ge=0)
    total_teachers: Optional[int] = Field(None, ge=0)
    present_teachers: Optional[int] = Field(None, ge=0)


class SchoolRead(BaseModel):
    """School read model."""
    id: UUID
    name: str
    code: str
    emis_number: Optional[str] = None
    cluster_id: UUID
    district_id: UUID
    address: Optional[str] = None
    total_students: int
    present_students: int
    total_teachers: int
    present_teachers: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
