from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

LocationSource = Literal["auto", "manual"]


class VisitType(str, Enum):
    """Kinds of field visit an AEO can submit."""
    MONITORING = "monitoring"
    MENTORING = "mentoring"
    OFFICE = "office"
    OTHER = "other"


class VisitSessionStart(BaseModel):
    """Open a GPS-tracked visit session."""
    aeo_id: UUID = Field(..., description="Field worker starting the visit")
    aeo_name: str = Field(..., min_length=1)
    school_id: Optional[UUID] = Field(None)
    school_name: str = Field(..., min_length=1)
    start_latitude: Optional[float] = Field(None, ge=-90, le=90)
    start_longitude: Optional[float] = Field(None, ge=-180, le=180)
    start_location_source: LocationSource = Field("manual")


class VisitSessionEnd(BaseModel):
    """Close a visit session with the final position."""
    end_latitude: Optional[float] = Field(None, ge=-90, le=90)
    end_longitude: Optional[float] = Field(None, ge=-180, le=180)
    end_location_source: Optional[LocationSource] = Field(None)


class VisitSessionUpdate(BaseModel):
    """Partial visit session update."""
    notes: Optional[str] = Field(None)
    school_id: Optional[UUID] = Field(None)
    school_name: Optional[str] = Field(None, min_length=1)
    visit_id: Optional[UUID] = Field(None, description="Visit submission attached to the session")
    visit_type: Optional[VisitType] = Field(None)


class VisitSessionRead(BaseModel):
    """Visit session read model."""
    id: UUID
    aeo_id: UUID
    aeo_name: str
    school_id: Optional[UUID] = None
    school_name: str
    start_timestamp: datetime
    start_latitude: Optional[float] = None
    start_longitude: Optional[float] = None
    start_location_source: str
    end_timestamp: Optional[datetime] = None
    end_latitude: Optional[float] = None
    end_longitude: Optional[float] = None
    end_location_source: Optional[str] = None
    status: str
    notes: Optional[str] = None
    visit_id: Optional[UUID] = None
    visit_type: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class FieldVisitCreate(BaseModel):
    """Submitted visit form."""
    aeo_id: UUID = Field(...)
    aeo_name: str = Field(..., min_length=1)
    school_id: Optional[UUID] = Field(None)
    school_name: Optional[str] = Field(None)
    visit_date: date = Field(..., description="Calendar date of the visit")
    session_id: Optional[UUID] = Field(None, description="GPS session opened for this visit, if any")
    submitted_at: Optional[datetime] = Field(None, description="Defaults to server time")
    form_data: Dict[str, Any] = Field(default_factory=dict, description="Visit-type specific form answers")
    notes: Optional[str] = Field(None)


class FieldVisitRead(BaseModel):
    """Visit submission read model."""
    id: UUID
    visit_type: str
    aeo_id: UUID
    aeo_name: str
    school_id: Optional[UUID] = None
    school_name: Optional[str] = None
    visit_date: date
    session_id: Optional[UUID] = None
    submitted_at: datetime
    form_data: Dict[str, Any] = Field(default_factory=dict)
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class GpsLinkStatus(BaseModel):
    """Outcome of moving the session's GPS samples onto the visit."""
    ok: bool = Field(..., description="False when linking failed; the visit is still saved")
    updated_count: int = Field(0, ge=0)
    error: Optional[str] = Field(None)


class FieldVisitSubmitted(FieldVisitRead):
    """Visit submission response, with GPS linking outcome when a session was given."""
    gps_link: Optional[GpsLinkStatus] = Field(None)
