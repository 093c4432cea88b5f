from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.schemas.visits import VisitType

SESSION_ENTITY_TYPE = "visit_session"


class LocationSampleIn(BaseModel):
    """One GPS fix reported by the device."""
    recorded_at: datetime = Field(..., description="Device timestamp of the fix")
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    accuracy: Optional[float] = Field(None, ge=0, description="Reported accuracy in metres")


class LocationSampleBatch(BaseModel):
    """Samples collected for a running visit session."""
    session_id: UUID = Field(..., description="Visit session the samples belong to")
    user_id: UUID = Field(..., description="Field worker reporting the samples")
    samples: List[LocationSampleIn] = Field(..., min_length=1)


class LocationSampleRead(BaseModel):
    """Stored location sample."""
    id: UUID
    entity_id: UUID
    entity_type: str
    user_id: UUID
    recorded_at: datetime
    latitude: float
    longitude: float
    accuracy: Optional[float] = None

    class Config:
        from_attributes = True


class RecordedSamples(BaseModel):
    """Result of recording a batch."""
    recorded_count: int = Field(..., ge=0)


class LinkToVisitRequest(BaseModel):
    """Re-tag a session's samples onto the submitted visit."""
    session_id: UUID = Field(..., description="Visit session whose samples are re-tagged")
    visit_id: UUID = Field(..., description="Submitted visit receiving the samples")
    visit_type: VisitType = Field(..., description="Entity type written onto the samples")


class LinkToVisitResponse(BaseModel):
    """Number of samples moved from the session to the visit."""
    updated_count: int = Field(..., ge=0)
