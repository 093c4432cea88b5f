from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from sqlalchemy import Date, DateTime, Float, Text, text
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from src.db.base import Base, UUIDPkMixin, TimestampMixin


class VisitSession(UUIDPkMixin, TimestampMixin, Base):
    """GPS tracking context opened when an AEO starts logging a school visit."""
    __tablename__ = "visit_sessions"

    aeo_id: Mapped[UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    aeo_name: Mapped[str] = mapped_column(Text, nullable=False)
    school_id: Mapped[Optional[UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    school_name: Mapped[str] = mapped_column(Text, nullable=False)
    start_timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("now()"))
    start_latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    start_longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    start_location_source: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("'manual'"))
    end_timestamp: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    end_latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    end_longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    end_location_source: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("'in_progress'"))  # in_progress/completed/cancelled
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    visit_id: Mapped[Optional[UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    visit_type: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class LocationSample(UUIDPkMixin, TimestampMixin, Base):
    """
    One GPS fix.

    entity_id points at the visit session while tracking is running and is
    re-pointed at the submitted visit on linking; rows are never deleted.
    """
    __tablename__ = "location_samples"

    entity_id: Mapped[UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    accuracy: Mapped[Optional[float]] = mapped_column(Float, nullable=True)


class FieldVisit(UUIDPkMixin, TimestampMixin, Base):
    """Submitted visit form (monitoring, mentoring, office or other activity)."""
    __tablename__ = "field_visits"

    visit_type: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    aeo_id: Mapped[UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    aeo_name: Mapped[str] = mapped_column(Text, nullable=False)
    school_id: Mapped[Optional[UUID]] = mapped_column(UUID(as_uuid=True), nullable=True, index=True)
    school_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    visit_date: Mapped[date] = mapped_column(Date, nullable=False)
    session_id: Mapped[Optional[UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("now()"))
    form_data: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
