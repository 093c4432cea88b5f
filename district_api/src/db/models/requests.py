from __future__ import annotations

from datetime import datetime
from typing import Optional
from sqlalchemy import Boolean, DateTime, Index, Text, func, text
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from src.db.base import Base, UUIDPkMixin, TimestampMixin


class DataRequest(UUIDPkMixin, TimestampMixin, Base):
    """
    Data-collection task issued by a supervisory role.

    created_by_* jurisdiction columns are a snapshot taken at creation time and
    are not updated when the creator later moves.
    """
    __tablename__ = "data_requests"

    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    created_by_name: Mapped[str] = mapped_column(Text, nullable=False)
    created_by_role: Mapped[str] = mapped_column(Text, nullable=False)
    created_by_school_id: Mapped[Optional[UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    created_by_cluster_id: Mapped[Optional[UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    created_by_district_id: Mapped[Optional[UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    priority: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("'medium'"))
    status: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("'active'"))
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    fields: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)


class RequestAssignee(UUIDPkMixin, TimestampMixin, Base):
    """Required respondent of a data request: a named user, or a school via its head teacher."""
    __tablename__ = "request_assignees"
    request_id: Mapped[UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    user_id: Mapped[UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    user_name: Mapped[str] = mapped_column(Text, nullable=False)
    user_role: Mapped[str] = mapped_column(Text, nullable=False)
    school_id: Mapped[Optional[UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    school_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("'pending'"))
    field_responses: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


# Backs the case-insensitive school-name lookup used for school-level visibility.
Index("ix_request_assignees_upper_school_name", func.upper(RequestAssignee.school_name))
