from __future__ import annotations

from typing import Optional
from sqlalchemy import Text, Integer
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.db.base import Base, UUIDPkMixin, TimestampMixin


class District(UUIDPkMixin, TimestampMixin, Base):
    """Education district, the top of the organisation hierarchy."""
    __tablename__ = "districts"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    code: Mapped[str] = mapped_column(Text, nullable=False, unique=True)


class Cluster(UUIDPkMixin, TimestampMixin, Base):
    """Group of schools supervised by one AEO."""
    __tablename__ = "clusters"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    code: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    district_id: Mapped[UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)


class School(UUIDPkMixin, TimestampMixin, Base):
    """School with its place in the hierarchy and headline staffing/enrolment figures."""
    __tablename__ = "schools"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    code: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    emis_number: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cluster_id: Mapped[UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    district_id: Mapped[UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    total_students: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    present_students: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    total_teachers: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    present_teachers: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
