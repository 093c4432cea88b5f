from __future__ import annotations

from typing import Optional
from sqlalchemy import Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.db.base import Base, UUIDPkMixin, TimestampMixin


class User(UUIDPkMixin, TimestampMixin, Base):
    """
    District staff account.

    The school/cluster/district columns are the user's jurisdiction and drive
    supervisory request visibility.
    """
    __tablename__ = "users"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    phone_number: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    hashed_password: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(Text, nullable=False, index=True)  # CEO, DEO, DDEO, AEO, HEAD_TEACHER, TEACHER
    status: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("'active'"))
    school_id: Mapped[Optional[UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    school_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cluster_id: Mapped[Optional[UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    district_id: Mapped[Optional[UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
