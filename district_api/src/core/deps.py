from __future__ import annotations

import logging
from typing import AsyncGenerator
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.settings import AppSettings, get_app_settings
from src.db.session import get_async_session
from src.services.location_tracking import LocationTrackingService
from src.services.requests import RequestService
from src.services.visits import VisitService

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
async def get_db_session(
    session_dep=Depends(get_async_session),
) -> AsyncGenerator[AsyncSession, None]:
    """
    Yield an AsyncSession for one request.

    Uncommitted work is rolled back when the handler raises, so a failed
    request never leaves a half-written transaction on a pooled connection.
    """
    session: AsyncSession = session_dep
    try:
        yield session
    except Exception:
        await session.rollback()
        raise


# PUBLIC_INTERFACE
async def get_acting_user_id(
    x_user_id: str | None = Header(default=None, alias="X-User-ID"),
) -> UUID | None:
    """
    Parse the optional X-User-ID header naming the acting user.

    Raises:
        HTTPException: 400 Bad Request if the header is present but not a UUID.
    """
    if not x_user_id:
        return None
    try:
        return UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-User-ID header must be a valid UUID string.",
        )


# PUBLIC_INTERFACE
def get_settings_dep() -> AppSettings:
    """Application settings as a dependency (overridable in tests)."""
    return get_app_settings()


# PUBLIC_INTERFACE
async def get_request_service(
    session: AsyncSession = Depends(get_db_session),
    settings: AppSettings = Depends(get_settings_dep),
) -> RequestService:
    """RequestService bound to the request session and the configured school matching mode."""
    return RequestService(session, school_match=settings.SCHOOL_VISIBILITY_MATCH)


# PUBLIC_INTERFACE
async def get_visit_service(session: AsyncSession = Depends(get_db_session)) -> VisitService:
    """VisitService bound to the request session."""
    return VisitService(session)


# PUBLIC_INTERFACE
async def get_location_service(session: AsyncSession = Depends(get_db_session)) -> LocationTrackingService:
    """LocationTrackingService bound to the request session."""
    return LocationTrackingService(session)
