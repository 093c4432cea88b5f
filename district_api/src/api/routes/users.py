from __future__ import annotations

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.deps import get_db_session
from src.core.hierarchy import Role
from src.core.security import get_password_hash
from src.repositories.users import UserRepository
from src.schemas.users import UserCreate, UserRead, UserStatus, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/users", tags=["Users"])


async def _set_status(session: AsyncSession, user_id: UUID, new_status: UserStatus) -> UserRead:
    repo = UserRepository(session)
    updated = await repo.update_user(user_id, {"status": new_status})
    if not updated:
        raise HTTPException(status_code=404, detail="User not found")
    logger.info("User %s is now %s", user_id, new_status)
    return UserRead.model_validate(updated)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[UserRead],
    summary="List users",
    description="List staff accounts, optionally filtered by role or status.",
)
async def list_users(
    role: Role | None = Query(None),
    user_status: UserStatus | None = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_db_session),
) -> List[UserRead]:
    repo = UserRepository(session)
    items = await repo.list_users(
        role=role.value if role else None, status=user_status, limit=limit, offset=offset
    )
    return [UserRead.model_validate(u) for u in items]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
    description="Create a staff account. The phone number must be unique.",
)
async def create_user(
    payload: UserCreate,
    session: AsyncSession = Depends(get_db_session),
) -> UserRead:
    repo = UserRepository(session)
    if await repo.get_user_by_phone(payload.phone_number):
        raise HTTPException(status_code=409, detail="User with this phone number already exists")

    fields = payload.model_dump(exclude={"password"})
    fields["role"] = payload.role.value
    user = await repo.create_user(hashed_password=get_password_hash(payload.password), **fields)
    return UserRead.model_validate(user)


# PUBLIC_INTERFACE
@router.get("/{user_id}", response_model=UserRead, summary="Get user")
async def get_user(
    user_id: UUID = Path(...),
    session: AsyncSession = Depends(get_db_session),
) -> UserRead:
    user = await UserRepository(session).get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return UserRead.model_validate(user)


# PUBLIC_INTERFACE
@router.patch("/{user_id}", response_model=UserRead, summary="Update user")
async def update_user(
    payload: UserUpdate,
    user_id: UUID = Path(...),
    session: AsyncSession = Depends(get_db_session),
) -> UserRead:
    repo = UserRepository(session)
    current = await repo.get_user_by_id(user_id)
    if not current:
        raise HTTPException(status_code=404, detail="User not found")

    values = payload.model_dump(exclude_unset=True, exclude={"password"})
    if payload.phone_number and payload.phone_number != current.phone_number:
        if await repo.get_user_by_phone(payload.phone_number):
            raise HTTPException(status_code=409, detail="User with this phone number already exists")
    if payload.role is not None:
        values["role"] = payload.role.value
    if payload.password:
        values["hashed_password"] = get_password_hash(payload.password)

    updated = await repo.update_user(user_id, values)
    return UserRead.model_validate(updated)


# PUBLIC_INTERFACE
@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete user")
async def delete_user(
    user_id: UUID = Path(...),
    session: AsyncSession = Depends(get_db_session),
) -> None:
    if not await UserRepository(session).delete_user(user_id):
        raise HTTPException(status_code=404, detail="User not found")


# PUBLIC_INTERFACE
@router.patch("/{user_id}/approve", response_model=UserRead, summary="Approve user")
async def approve_user(
    user_id: UUID = Path(...),
    session: AsyncSession = Depends(get_db_session),
) -> UserRead:
    """
    Activate a pending or restricted account.

    There is no separate unrestrict transition: approving a restricted account
    lifts the restriction.
    """
    return await _set_status(session, user_id, "active")


# PUBLIC_INTERFACE
@router.patch("/{user_id}/restrict", response_model=UserRead, summary="Restrict user")
async def restrict_user(
    user_id: UUID = Path(...),
    session: AsyncSession = Depends(get_db_session),
) -> UserRead:
    """Block an account without deleting it."""
    return await _set_status(session, user_id, "restricted")
