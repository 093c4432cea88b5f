from __future__ import annotations

from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select, update

from src.db.models.users import User
from .base import BaseRepository


class UserRepository(BaseRepository):
    """Repository for district staff accounts."""

    async def get_user_by_id(self, user_id: UUID) -> Optional[User]:
        stmt = select(User).where(User.id == user_id)
        return await self.scalar_one_or_none(stmt)

    async def get_user_by_phone(self, phone_number: str) -> Optional[User]:
        stmt = select(User).where(User.phone_number == phone_number)
        return await self.scalar_one_or_none(stmt)

    async def list_users(
        self,
        *,
        role: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[User]:
        stmt = select(User)
        if role:
            stmt = stmt.where(User.role == role)
        if status:
            stmt = stmt.where(User.status == status)
        stmt = stmt.order_by(User.created_at.desc()).offset(offset).limit(limit)
        result = await self.scalars(stmt)
        return list(result)

    async def create_user(self, *, hashed_password: str, **fields: Any) -> User:
        user = User(hashed_password=hashed_password, **fields)
        await self.add(user)
        await self.commit()
        # refresh loaded state by reloading
        return (await self.get_user_by_id(user.id))  # type: ignore

    async def update_user(self, user_id: UUID, values: dict[str, Any]) -> Optional[User]:
        if not values:
            return await self.get_user_by_id(user_id)

        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(**values, updated_at=func.now())
            .execution_options(synchronize_session="fetch")
        )
        await self.execute(stmt)
        await self.commit()
        return await self.get_user_by_id(user_id)

    async def delete_user(self, user_id: UUID) -> int:
        res = await self.execute(delete(User).where(User.id == user_id))
        await self.commit()
        return res.rowcount
