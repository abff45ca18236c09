"""
User CRUD operations.
Extends CRUDBase with user-specific queries.
"""
from __future__ import annotations

import uuid

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.crud.base import CRUDBase
from taskhub.models.user import User
from taskhub.schemas.user import UserFilter

_SORT_COLUMNS = {
    "name": User.name,
    "email": User.email,
    "role": User.role,
    "createdAt": User.created_at,
}


class CRUDUser(CRUDBase[User]):

    async def get_active_by_email(self, db: AsyncSession, email: str) -> User | None:
        result = await db.execute(
            select(User).where(User.email == email, User.is_active.is_(True))
        )
        return result.scalar_one_or_none()

    async def email_taken(
        self, db: AsyncSession, email: str, *, exclude_id: uuid.UUID | None = None
    ) -> bool:
        query = select(func.count()).select_from(User).where(User.email == email)
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        result = await db.execute(query)
        return result.scalar_one() > 0

    async def create_user(
        self,
        db: AsyncSession,
        *,
        name: str,
        email: str,
        hashed_password: str,
        role: str = "user",
    ) -> User:
        user = User(
            name=name,
            email=email,
            hashed_password=hashed_password,
            role=role,
        )
        db.add(user)
        await db.flush()
        await db.refresh(user)
        return user

    async def set_refresh_token_hash(
        self, db: AsyncSession, *, user: User, token_hash: str | None
    ) -> User:
        user.refresh_token_hash = token_hash
        db.add(user)
        await db.flush()
        await db.refresh(user)
        return user

    async def list_users(
        self, db: AsyncSession, *, filters: UserFilter
    ) -> tuple[list[User], int]:
        query = select(User)
        count_query = select(func.count()).select_from(User)

        if filters.search:
            term = f"%{filters.search}%"
            search_filter = or_(User.name.ilike(term), User.email.ilike(term))
            query = query.where(search_filter)
            count_query = count_query.where(search_filter)

        if filters.role is not None:
            query = query.where(User.role == filters.role)
            count_query = count_query.where(User.role == filters.role)

        total_result = await db.execute(count_query)
        total = total_result.scalar_one()

        column = _SORT_COLUMNS[filters.sort_by]
        order = column.asc() if filters.sort_order == "asc" else column.desc()
        skip = (filters.page - 1) * filters.limit
        result = await db.execute(
            query.order_by(order, User.id).offset(skip).limit(filters.limit)
        )
        return list(result.scalars().all()), total


crud_user = CRUDUser(User)
