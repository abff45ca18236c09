"""
User management service.
Profile self-service for every user, account administration for admins.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.exceptions import (
    AccessDenied,
    BadRequestException,
    ConflictException,
    NotFoundException,
)
from taskhub.core.security import hash_password, verify_password
from taskhub.crud.user import crud_user
from taskhub.models.user import User
from taskhub.schemas.user import (
    AdminUserCreate,
    AdminUserUpdate,
    ProfileUpdate,
    UserFilter,
)
from taskhub.services import task_policy
from taskhub.services.task_service import TaskService

logger = logging.getLogger(__name__)


class UserService:

    async def list_users(
        self, db: AsyncSession, *, filters: UserFilter
    ) -> tuple[list[User], int]:
        return await crud_user.list_users(db, filters=filters)

    async def get_user(
        self, db: AsyncSession, *, user_id: uuid.UUID, current_user: User
    ) -> User:
        """Users may read their own account; admins may read any."""
        if current_user.id != user_id and not task_policy.is_admin(current_user):
            raise AccessDenied("Access denied. You can only view your own profile.")
        return await self._get_or_404(db, user_id)

    async def create_user(
        self, db: AsyncSession, *, user_in: AdminUserCreate, current_user: User
    ) -> User:
        if await crud_user.email_taken(db, user_in.email):
            raise ConflictException("A user with this email already exists")
        user = await crud_user.create_user(
            db,
            name=user_in.name,
            email=user_in.email,
            hashed_password=hash_password(user_in.password),
            role=user_in.role,
        )
        logger.info("User %s created by admin user_id=%s", user.id, current_user.id)
        return user

    async def update_profile(
        self, db: AsyncSession, *, user: User, profile_in: ProfileUpdate
    ) -> User:
        """
        Update the caller's own name, email or password.
        A new password is only accepted together with the current one.
        """
        changes: dict[str, Any] = {}
        if profile_in.name is not None:
            changes["name"] = profile_in.name
        if profile_in.email is not None and profile_in.email != user.email:
            if await crud_user.email_taken(db, profile_in.email, exclude_id=user.id):
                raise ConflictException("Email is already in use")
            changes["email"] = profile_in.email
        if profile_in.password is not None:
            if not verify_password(profile_in.current_password or "", user.hashed_password):
                raise BadRequestException("Current password is incorrect")
            changes["hashed_password"] = hash_password(profile_in.password)

        if not changes:
            return user
        return await crud_user.update(db, db_obj=user, obj_in=changes)

    async def admin_update_user(
        self, db: AsyncSession, *, user_id: uuid.UUID, user_in: AdminUserUpdate
    ) -> User:
        user = await self._get_or_404(db, user_id)
        changes: dict[str, Any] = user_in.model_dump(
            exclude_unset=True, exclude_none=True, exclude={"password"}
        )
        if "email" in changes and changes["email"] != user.email:
            if await crud_user.email_taken(db, changes["email"], exclude_id=user.id):
                raise ConflictException("Email is already in use")
        if user_in.password is not None:
            changes["hashed_password"] = hash_password(user_in.password)
        if changes.get("is_active") is False:
            changes["refresh_token_hash"] = None
        if not changes:
            return user
        return await crud_user.update(db, db_obj=user, obj_in=changes)

    async def delete_user(
        self,
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        current_user: User,
        task_service: TaskService,
    ) -> None:
        """
        Delete an account along with every task it created.
        Tasks assigned to the account stay, unassigned, and documents it
        uploaded to other tasks stay on those tasks without an uploader.
        """
        task_policy.assert_not_self_deletion(current_user, user_id)
        if not task_policy.is_admin(current_user):
            raise AccessDenied("Access denied. Admin privileges required.")
        user = await self._get_or_404(db, user_id)

        blob_paths = await task_service.purge_tasks_created_by(db, user_id=user.id)
        await crud_user.remove(db, db_obj=user)
        await db.commit()
        logger.info("User %s deleted by admin user_id=%s", user_id, current_user.id)
        task_service.reclaim(blob_paths)

    async def _get_or_404(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await crud_user.get(db, user_id)
        if user is None:
            raise NotFoundException("User", str(user_id))
        return user


user_service = UserService()
