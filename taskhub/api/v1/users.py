"""
User routes.
PUT /users/profile for self-service, admin management on /users and /users/{id}.
"""
from __future__ import annotations

import uuid
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, status

from taskhub.core.dependencies import AdminUser, CurrentUser, DBSession, TaskServiceDep
from taskhub.schemas.common import ApiResponse, ok
from taskhub.schemas.pagination import Pagination
from taskhub.schemas.user import (
    AdminUserCreate,
    AdminUserUpdate,
    ProfileUpdate,
    UserFilter,
    UserPage,
    UserRead,
    UserRole,
    UserSortField,
)
from taskhub.services.user_service import user_service

router = APIRouter(prefix="/users", tags=["Users"])


def _user_filter_params(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    search: str | None = Query(default=None, max_length=200),
    role: UserRole | None = Query(default=None),
    sort_by: UserSortField = Query(default="createdAt", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query(default="desc", alias="sortOrder"),
) -> UserFilter:
    return UserFilter(
        page=page,
        limit=limit,
        search=search or None,
        role=role,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get(
    "",
    response_model=ApiResponse[UserPage],
    summary="List users (admin only)",
)
async def list_users(
    _: AdminUser,
    db: DBSession,
    filters: Annotated[UserFilter, Depends(_user_filter_params)],
) -> ApiResponse[UserPage]:
    users, total = await user_service.list_users(db, filters=filters)
    return ok(
        UserPage(
            users=[UserRead.model_validate(u) for u in users],
            pagination=Pagination(
                current_page=filters.page, total_items=total, limit=filters.limit
            ),
        )
    )


@router.post(
    "",
    response_model=ApiResponse[UserRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create a user (admin only)",
)
async def create_user(
    user_in: AdminUserCreate,
    admin: AdminUser,
    db: DBSession,
) -> ApiResponse[UserRead]:
    user = await user_service.create_user(db, user_in=user_in, current_user=admin)
    return ok(UserRead.model_validate(user), "User created successfully")


@router.put(
    "/profile",
    response_model=ApiResponse[UserRead],
    summary="Update the current user's profile",
)
async def update_profile(
    profile_in: ProfileUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> ApiResponse[UserRead]:
    user = await user_service.update_profile(
        db, user=current_user, profile_in=profile_in
    )
    return ok(UserRead.model_validate(user), "Profile updated successfully")


@router.get(
    "/{user_id}",
    response_model=ApiResponse[UserRead],
    summary="Get a user by ID (self or admin)",
)
async def get_user(
    user_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> ApiResponse[UserRead]:
    user = await user_service.get_user(db, user_id=user_id, current_user=current_user)
    return ok(UserRead.model_validate(user))


@router.put(
    "/{user_id}",
    response_model=ApiResponse[UserRead],
    summary="Update any user (admin only)",
)
async def update_user(
    user_id: uuid.UUID,
    user_in: AdminUserUpdate,
    _: AdminUser,
    db: DBSession,
) -> ApiResponse[UserRead]:
    user = await user_service.admin_update_user(db, user_id=user_id, user_in=user_in)
    return ok(UserRead.model_validate(user), "User updated successfully")


@router.delete(
    "/{user_id}",
    response_model=ApiResponse[None],
    summary="Delete a user and the tasks they created (admin only)",
)
async def delete_user(
    user_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
    task_service: TaskServiceDep,
) -> ApiResponse[None]:
    await user_service.delete_user(
        db, user_id=user_id, current_user=current_user, task_service=task_service
    )
    return ok(message="User deleted successfully")
