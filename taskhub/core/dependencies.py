"""
FastAPI dependency injection functions.
Provides get_db, the authenticated-user dependencies, and the task service
with its notification sink and document storage.
"""
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.exceptions import AccessDenied, InvalidTokenException, UnauthorizedException
from taskhub.core.security import decode_access_token, token_subject
from taskhub.crud.user import crud_user
from taskhub.db.session import get_db
from taskhub.models.user import User
from taskhub.services.notification_service import NotificationSink, notification_sink
from taskhub.services.storage_service import DocumentStorage, document_storage
from taskhub.services.task_service import TaskService

# Re-export get_db so routes can import from one place
__all__ = [
    "get_db",
    "get_current_user",
    "get_current_user_from_header_or_query",
    "require_admin",
    "get_notification_sink",
    "get_document_storage",
    "get_task_service",
    "DBSession",
    "CurrentUser",
    "AdminUser",
    "DocumentViewer",
    "TaskServiceDep",
]

bearer_scheme = HTTPBearer(auto_error=False)


async def authenticate_token(db: AsyncSession, token: str) -> User:
    """
    Resolve an access token to an active user.
    Shared by HTTP dependencies and the WebSocket handshake.
    """
    try:
        user_id = token_subject(decode_access_token(token))
    except JWTError:
        raise InvalidTokenException("Invalid or expired access token")

    user = await crud_user.get(db, user_id)
    if user is None:
        raise UnauthorizedException("User not found")
    if not user.is_active:
        raise UnauthorizedException("User account is deactivated")
    return user


async def get_current_user(
    db: Annotated[AsyncSession, Depends(get_db)],
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ] = None,
) -> User:
    """
    Extract and validate the JWT access token from the Authorization header.
    Returns the authenticated User model.
    """
    if credentials is None:
        raise UnauthorizedException("Access denied. No token provided.")
    return await authenticate_token(db, credentials.credentials)


async def get_current_user_from_header_or_query(
    db: Annotated[AsyncSession, Depends(get_db)],
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ] = None,
    token: Annotated[str | None, Query()] = None,
) -> User:
    """
    Like get_current_user, but also accepts ``?token=`` so documents can be
    opened directly in a browser tab.
    """
    if credentials is not None:
        return await authenticate_token(db, credentials.credentials)
    if token:
        return await authenticate_token(db, token)
    raise UnauthorizedException("Access denied. No token provided.")


async def require_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Dependency that requires the current user to have the 'admin' role."""
    if current_user.role != "admin":
        raise AccessDenied("Access denied. Admin privileges required.")
    return current_user


def get_notification_sink() -> NotificationSink:
    return notification_sink


def get_document_storage() -> DocumentStorage:
    return document_storage


def get_task_service(
    notifier: Annotated[NotificationSink, Depends(get_notification_sink)],
    storage: Annotated[DocumentStorage, Depends(get_document_storage)],
) -> TaskService:
    return TaskService(notifier=notifier, storage=storage)


# Convenience type aliases for route signatures
DBSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_admin)]
DocumentViewer = Annotated[User, Depends(get_current_user_from_header_or_query)]
TaskServiceDep = Annotated[TaskService, Depends(get_task_service)]
