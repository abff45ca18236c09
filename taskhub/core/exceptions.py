"""
Domain exceptions and global exception handlers for TaskHub.
Every error response shares the {success: false, message, code, errors?} envelope.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# ── Custom exception classes ──────────────────────────────────────────────────

class TaskHubException(Exception):
    """Base exception for all TaskHub domain errors."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: str | None = None,
        errors: list[dict[str, Any]] | None = None,
    ) -> None:
        self.status_code = status_code
        self.detail = detail
        self.error_code = error_code or "TASKHUB_ERROR"
        self.errors = errors
        super().__init__(detail)


class NotFoundException(TaskHubException):
    def __init__(
        self,
        resource: str,
        resource_id: str | None = None,
        error_code: str = "NOT_FOUND",
    ) -> None:
        detail = f"{resource} not found"
        if resource_id:
            detail = f"{resource} with id '{resource_id}' not found"
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code=error_code,
        )


class TaskNotFound(NotFoundException):
    def __init__(self, task_id: str | None = None) -> None:
        super().__init__("Task", task_id, error_code="TASK_NOT_FOUND")


class DocumentNotFound(NotFoundException):
    def __init__(self, document_id: str | None = None) -> None:
        super().__init__("Document", document_id, error_code="DOCUMENT_NOT_FOUND")


class ContentMissing(TaskHubException):
    """The document record exists but its file is gone from storage."""

    def __init__(self, detail: str = "File not found on server") -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="CONTENT_MISSING",
        )


class UnauthorizedException(TaskHubException):
    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="UNAUTHORIZED",
        )


class InvalidTokenException(TaskHubException):
    def __init__(self, detail: str = "Invalid or expired token") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="INVALID_TOKEN",
        )


class AccessDenied(TaskHubException):
    def __init__(self, detail: str = "You do not have permission to perform this action") -> None:
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code="ACCESS_DENIED",
        )


class BadRequestException(TaskHubException):
    def __init__(self, detail: str, error_code: str = "BAD_REQUEST") -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code,
        )


class InvalidReference(BadRequestException):
    def __init__(self, detail: str = "Assigned user not found") -> None:
        super().__init__(detail, error_code="INVALID_REFERENCE")


class DocumentLimitExceeded(BadRequestException):
    def __init__(self, limit: int) -> None:
        super().__init__(
            f"Maximum {limit} documents allowed per task",
            error_code="DOCUMENT_LIMIT_EXCEEDED",
        )
        self.limit = limit


class InvalidFileType(BadRequestException):
    def __init__(self, detail: str = "Only PDF files are allowed") -> None:
        super().__init__(detail, error_code="INVALID_FILE_TYPE")


class SelfDeletionForbidden(BadRequestException):
    def __init__(self) -> None:
        super().__init__(
            "You cannot delete your own account",
            error_code="SELF_DELETION_FORBIDDEN",
        )


class ConflictException(TaskHubException):
    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code="CONFLICT",
        )


class FileTooLargeException(TaskHubException):
    def __init__(self, max_mb: int) -> None:
        super().__init__(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds maximum allowed size of {max_mb} MB",
            error_code="FILE_TOO_LARGE",
        )


# ── Exception handlers ────────────────────────────────────────────────────────

def _error_response(
    status_code: int,
    detail: str,
    error_code: str,
    errors: list[dict[str, Any]] | None = None,
) -> JSONResponse:
    content: dict[str, Any] = {
        "success": False,
        "message": detail,
        "code": error_code,
    }
    if errors:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content)


async def taskhub_exception_handler(
    request: Request, exc: TaskHubException
) -> JSONResponse:
    return _error_response(exc.status_code, exc.detail, exc.error_code, exc.errors)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error["loc"])
        errors.append({"field": field, "message": error["msg"]})
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        "Validation failed",
        "VALIDATION_ERROR",
        errors,
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == status.HTTP_404_NOT_FOUND and detail == "Not Found":
        detail = "Route not found"
    return _error_response(exc.status_code, detail, "HTTP_ERROR")


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return _error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An unexpected internal server error occurred",
        error_code="INTERNAL_SERVER_ERROR",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the FastAPI application."""
    app.add_exception_handler(TaskHubException, taskhub_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
