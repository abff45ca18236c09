"""
Task Pydantic schemas.
Includes create/update/read variants plus a filter schema for list endpoints.

TaskUpdate distinguishes an absent field from an explicit null through
``model_fields_set``: absent leaves the stored value alone, an explicit
null clears a nullable field.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import Field, field_validator

from taskhub.schemas.common import CamelModel
from taskhub.schemas.document import DocumentRead
from taskhub.schemas.pagination import Pagination
from taskhub.schemas.user import UserReadPublic

TaskStatus = Literal["pending", "in_progress", "completed"]
TaskPriority = Literal["low", "medium", "high"]
TaskSortField = Literal["title", "status", "priority", "dueDate", "createdAt"]

CLEARABLE_FIELDS = frozenset({"description", "due_date", "assigned_to"})


def _strip(v: object) -> object:
    return v.strip() if isinstance(v, str) else v


def _future_due_date(v: datetime | None) -> datetime | None:
    if v is None:
        return v
    if v.tzinfo is None:
        v = v.replace(tzinfo=timezone.utc)
    if v <= datetime.now(timezone.utc):
        raise ValueError("Due date must be in the future")
    return v


# ── Create ────────────────────────────────────────────────────────────────────

class TaskCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    status: TaskStatus = "pending"
    priority: TaskPriority = "medium"
    due_date: datetime | None = None
    assigned_to: uuid.UUID | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        return _strip(v)

    @field_validator("due_date")
    @classmethod
    def check_due_date(cls, v: datetime | None) -> datetime | None:
        return _future_due_date(v)


# ── Update ────────────────────────────────────────────────────────────────────

class TaskUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    assigned_to: uuid.UUID | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        return _strip(v)

    @field_validator("due_date")
    @classmethod
    def check_due_date(cls, v: datetime | None) -> datetime | None:
        return _future_due_date(v)

    @field_validator("title", "status", "priority")
    @classmethod
    def not_clearable(cls, v: object) -> object:
        if v is None:
            raise ValueError("Field cannot be cleared")
        return v

    def changes(self) -> dict[str, object]:
        """Return only the fields the caller actually sent."""
        return self.model_dump(exclude_unset=True)


# ── Read ──────────────────────────────────────────────────────────────────────

class TaskRead(CamelModel):
    id: uuid.UUID
    title: str
    description: str | None
    status: str
    priority: str
    due_date: datetime | None
    is_overdue: bool
    created_by: uuid.UUID
    assigned_to: uuid.UUID | None
    creator: UserReadPublic | None = None
    assignee: UserReadPublic | None = None
    documents: list[DocumentRead] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class TaskPage(CamelModel):
    tasks: list[TaskRead]
    pagination: Pagination


# ── Filter ────────────────────────────────────────────────────────────────────

class TaskFilter(CamelModel):
    """Query parameters for filtering the task list endpoint."""

    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assigned_to: uuid.UUID | None = None
    created_by: uuid.UUID | None = None
    due_date_from: datetime | None = None
    due_date_to: datetime | None = None
    search: str | None = Field(default=None, max_length=200)
    sort_by: TaskSortField = "createdAt"
    sort_order: Literal["asc", "desc"] = "desc"
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
