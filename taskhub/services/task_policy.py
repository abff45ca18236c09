"""
Task access and lifecycle rules.

Pure decisions, no I/O: who may view, update, delete a task or remove one of
its documents, whether an attachment batch is acceptable, and which users
must hear about a successful mutation.
"""
from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from taskhub.core.config import settings
from taskhub.core.exceptions import (
    AccessDenied,
    DocumentLimitExceeded,
    InvalidFileType,
    SelfDeletionForbidden,
)

ADMIN_ROLE = "admin"

TASK_ASSIGNED = "taskAssigned"
TASK_UPDATED = "taskUpdated"


class Principal(Protocol):
    id: uuid.UUID
    role: str


class TaskLike(Protocol):
    created_by: uuid.UUID
    assigned_to: uuid.UUID | None


class DocumentLike(Protocol):
    uploaded_by: uuid.UUID | None


@dataclass(frozen=True)
class Notice:
    """A notification the caller must deliver after a mutation succeeds."""

    event: str
    recipient_id: uuid.UUID


def is_admin(principal: Principal) -> bool:
    return principal.role == ADMIN_ROLE


def is_creator(principal: Principal, task: TaskLike) -> bool:
    return task.created_by == principal.id


def is_assignee(principal: Principal, task: TaskLike) -> bool:
    return task.assigned_to is not None and task.assigned_to == principal.id


# ── Task rules ────────────────────────────────────────────────────────────────

def can_view(principal: Principal, task: TaskLike) -> bool:
    return is_admin(principal) or is_creator(principal, task) or is_assignee(principal, task)


def can_update(principal: Principal, task: TaskLike) -> bool:
    # An assignee may change every field, reassignment included.
    return is_admin(principal) or is_creator(principal, task) or is_assignee(principal, task)


def can_delete(principal: Principal, task: TaskLike) -> bool:
    return is_admin(principal) or is_creator(principal, task)


def assert_can_view(principal: Principal, task: TaskLike) -> None:
    if not can_view(principal, task):
        raise AccessDenied(
            "Access denied. You can only view tasks assigned to you or created by you."
        )


def assert_can_update(principal: Principal, task: TaskLike) -> None:
    if not can_update(principal, task):
        raise AccessDenied(
            "Access denied. Only admins, task creators, and assigned users can update tasks."
        )


def assert_can_delete(principal: Principal, task: TaskLike) -> None:
    if not can_delete(principal, task):
        raise AccessDenied(
            "Access denied. Only task creators and admins can delete tasks."
        )


# ── Document rules ────────────────────────────────────────────────────────────

def can_read_document(principal: Principal, task: TaskLike) -> bool:
    return can_view(principal, task)


def assert_can_read_document(principal: Principal, task: TaskLike) -> None:
    if not can_read_document(principal, task):
        raise AccessDenied(
            "Access denied. You can only access documents from tasks "
            "assigned to you or created by you."
        )


def can_remove_document(
    principal: Principal, task: TaskLike, document: DocumentLike
) -> bool:
    return (
        is_admin(principal)
        or is_creator(principal, task)
        or document.uploaded_by == principal.id
    )


def assert_can_remove_document(
    principal: Principal, task: TaskLike, document: DocumentLike
) -> None:
    if not can_remove_document(principal, task, document):
        raise AccessDenied(
            "Access denied. You can only delete documents you uploaded "
            "or from tasks you created."
        )


def check_attachments(current_count: int, content_types: Iterable[str | None]) -> None:
    """
    Validate a whole attachment batch before anything is stored.
    Either every file is accepted or the batch is rejected.
    """
    content_types = list(content_types)
    if not content_types:
        return
    limit = settings.MAX_DOCUMENTS_PER_TASK
    if current_count + len(content_types) > limit:
        raise DocumentLimitExceeded(limit)
    allowed = set(settings.ALLOWED_DOCUMENT_TYPES)
    for content_type in content_types:
        if content_type not in allowed:
            raise InvalidFileType()


# ── Account rules ─────────────────────────────────────────────────────────────

def assert_not_self_deletion(principal: Principal, target_id: uuid.UUID) -> None:
    if principal.id == target_id:
        raise SelfDeletionForbidden()


# ── Notification fan-out ──────────────────────────────────────────────────────

def plan_creation_notices(task: TaskLike, actor: Principal) -> list[Notice]:
    if task.assigned_to is not None and task.assigned_to != actor.id:
        return [Notice(TASK_ASSIGNED, task.assigned_to)]
    return []


def plan_update_notices(
    task: TaskLike,
    previous_assignee: uuid.UUID | None,
    actor: Principal,
) -> list[Notice]:
    """
    ``task`` is the task after the update has been applied.
    The current assignee hears about every update, and additionally gets a
    taskAssigned notice when the assignment moved to them from someone else.
    """
    notices: list[Notice] = []
    current = task.assigned_to
    if current is None:
        return notices
    if current != previous_assignee and current != actor.id:
        notices.append(Notice(TASK_ASSIGNED, current))
    notices.append(Notice(TASK_UPDATED, current))
    return notices
