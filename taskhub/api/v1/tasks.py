"""
Task routes.
CRUD + filtering + pagination. Create and update take multipart/form-data so
PDF documents can travel with the task fields.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated, Any, Literal

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from taskhub.core.dependencies import CurrentUser, DBSession, TaskServiceDep
from taskhub.schemas.common import ApiResponse, ok
from taskhub.schemas.pagination import Pagination
from taskhub.schemas.task import (
    CLEARABLE_FIELDS,
    TaskCreate,
    TaskFilter,
    TaskPage,
    TaskRead,
    TaskUpdate,
)
from taskhub.services.storage_service import IncomingDocument, read_upload

router = APIRouter(prefix="/tasks", tags=["Tasks"])


def _task_filter_params(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    search: str | None = Query(default=None, max_length=200),
    status: str | None = Query(default=None),
    priority: str | None = Query(default=None),
    assigned_to: uuid.UUID | None = Query(default=None, alias="assignedTo"),
    created_by: uuid.UUID | None = Query(default=None, alias="createdBy"),
    due_date_from: datetime | None = Query(default=None, alias="dueDateFrom"),
    due_date_to: datetime | None = Query(default=None, alias="dueDateTo"),
    sort_by: str = Query(default="createdAt", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query(default="desc", alias="sortOrder"),
) -> TaskFilter:
    return _validated(
        TaskFilter,
        {
            "page": page,
            "limit": limit,
            "search": search or None,
            "status": status or None,
            "priority": priority or None,
            "assigned_to": assigned_to,
            "created_by": created_by,
            "due_date_from": due_date_from,
            "due_date_to": due_date_to,
            "sort_by": sort_by,
            "sort_order": sort_order,
        },
        location="query",
    )


def _validated(model: type[Any], data: dict[str, Any], *, location: str) -> Any:
    """Validate outside FastAPI's own parsing, reporting errors the same way."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise RequestValidationError(
            [{**error, "loc": (location, *error["loc"])} for error in exc.errors()]
        )


def _form_fields(**fields: str | None) -> dict[str, Any]:
    """
    Keep only the form fields the client sent.
    An empty value for a nullable field is an explicit request to clear it.
    """
    provided: dict[str, Any] = {}
    for name, value in fields.items():
        if value is None:
            continue
        if value == "" and name in CLEARABLE_FIELDS:
            provided[name] = None
        else:
            provided[name] = value
    return provided


async def _read_documents(
    documents: list[UploadFile] | None,
) -> list[IncomingDocument]:
    return [await read_upload(upload) for upload in documents or [] if upload.filename]


@router.get(
    "",
    response_model=ApiResponse[TaskPage],
    summary="List tasks with filters and pagination",
)
async def list_tasks(
    current_user: CurrentUser,
    db: DBSession,
    service: TaskServiceDep,
    filters: Annotated[TaskFilter, Depends(_task_filter_params)],
) -> ApiResponse[TaskPage]:
    tasks, total = await service.list_tasks(
        db, filters=filters, current_user=current_user
    )
    return ok(
        TaskPage(
            tasks=[TaskRead.model_validate(t) for t in tasks],
            pagination=Pagination(
                current_page=filters.page, total_items=total, limit=filters.limit
            ),
        )
    )


@router.post(
    "",
    response_model=ApiResponse[TaskRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create a new task, optionally with PDF documents",
)
async def create_task(
    current_user: CurrentUser,
    db: DBSession,
    service: TaskServiceDep,
    title: str = Form(...),
    description: str | None = Form(None),
    status_: str | None = Form(None, alias="status"),
    priority: str | None = Form(None),
    due_date: str | None = Form(None, alias="dueDate"),
    assigned_to: str | None = Form(None, alias="assignedTo"),
    documents: list[UploadFile] | None = File(None),
) -> ApiResponse[TaskRead]:
    fields = _form_fields(
        title=title,
        description=description,
        status=status_,
        priority=priority,
        due_date=due_date,
        assigned_to=assigned_to,
    )
    task_in = _validated(TaskCreate, fields, location="body")
    incoming = await _read_documents(documents)
    task = await service.create_task(
        db, task_in=task_in, documents=incoming, current_user=current_user
    )
    return ok(TaskRead.model_validate(task), "Task created successfully")


@router.get(
    "/{task_id}",
    response_model=ApiResponse[TaskRead],
    summary="Get a task by ID",
)
async def get_task(
    task_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
    service: TaskServiceDep,
) -> ApiResponse[TaskRead]:
    task = await service.get_task(db, task_id=task_id, current_user=current_user)
    return ok(TaskRead.model_validate(task))


@router.put(
    "/{task_id}",
    response_model=ApiResponse[TaskRead],
    summary="Update a task and append PDF documents",
)
async def update_task(
    task_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
    service: TaskServiceDep,
    title: str | None = Form(None),
    description: str | None = Form(None),
    status_: str | None = Form(None, alias="status"),
    priority: str | None = Form(None),
    due_date: str | None = Form(None, alias="dueDate"),
    assigned_to: str | None = Form(None, alias="assignedTo"),
    documents: list[UploadFile] | None = File(None),
) -> ApiResponse[TaskRead]:
    fields = _form_fields(
        title=title,
        description=description,
        status=status_,
        priority=priority,
        due_date=due_date,
        assigned_to=assigned_to,
    )
    task_in = _validated(TaskUpdate, fields, location="body")
    incoming = await _read_documents(documents)
    task = await service.update_task(
        db,
        task_id=task_id,
        task_in=task_in,
        documents=incoming,
        current_user=current_user,
    )
    return ok(TaskRead.model_validate(task), "Task updated successfully")


@router.delete(
    "/{task_id}",
    response_model=ApiResponse[None],
    summary="Delete a task and its documents",
)
async def delete_task(
    task_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
    service: TaskServiceDep,
) -> ApiResponse[None]:
    await service.delete_task(db, task_id=task_id, current_user=current_user)
    return ok(message="Task deleted successfully")
