"""
Document routes nested under tasks.
/api/v1/tasks/{task_id}/documents
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter
from fastapi.responses import FileResponse

from taskhub.core.dependencies import CurrentUser, DBSession, DocumentViewer, TaskServiceDep
from taskhub.schemas.common import ApiResponse, ok
from taskhub.schemas.document import DocumentRead

router = APIRouter(prefix="/tasks/{task_id}/documents", tags=["Documents"])


@router.get(
    "",
    response_model=ApiResponse[list[DocumentRead]],
    summary="List the documents attached to a task",
)
async def list_documents(
    task_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
    service: TaskServiceDep,
) -> ApiResponse[list[DocumentRead]]:
    documents = await service.list_documents(
        db, task_id=task_id, current_user=current_user
    )
    return ok([DocumentRead.model_validate(d) for d in documents])


@router.get(
    "/{document_id}/download",
    response_class=FileResponse,
    summary="Download a document as an attachment",
)
async def download_document(
    task_id: uuid.UUID,
    document_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
    service: TaskServiceDep,
) -> FileResponse:
    document, path = await service.get_document_content(
        db, task_id=task_id, document_id=document_id, current_user=current_user
    )
    return FileResponse(
        path,
        media_type=document.mime_type,
        filename=document.original_name,
    )


@router.get(
    "/{document_id}/view",
    response_class=FileResponse,
    summary="Open a document inline; accepts ?token= for browser tabs",
)
async def view_document(
    task_id: uuid.UUID,
    document_id: uuid.UUID,
    current_user: DocumentViewer,
    db: DBSession,
    service: TaskServiceDep,
) -> FileResponse:
    document, path = await service.get_document_content(
        db, task_id=task_id, document_id=document_id, current_user=current_user
    )
    return FileResponse(
        path,
        media_type=document.mime_type,
        filename=document.original_name,
        content_disposition_type="inline",
    )


@router.delete(
    "/{document_id}",
    response_model=ApiResponse[None],
    summary="Remove a document from a task",
)
async def remove_document(
    task_id: uuid.UUID,
    document_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
    service: TaskServiceDep,
) -> ApiResponse[None]:
    await service.remove_document(
        db, task_id=task_id, document_id=document_id, current_user=current_user
    )
    return ok(message="Document deleted successfully")
