"""
Task document CRUD operations.
"""
from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.crud.base import CRUDBase
from taskhub.models.document import TaskDocument
from taskhub.models.task import Task


class CRUDDocument(CRUDBase[TaskDocument]):

    async def create_document(
        self,
        db: AsyncSession,
        *,
        task: Task,
        filename: str,
        original_name: str,
        file_path: str,
        file_size: int,
        mime_type: str,
        uploaded_by: uuid.UUID,
    ) -> TaskDocument:
        document = TaskDocument(
            task_id=task.id,
            filename=filename,
            original_name=original_name,
            file_path=file_path,
            file_size=file_size,
            mime_type=mime_type,
            uploaded_by=uploaded_by,
        )
        db.add(document)
        await db.flush()
        return document

    async def detach_all(self, db: AsyncSession, *, task: Task) -> list[TaskDocument]:
        """
        Delete every document record owned by the task.
        Returns the removed records so their blobs can be reclaimed afterwards.
        """
        documents = list(task.documents)
        task.documents.clear()
        await db.flush()
        return documents

    async def detach(
        self, db: AsyncSession, *, task: Task, document: TaskDocument
    ) -> None:
        task.documents.remove(document)
        await db.flush()


crud_document = CRUDDocument(TaskDocument)
