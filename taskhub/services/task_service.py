"""
Task business logic service.
Applies the access policy, keeps documents and their blobs in step with
their task, and fans out real-time notifications after successful mutations.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.exceptions import (
    ContentMissing,
    DocumentNotFound,
    InvalidReference,
    TaskNotFound,
)
from taskhub.crud.document import crud_document
from taskhub.crud.task import crud_task
from taskhub.crud.user import crud_user
from taskhub.models.document import TaskDocument
from taskhub.models.task import Task
from taskhub.models.user import User
from taskhub.schemas.task import TaskCreate, TaskFilter, TaskRead, TaskUpdate
from taskhub.services import task_policy
from taskhub.services.notification_service import NotificationEvent, NotificationSink
from taskhub.services.storage_service import DocumentStorage, IncomingDocument, StoredDocument

logger = logging.getLogger(__name__)


class TaskService:

    def __init__(self, *, notifier: NotificationSink, storage: DocumentStorage) -> None:
        self.notifier = notifier
        self.storage = storage

    # ── Queries ───────────────────────────────────────────────────────────────

    async def list_tasks(
        self,
        db: AsyncSession,
        *,
        filters: TaskFilter,
        current_user: User,
    ) -> tuple[list[Task], int]:
        """List tasks visible to the current user with filters applied."""
        if task_policy.is_admin(current_user):
            return await crud_task.list_with_filters(db, filters=filters)
        return await crud_task.list_with_filters(
            db, filters=filters, visible_to=current_user.id
        )

    async def get_task(
        self,
        db: AsyncSession,
        *,
        task_id: uuid.UUID,
        current_user: User,
    ) -> Task:
        task = await self._load(db, task_id)
        task_policy.assert_can_view(current_user, task)
        return task

    # ── Mutations ─────────────────────────────────────────────────────────────

    async def create_task(
        self,
        db: AsyncSession,
        *,
        task_in: TaskCreate,
        documents: Sequence[IncomingDocument] = (),
        current_user: User,
    ) -> Task:
        """
        Create a task owned by the current user.
        The assignee and the attachment batch are validated before anything
        is written.
        """
        if task_in.assigned_to is not None:
            await self._assert_user_exists(db, task_in.assigned_to)
        task_policy.check_attachments(0, [d.content_type for d in documents])

        task = await crud_task.create_task(
            db, obj_in=task_in, created_by=current_user.id
        )
        await self._attach(db, task=task, documents=documents, uploaded_by=current_user.id)
        await db.commit()

        task = await self._load(db, task.id)
        logger.info(
            "Task %s created by user_id=%s with %d document(s)",
            task.id,
            current_user.id,
            len(documents),
        )
        await self._fan_out(
            task_policy.plan_creation_notices(task, current_user),
            task=task,
            actor=current_user,
        )
        return task

    async def update_task(
        self,
        db: AsyncSession,
        *,
        task_id: uuid.UUID,
        task_in: TaskUpdate,
        documents: Sequence[IncomingDocument] = (),
        current_user: User,
    ) -> Task:
        """
        Apply a partial update and append documents.

        Every check runs before the first write: existence, the update rule,
        the assignee reference, then the attachment batch. Notifications go
        out only once the change is committed.
        """
        task = await self._load(db, task_id)
        task_policy.assert_can_update(current_user, task)

        changes = task_in.changes()
        new_assignee = changes.get("assigned_to")
        if new_assignee is not None:
            await self._assert_user_exists(db, new_assignee)
        task_policy.check_attachments(
            len(task.documents), [d.content_type for d in documents]
        )

        previous_assignee = task.assigned_to
        if changes or documents:
            changes["updated_at"] = datetime.now(timezone.utc)
            await crud_task.update(db, db_obj=task, obj_in=changes)
        await self._attach(db, task=task, documents=documents, uploaded_by=current_user.id)
        await db.commit()

        task = await self._load(db, task_id)
        logger.info(
            "Task %s updated by user_id=%s (fields=%s, documents=%d)",
            task.id,
            current_user.id,
            sorted(k for k in changes if k != "updated_at"),
            len(documents),
        )
        await self._fan_out(
            task_policy.plan_update_notices(task, previous_assignee, current_user),
            task=task,
            actor=current_user,
        )
        return task

    async def delete_task(
        self,
        db: AsyncSession,
        *,
        task_id: uuid.UUID,
        current_user: User,
    ) -> None:
        task = await self._load(db, task_id)
        task_policy.assert_can_delete(current_user, task)
        blob_paths = await self._cascade_delete(db, task)
        await db.commit()
        logger.info("Task %s deleted by user_id=%s", task_id, current_user.id)
        self.reclaim(blob_paths)

    async def purge_tasks_created_by(
        self, db: AsyncSession, *, user_id: uuid.UUID
    ) -> list[str]:
        """
        Delete every task the user created along with its document records.
        Returns the blob paths to reclaim once the caller has committed.
        """
        tasks = await crud_task.list_created_by(db, user_id=user_id)
        blob_paths: list[str] = []
        for task in tasks:
            blob_paths.extend(await self._cascade_delete(db, task))
        logger.info("Purged %d task(s) created by user_id=%s", len(tasks), user_id)
        return blob_paths

    def reclaim(self, blob_paths: Sequence[str]) -> int:
        """Best-effort blob removal; failures are logged by the storage layer."""
        return sum(1 for path in blob_paths if self.storage.remove(path))

    # ── Documents ─────────────────────────────────────────────────────────────

    async def list_documents(
        self,
        db: AsyncSession,
        *,
        task_id: uuid.UUID,
        current_user: User,
    ) -> list[TaskDocument]:
        task = await self._load(db, task_id)
        task_policy.assert_can_read_document(current_user, task)
        return list(task.documents)

    async def get_document_content(
        self,
        db: AsyncSession,
        *,
        task_id: uuid.UUID,
        document_id: uuid.UUID,
        current_user: User,
    ) -> tuple[TaskDocument, str]:
        """Return the document record and the on-disk path of its blob."""
        task = await self._load(db, task_id)
        task_policy.assert_can_read_document(current_user, task)
        document = self._find_document(task, document_id)
        if not self.storage.exists(document.file_path):
            logger.warning(
                "Document %s of task %s has no file at %s",
                document.id,
                task.id,
                document.file_path,
            )
            raise ContentMissing()
        return document, document.file_path

    async def remove_document(
        self,
        db: AsyncSession,
        *,
        task_id: uuid.UUID,
        document_id: uuid.UUID,
        current_user: User,
    ) -> None:
        task = await self._load(db, task_id)
        document = self._find_document(task, document_id)
        task_policy.assert_can_remove_document(current_user, task, document)

        path = document.file_path
        await crud_document.detach(db, task=task, document=document)
        await crud_task.update(
            db, db_obj=task, obj_in={"updated_at": datetime.now(timezone.utc)}
        )
        await db.commit()
        self.reclaim([path])
        logger.info(
            "Document %s removed from task %s by user_id=%s",
            document_id,
            task_id,
            current_user.id,
        )

    # ── Private helpers ───────────────────────────────────────────────────────

    async def _load(self, db: AsyncSession, task_id: uuid.UUID) -> Task:
        task = await crud_task.get_with_relations(db, task_id)
        if task is None:
            raise TaskNotFound(str(task_id))
        return task

    async def _assert_user_exists(self, db: AsyncSession, user_id: uuid.UUID) -> None:
        if await crud_user.get(db, user_id) is None:
            raise InvalidReference()

    @staticmethod
    def _find_document(task: Task, document_id: uuid.UUID) -> TaskDocument:
        for document in task.documents:
            if document.id == document_id:
                return document
        raise DocumentNotFound(str(document_id))

    async def _attach(
        self,
        db: AsyncSession,
        *,
        task: Task,
        documents: Sequence[IncomingDocument],
        uploaded_by: uuid.UUID,
    ) -> None:
        stored: list[StoredDocument] = []
        try:
            for incoming in documents:
                blob = self.storage.save(incoming)
                stored.append(blob)
                await crud_document.create_document(
                    db,
                    task=task,
                    filename=blob.filename,
                    original_name=incoming.original_name,
                    file_path=blob.path,
                    file_size=blob.size,
                    mime_type=incoming.content_type,
                    uploaded_by=uploaded_by,
                )
        except Exception:
            for blob in stored:
                self.storage.remove(blob.path)
            raise

    async def _cascade_delete(self, db: AsyncSession, task: Task) -> list[str]:
        # Document records, then the task. Blobs are left for reclaim().
        removed = await crud_document.detach_all(db, task=task)
        await crud_task.remove(db, db_obj=task)
        return [document.file_path for document in removed]

    async def _fan_out(
        self,
        notices: list[task_policy.Notice],
        *,
        task: Task,
        actor: User,
    ) -> None:
        if not notices:
            return
        task_data = TaskRead.model_validate(task).model_dump(mode="json", by_alias=True)
        for notice in notices:
            payload: dict[str, Any] = {"task": task_data}
            if notice.event == task_policy.TASK_ASSIGNED:
                payload["assignedBy"] = actor.email
            event = NotificationEvent(
                recipient_id=notice.recipient_id,
                event=notice.event,
                payload=payload,
            )
            try:
                await self.notifier.publish(event)
            except Exception:
                logger.exception(
                    "Notification %s for user_id=%s could not be published",
                    notice.event,
                    notice.recipient_id,
                )
