"""
Task CRUD operations.
Extends CRUDBase with filtering, pagination, and visibility queries.
"""
from __future__ import annotations

import uuid

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskhub.crud.base import CRUDBase
from taskhub.models.task import Task
from taskhub.schemas.task import TaskCreate, TaskFilter

_SORT_COLUMNS = {
    "title": Task.title,
    "status": Task.status,
    "priority": Task.priority,
    "dueDate": Task.due_date,
    "createdAt": Task.created_at,
}


def _with_relations(query: Select) -> Select:
    return query.options(
        selectinload(Task.creator),
        selectinload(Task.assignee),
        selectinload(Task.documents),
    )


class CRUDTask(CRUDBase[Task]):

    async def get_with_relations(
        self, db: AsyncSession, task_id: uuid.UUID
    ) -> Task | None:
        """Fetch a task with creator, assignee and documents freshly loaded."""
        result = await db.execute(
            _with_relations(select(Task))
            .where(Task.id == task_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create_task(
        self,
        db: AsyncSession,
        *,
        obj_in: TaskCreate,
        created_by: uuid.UUID,
    ) -> Task:
        task = Task(
            title=obj_in.title,
            description=obj_in.description,
            status=obj_in.status,
            priority=obj_in.priority,
            due_date=obj_in.due_date,
            created_by=created_by,
            assigned_to=obj_in.assigned_to,
        )
        db.add(task)
        await db.flush()
        return task

    async def list_with_filters(
        self,
        db: AsyncSession,
        *,
        filters: TaskFilter,
        visible_to: uuid.UUID | None = None,
    ) -> tuple[list[Task], int]:
        """
        Return (tasks, total) applying all filter criteria.
        If visible_to is provided, restricts to tasks created by or assigned to that user.
        """
        conditions = []

        if visible_to is not None:
            conditions.append(
                or_(Task.created_by == visible_to, Task.assigned_to == visible_to)
            )

        if filters.search:
            term = f"%{filters.search}%"
            conditions.append(
                or_(Task.title.ilike(term), Task.description.ilike(term))
            )

        if filters.status is not None:
            conditions.append(Task.status == filters.status)
        if filters.priority is not None:
            conditions.append(Task.priority == filters.priority)
        if filters.assigned_to is not None:
            conditions.append(Task.assigned_to == filters.assigned_to)
        if filters.created_by is not None:
            conditions.append(Task.created_by == filters.created_by)

        # Due date range
        if filters.due_date_from is not None:
            conditions.append(Task.due_date >= filters.due_date_from)
        if filters.due_date_to is not None:
            conditions.append(Task.due_date <= filters.due_date_to)

        count_query = select(func.count()).select_from(Task).where(*conditions)
        total_result = await db.execute(count_query)
        total = total_result.scalar_one()

        column = _SORT_COLUMNS[filters.sort_by]
        order = column.asc() if filters.sort_order == "asc" else column.desc()
        skip = (filters.page - 1) * filters.limit
        query = (
            _with_relations(select(Task))
            .where(*conditions)
            .order_by(order, Task.id)
            .offset(skip)
            .limit(filters.limit)
        )
        result = await db.execute(query)
        return list(result.scalars().all()), total

    async def list_created_by(
        self, db: AsyncSession, *, user_id: uuid.UUID
    ) -> list[Task]:
        result = await db.execute(
            _with_relations(select(Task))
            .where(Task.created_by == user_id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())


crud_task = CRUDTask(Task)
