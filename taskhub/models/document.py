"""
TaskDocument ORM model.
A PDF file attached to exactly one task; the blob lives on disk at file_path.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskhub.db.base import Base, UUIDPrimaryKeyMixin

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


class TaskDocument(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "task_documents"

    task_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
    )
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str] = mapped_column(String(500), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    # kept when the uploader account is deleted; the task still owns the file
    uploaded_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ─────────────────────────────────────────────────────────
    task: Mapped["Task"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Task",
        back_populates="documents",
    )

    __table_args__ = (
        CheckConstraint("file_size > 0", name="file_size_positive"),
        CheckConstraint("mime_type = 'application/pdf'", name="mime_type_pdf"),
        Index("ix_task_documents_task_id", "task_id"),
        Index("ix_task_documents_uploaded_by", "uploaded_by"),
    )

    @property
    def file_size_formatted(self) -> str:
        size = float(self.file_size)
        unit = 0
        while size >= 1024 and unit < len(_SIZE_UNITS) - 1:
            size /= 1024
            unit += 1
        return f"{round(size, 2):g} {_SIZE_UNITS[unit]}"

    def __repr__(self) -> str:
        return f"<TaskDocument id={self.id} original_name={self.original_name!r}>"
