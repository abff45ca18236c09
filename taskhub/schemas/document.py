"""
Task document Pydantic schemas.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from taskhub.schemas.common import CamelModel


class DocumentRead(CamelModel):
    id: uuid.UUID
    task_id: uuid.UUID
    filename: str
    original_name: str
    file_size: int
    file_size_formatted: str
    mime_type: str
    uploaded_by: uuid.UUID | None
    created_at: datetime
