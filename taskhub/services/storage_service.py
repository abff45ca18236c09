"""
Local-disk storage for task document blobs.
Database rows only carry the path; this module owns the files themselves.
"""
from __future__ import annotations

import logging
import os
import secrets
import time
from dataclasses import dataclass

from fastapi import UploadFile

from taskhub.core.config import settings
from taskhub.core.exceptions import BadRequestException, FileTooLargeException

logger = logging.getLogger(__name__)

STORED_NAME_PREFIX = "documents"


@dataclass(frozen=True)
class IncomingDocument:
    """An upload read fully into memory, not yet written anywhere."""

    original_name: str
    content_type: str | None
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class StoredDocument:
    filename: str
    path: str
    size: int


async def read_upload(upload: UploadFile) -> IncomingDocument:
    """
    Read a multipart upload, rejecting empty and oversized files.
    Never buffers more than one byte past the size limit.
    """
    limit = settings.max_file_size_bytes
    if upload.size is not None and upload.size > limit:
        raise FileTooLargeException(settings.MAX_FILE_SIZE_MB)
    content = await upload.read(limit + 1)
    original_name = os.path.basename(upload.filename or "document.pdf")
    if not content:
        raise BadRequestException(f"File '{original_name}' is empty")
    if len(content) > limit:
        raise FileTooLargeException(settings.MAX_FILE_SIZE_MB)
    return IncomingDocument(
        original_name=original_name,
        content_type=upload.content_type,
        content=content,
    )


class DocumentStorage:

    def __init__(self, root: str) -> None:
        self.root = root

    def _unique_name(self, original_name: str) -> str:
        ext = os.path.splitext(original_name)[1].lower() or ".pdf"
        stamp = int(time.time() * 1000)
        return f"{STORED_NAME_PREFIX}-{stamp}-{secrets.randbelow(10**9)}{ext}"

    def ensure_root(self) -> None:
        os.makedirs(self.root, exist_ok=True)

    def save(self, incoming: IncomingDocument) -> StoredDocument:
        self.ensure_root()
        filename = self._unique_name(incoming.original_name)
        path = os.path.join(self.root, filename)
        with open(path, "wb") as f:
            f.write(incoming.content)
        logger.debug("Stored document %s (%d bytes)", filename, incoming.size)
        return StoredDocument(filename=filename, path=path, size=incoming.size)

    def exists(self, path: str) -> bool:
        return os.path.isfile(path)

    def remove(self, path: str) -> bool:
        """
        Delete a blob. A file that is already gone is not an error; any other
        failure is logged and reported as False, never raised.
        """
        try:
            os.remove(path)
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.warning("Could not remove document file %s: %s", path, exc)
            return False
        return True


document_storage = DocumentStorage(settings.UPLOAD_DIR)
