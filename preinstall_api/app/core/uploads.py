"""
Storage for files attached to a registration form.

Uploaded files are written to ``settings.upload_dir`` (relative paths
are anchored at the project root, like the database path) under a
server-generated name of the form ``<field>-<epoch ms>-<random><ext>``.
Only the generated filename is recorded on the submission.
"""

import logging
import os
import random
import time
from typing import Optional

from fastapi import UploadFile

from preinstall_api.app.core.config import resolve_project_path
from preinstall_api.app.core.exceptions import UploadTooLargeError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1MB


class FileIntake:
    """Save uploaded files to disk and enforce the size limit."""

    def __init__(self, upload_dir: str, max_size: int) -> None:
        self.upload_dir = resolve_project_path(upload_dir)
        self.max_size = max_size

    def generate_filename(self, field_name: str, original_name: Optional[str]) -> str:
        extension = os.path.splitext(original_name or "")[1]
        unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9 - 1)}"
        return f"{field_name}-{unique_suffix}{extension}"

    async def save(self, upload: Optional[UploadFile], field_name: str) -> Optional[str]:
        """Store ``upload`` and return its generated filename.

        Returns ``None`` when no file was sent (browsers submit an empty
        part with no filename for untouched file inputs).  Raises
        ``UploadTooLargeError`` if the file exceeds ``max_size``; the
        partially written file is removed.
        """
        if upload is None or not upload.filename:
            return None

        os.makedirs(self.upload_dir, exist_ok=True)
        filename = self.generate_filename(field_name, upload.filename)
        file_path = os.path.join(self.upload_dir, filename)

        file_size = 0
        with open(file_path, "wb") as f:
            while chunk := await upload.read(CHUNK_SIZE):
                file_size += len(chunk)
                if file_size > self.max_size:
                    break
                f.write(chunk)
        if file_size > self.max_size:
            os.remove(file_path)
            raise UploadTooLargeError(
                f"File {upload.filename!r} exceeds the {self.max_size // (1024 * 1024)} MB limit",
                fields=[field_name],
            )

        logger.info("Stored upload %s (%d bytes) as %s", upload.filename, file_size, filename)
        return filename

    def delete(self, filename: str) -> None:
        """Remove a stored file if it exists."""
        file_path = os.path.join(self.upload_dir, filename)
        if os.path.exists(file_path):
            os.remove(file_path)
