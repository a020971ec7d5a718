# services/file_service.py
import logging
import mimetypes
import os
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import aiofiles
from fastapi import UploadFile

from core.config import settings
from core.exceptions import ValidationFailedError

logger = logging.getLogger(__name__)


class FileService:
    """Stores uploads under FILE_STORAGE_PATH and hands back public URLs."""

    def __init__(self, storage_path: Optional[str] = None):
        self.storage_path = Path(storage_path or settings.FILE_STORAGE_PATH)
        self.url_prefix = settings.UPLOADS_URL_PREFIX.rstrip("/")
        self.max_file_size = settings.MAX_FILE_SIZE
        self.allowed_mime_types = set(settings.ALLOWED_FILE_TYPES)

        self.storage_path.mkdir(parents=True, exist_ok=True)

    async def save_file(self, file: UploadFile) -> str:
        """Validate and write one upload, returning its URL."""
        content = await file.read()
        await file.seek(0)

        if len(content) > self.max_file_size:
            raise ValidationFailedError(
                f"File size exceeds limit: {self.max_file_size // (1024 * 1024)}MB"
            )

        filename = file.filename or "upload"
        mime_type = file.content_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"
        if mime_type not in self.allowed_mime_types:
            raise ValidationFailedError(f"File type {mime_type} is not allowed")

        stored_filename = f"{uuid.uuid4().hex}_{Path(filename).name}"
        target = self.storage_path / stored_filename

        async with aiofiles.open(target, "wb") as f:
            await f.write(content)

        url = f"{self.url_prefix}/{stored_filename}"
        logger.info(f"Stored upload {filename} as {url}")
        return url

    async def save_documents(
            self,
            files: Sequence[UploadFile],
            titles: Optional[Sequence[str]] = None,
            descriptions: Optional[Sequence[str]] = None,
    ) -> List[Dict[str, str]]:
        """
        Save every file and build document records.

        Either all files are written or none are kept: on failure the files
        already written are removed before the error propagates. Missing
        titles/descriptions default to empty strings.
        """
        titles = list(titles or [])
        descriptions = list(descriptions or [])
        documents: List[Dict[str, str]] = []

        try:
            for i, file in enumerate(files):
                url = await self.save_file(file)
                documents.append({
                    "url": url,
                    "title": titles[i] if i < len(titles) else "",
                    "description": descriptions[i] if i < len(descriptions) else "",
                })
        except Exception:
            logger.error(f"Document upload failed after {len(documents)} file(s); rolling back stored files")
            self.discard([d["url"] for d in documents])
            raise

        return documents

    def discard(self, urls: Sequence[str]) -> None:
        for url in urls:
            path = self.storage_path / url.rsplit("/", 1)[-1]
            try:
                os.remove(path)
            except FileNotFoundError:
                logger.warning(f"Stored file already gone: {path}")
