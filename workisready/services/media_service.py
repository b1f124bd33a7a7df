"""
workisready/services/media_service.py

Purpose: File-backed media storage

- Writes uploads under UPLOAD_DIR/<kind> with collision-free names
- Type and size checks per upload kind
- Best-effort deletion (failures are logged, never raised)

Stored references are relative URLs like ``uploads/providers/<name>``,
served by the static mount at ``/uploads``.
"""

import asyncio
import secrets
import time
from pathlib import Path
from typing import Iterable, List, Optional, Set

from fastapi import UploadFile

from utils.constants import DOCUMENT_EXTENSIONS, IMAGE_EXTENSIONS
from workisready.core.config import settings
from workisready.core.exceptions import MediaUploadError
from workisready.core.logging import get_logger

logger = get_logger(__name__)

PUBLIC_PREFIX = "uploads"

TASKS = "tasks"
PROVIDERS = "providers"
AVATARS = "avatars"


def build_filename(prefix: str, original_name: Optional[str]) -> str:
    """
    ``<prefix>-<epoch-ms>-<random><ext>``, extension lowercased.
    """
    extension = Path(original_name or "").suffix.lower()
    stamp = int(time.time() * 1000)
    return f"{prefix}-{stamp}-{secrets.randbelow(10**9)}{extension}"


def allowed_extensions(documents: bool) -> Set[str]:
    if documents:
        return IMAGE_EXTENSIONS | DOCUMENT_EXTENSIONS
    return IMAGE_EXTENSIONS


def has_upload(file: Optional[UploadFile]) -> bool:
    """Browsers send an empty part for untouched file inputs."""
    return file is not None and bool(file.filename)


class MediaStorage:
    """Saves and removes uploaded files below one root directory."""

    def __init__(self, root: Optional[str] = None, max_bytes: Optional[int] = None):
        self.root = Path(root or settings.UPLOAD_DIR)
        self.max_bytes = max_bytes or settings.max_upload_bytes

    def path_for(self, reference: str) -> Optional[Path]:
        """
        Maps a stored reference to its file on disk.

        Returns:
            Path inside the upload root, or None for references that
            point elsewhere (absolute URLs, traversal attempts)
        """
        if not reference or "://" in reference:
            return None
        parts = Path(reference.lstrip("/")).parts
        if parts and parts[0] == PUBLIC_PREFIX:
            parts = parts[1:]
        if not parts:
            return None
        candidate = (self.root / Path(*parts)).resolve()
        root = self.root.resolve()
        if root != candidate and root not in candidate.parents:
            return None
        return candidate

    async def save(
        self,
        file: UploadFile,
        kind: str,
        prefix: str,
        documents: bool = False,
    ) -> str:
        """
        Validates and writes one upload.

        Returns:
            Stored reference (``uploads/<kind>/<name>``)

        Raises:
            MediaUploadError: Wrong file type or file too large
        """
        extension = Path(file.filename or "").suffix.lower()
        if extension not in allowed_extensions(documents):
            raise MediaUploadError(
                "Only image files are allowed" if not documents
                else "Only images or documents (pdf, doc, docx, txt) are allowed",
                details={"filename": file.filename},
            )

        content = await file.read()
        if len(content) > self.max_bytes:
            raise MediaUploadError(
                f"File exceeds the {self.max_bytes // (1024 * 1024)} MB limit",
                details={"filename": file.filename},
            )

        name = build_filename(prefix, file.filename)
        directory = self.root / kind
        target = directory / name

        def _write():
            directory.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)

        await asyncio.to_thread(_write)
        logger.debug(f"Saved upload {name} ({len(content)} bytes)")
        return f"{PUBLIC_PREFIX}/{kind}/{name}"

    async def save_many(
        self,
        files: Iterable[UploadFile],
        kind: str,
        prefix: str,
        documents: bool = False,
    ) -> List[str]:
        """
        Saves several uploads. If one is rejected, the ones already written
        by this call are removed before the error propagates.
        """
        saved: List[str] = []
        try:
            for file in files:
                if has_upload(file):
                    saved.append(await self.save(file, kind, prefix, documents))
        except MediaUploadError:
            await self.delete_many(saved)
            raise
        return saved

    async def delete(self, reference: Optional[str]) -> bool:
        """
        Removes a stored file. Missing files and OS errors are logged.

        Returns:
            True if a file was removed
        """
        if not reference:
            return False
        path = self.path_for(reference)
        if path is None:
            logger.warning(f"Refusing to delete media outside upload root: {reference}")
            return False
        try:
            await asyncio.to_thread(path.unlink)
            return True
        except FileNotFoundError:
            logger.debug(f"Media already gone: {reference}")
            return False
        except OSError as e:
            logger.warning(f"Failed to delete media {reference}: {e}")
            return False

    async def delete_many(self, references: Iterable[str]) -> int:
        removed = 0
        for reference in references:
            if await self.delete(reference):
                removed += 1
        return removed
