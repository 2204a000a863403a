"""
Gallery Backend — Upload Validation & Staging Service
=======================================================

What:  Validates an uploaded image and stages it on local disk as the
       hand-off buffer before the remote media upload.
How:   A sequential validation pipeline that returns a structured
       UploadCheck (accept / reject + reason) instead of framework
       callbacks; then an async write into the staging directory.
Who:   Called by GalleryService.upload_image().

Validation pipeline (cheapest first, stops at the first rejection):
    1. A file was sent at all
    2. Extension is one of .jpeg .jpg .png .gif
    3. Declared MIME type is one of image/jpeg image/jpg image/png image/gif
    4. Size is non-zero and at most MAX_FILE_SIZE (5MB by default)
    5. The optional title fits the images.title column (255 characters)

    Every check runs before anything is staged or sent to the media host.

Staging:
    uploads/
    ├── 1718000000000-sunset.png
    └── 1718000004211-beach.jpg

    Files are named <epoch-ms>-<original basename>; only the basename of the
    client-supplied name is used, so no path component can escape the
    directory. A staged file is removed after a successful remote upload.
"""

import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import aiofiles

from gallery.config import settings
from gallery.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif"}

ALLOWED_MIME_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif"}

# Matches String(255) on images.title and UpdateImageRequest
MAX_TITLE_LENGTH = 255


@dataclass(frozen=True)
class UploadCheck:
    """Outcome of the validation pipeline."""

    accepted: bool
    reason: str = ""
    field: str = "file"

    @classmethod
    def accept(cls) -> "UploadCheck":
        return cls(accepted=True)

    @classmethod
    def reject(cls, reason: str, field: str = "file") -> "UploadCheck":
        return cls(accepted=False, reason=reason, field=field)

    def raise_if_rejected(self) -> None:
        if not self.accepted:
            raise ValidationError(message=self.reason, field=self.field)


class UploadService:
    """
    Owns the staging directory.

    Args:
        upload_dir: Override the staging path (used in tests).
        max_file_size: Override the size cap (used in tests).
    """

    def __init__(self, upload_dir: Optional[str] = None, max_file_size: Optional[int] = None):
        self.upload_dir = Path(upload_dir or settings.upload_dir).resolve()
        self.max_file_size = max_file_size or settings.max_file_size

    def ensure_upload_dir(self) -> None:
        """Create the staging directory if it does not exist yet."""
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Upload staging directory: %s", self.upload_dir)

    # ── Validation pipeline ───────────────────────────────────────────────

    def _check_presence(self, filename: Optional[str], content: Optional[bytes]) -> UploadCheck:
        if not filename or content is None:
            return UploadCheck.reject("No file uploaded")
        return UploadCheck.accept()

    def _check_extension(self, filename: str) -> UploadCheck:
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            return UploadCheck.reject(
                f"Only image files are allowed! File type '{ext or 'none'}' is not supported. "
                f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
            )
        return UploadCheck.accept()

    def _check_mime_type(self, content_type: Optional[str]) -> UploadCheck:
        # Drop parameters such as "; charset=binary"
        mime = (content_type or "").split(";")[0].strip().lower()
        if mime not in ALLOWED_MIME_TYPES:
            return UploadCheck.reject(
                f"Only image files are allowed! Content type '{mime or 'none'}' is not supported."
            )
        return UploadCheck.accept()

    def _check_size(self, size: int) -> UploadCheck:
        if size == 0:
            return UploadCheck.reject("Uploaded file is empty")
        if size > self.max_file_size:
            max_mb = self.max_file_size / (1024 * 1024)
            return UploadCheck.reject(f"File too large. Maximum size is {max_mb:.0f}MB.")
        return UploadCheck.accept()

    def _check_title(self, title: Optional[str]) -> UploadCheck:
        if title and len(title) > MAX_TITLE_LENGTH:
            return UploadCheck.reject(
                f"Title must be at most {MAX_TITLE_LENGTH} characters", field="title"
            )
        return UploadCheck.accept()

    def check(
        self,
        filename: Optional[str],
        content_type: Optional[str],
        content: Optional[bytes],
        title: Optional[str] = None,
    ) -> UploadCheck:
        """Run the pipeline; the first rejection wins."""
        presence = self._check_presence(filename, content)
        if not presence.accepted:
            return presence

        for result in (
            self._check_extension(filename),
            self._check_mime_type(content_type),
            self._check_size(len(content)),
            self._check_title(title),
        ):
            if not result.accepted:
                logger.info("Upload rejected: %s", result.reason)
                return result

        return UploadCheck.accept()

    # ── Staging ───────────────────────────────────────────────────────────

    def _staging_path(self, filename: str) -> Path:
        safe_name = Path(filename).name.replace(" ", "_") or "upload"
        return self.upload_dir / f"{int(time.time() * 1000)}-{safe_name}"

    async def stage(self, filename: str, content: bytes) -> str:
        """
        Write validated content into the staging directory.

        Returns:
            Absolute path of the staged file.

        Raises:
            FileStorageError: the directory is missing or not writable.
        """
        path = self._staging_path(filename)
        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to stage upload at %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"operation": "stage_upload", "error_type": type(e).__name__},
            )

        logger.info("Staged upload %s (%d bytes)", path.name, len(content))
        return str(path)

    async def discard(self, file_path: str) -> None:
        """
        Remove a staged file. Best effort: a failure is logged, not raised,
        because the remote upload it buffered has already succeeded.
        """
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.debug("Discarded staged file: %s", path.name)
        except OSError as e:
            logger.warning("Failed to discard staged file %s: %s", file_path, str(e))
