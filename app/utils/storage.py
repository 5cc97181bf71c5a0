"""
Image storage backends.
Files are validated (type, size, real image content) before they are written,
and addressed by public URL afterwards.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
import io
import logging
import re
import uuid

import aiofiles
from PIL import Image, UnidentifiedImageError

from app.config import settings
from app.utils.exceptions import (
    FileSizeExceededError,
    FileUploadError,
    UnsupportedFileTypeError,
)

logger = logging.getLogger(__name__)

CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}

PIL_FORMATS = {
    "image/jpeg": "jpeg",
    "image/jpg": "jpeg",
    "image/png": "png",
    "image/webp": "webp",
}

_EXTENSION_PATTERN = re.compile(r"^[a-z0-9]{1,5}$")


def validate_upload(
    filename: Optional[str],
    content_type: Optional[str],
    size: int,
    allowed_types: Optional[List[str]] = None,
    max_size: Optional[int] = None
) -> str:
    """
    Check an upload against the allowed types and the size limit.

    Args:
        filename: Original file name
        content_type: Declared MIME type
        size: Size in bytes
        allowed_types: Allowed MIME types (defaults to settings)
        max_size: Maximum size in bytes (defaults to settings)

    Returns:
        The file extension to store under

    Raises:
        FileUploadError: If the file is empty or unnamed
        UnsupportedFileTypeError: If the type is not allowed
        FileSizeExceededError: If the file is too large
    """
    allowed = allowed_types or settings.allowed_file_types
    limit = max_size or settings.max_file_size

    if not filename:
        raise FileUploadError("Filename is required")

    if content_type not in allowed:
        raise UnsupportedFileTypeError(content_type or "unknown", allowed)

    if size <= 0:
        raise FileUploadError("File is empty")

    if size > limit:
        raise FileSizeExceededError(size, limit)

    extension = Path(filename).suffix.lower().lstrip(".")
    if not _EXTENSION_PATTERN.match(extension):
        extension = CONTENT_TYPE_EXTENSIONS.get(content_type, "bin")
    return extension


def verify_image_content(content: bytes, content_type: str) -> None:
    """
    Make sure the bytes are a real image of the declared type.

    Raises:
        FileUploadError: If Pillow cannot read the image or the format differs
    """
    try:
        with Image.open(io.BytesIO(content)) as img:
            img.verify()
            pil_format = (img.format or "").lower()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise FileUploadError(f"Invalid image file: {str(e)}")

    expected = PIL_FORMATS.get(content_type)
    if expected and pil_format != expected:
        raise FileUploadError(f"File content doesn't match declared type {content_type}")


def build_storage_path(property_id: uuid.UUID, extension: str, now: Optional[datetime] = None) -> str:
    """`<property_id>/<timestamp_ms>-<8 hex>.<ext>`"""
    moment = now or datetime.now(timezone.utc)
    timestamp = int(moment.timestamp() * 1000)
    return f"{property_id}/{timestamp}-{uuid.uuid4().hex[:8]}.{extension}"


class StorageBackend(ABC):
    """Where uploaded images live."""

    @abstractmethod
    async def save(self, path: str, content: bytes) -> str:
        """Store content under a relative path and return its public URL."""

    @abstractmethod
    async def delete(self, url: str) -> bool:
        """Remove a stored file by public URL. Returns False when nothing was removed."""


class LocalStorageBackend(StorageBackend):
    """Stores files under the upload directory and serves them from the media URL."""

    def __init__(self, base_dir: Optional[str] = None, public_url: Optional[str] = None):
        self.base_dir = Path(base_dir or settings.upload_dir)
        self.public_url = (public_url or settings.public_media_url).rstrip("/")

    def _path_for_url(self, url: str) -> Optional[Path]:
        prefix = f"{self.public_url}/"
        if not url.startswith(prefix):
            return None
        relative = url[len(prefix):]
        candidate = (self.base_dir / relative).resolve()
        if self.base_dir.resolve() not in candidate.parents:
            return None
        return candidate

    async def save(self, path: str, content: bytes) -> str:
        file_path = self.base_dir / path
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(file_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            if file_path.exists():
                file_path.unlink()
            raise FileUploadError(f"Failed to save image file: {str(e)}")

        logger.info(f"Stored image {path} ({len(content)} bytes)")
        return f"{self.public_url}/{path}"

    async def delete(self, url: str) -> bool:
        file_path = self._path_for_url(url)
        if file_path is None:
            logger.debug(f"Skipping delete for external image URL {url}")
            return False

        if not file_path.exists():
            return False

        try:
            file_path.unlink()
        except OSError as e:
            logger.warning(f"Failed to delete image file {file_path}: {str(e)}")
            return False
        return True


_storage_backend: Optional[StorageBackend] = None


def get_storage_backend() -> StorageBackend:
    global _storage_backend
    if _storage_backend is None:
        _storage_backend = LocalStorageBackend()
    return _storage_backend
