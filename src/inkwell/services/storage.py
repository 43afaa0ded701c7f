"""Object storage for uploaded images.

Callers only ever persist the returned URL; file contents are not
interpreted beyond the declared content type.
"""
from __future__ import annotations

import logging
import secrets
import time
from pathlib import Path

from werkzeug.utils import secure_filename

from inkwell.core.errors import NotFoundError, ValidationError
from inkwell.core.settings import settings
from inkwell.schemas.upload import StoredFile

logger = logging.getLogger(__name__)

__all__ = ["KEY_PREFIX", "LocalObjectStorage", "get_storage", "sanitize_filename"]

KEY_PREFIX = "post-images"


def sanitize_filename(filename: str | None) -> str:
    """Reduce a client-supplied filename to a safe single path component."""
    name = secure_filename(filename or "")
    return name[:100] or "upload"


class LocalObjectStorage:
    """Stores objects on the local filesystem and serves them by URL."""

    def __init__(self, root: str | Path, base_url: str) -> None:
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root.resolve()):
            raise NotFoundError("File not found")
        return path

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    def store(self, data: bytes, content_type: str, filename: str | None = None) -> StoredFile:
        """Write ``data`` under a fresh key and return its URL and key.

        Raises:
            ValidationError: If the content type is not an allowed image type
                or the payload exceeds the configured size limit.
        """
        if content_type not in settings.allowed_image_types:
            raise ValidationError.for_field(
                "image", "Invalid file type. Only JPEG, PNG, and GIF images are allowed."
            )
        if len(data) > settings.max_upload_bytes:
            raise ValidationError.for_field(
                "image", f"File too large; the limit is {settings.max_upload_bytes} bytes"
            )

        stamp = int(time.time() * 1000)
        key = f"{KEY_PREFIX}/{stamp}-{secrets.token_hex(4)}-{sanitize_filename(filename)}"
        path = self._path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info("Stored %d bytes at %s", len(data), key)
        return StoredFile(url=self.url_for(key), key=key)

    def delete(self, key: str) -> None:
        """Remove the object stored under ``key``.

        Raises:
            NotFoundError: If no such object exists.
        """
        path = self._path_for(key)
        if not path.is_file():
            raise NotFoundError("File not found")
        path.unlink()
        logger.info("Deleted stored object %s", key)


def get_storage() -> LocalObjectStorage:
    """Return the storage backend configured by the current settings."""
    return LocalObjectStorage(settings.upload_dir, settings.upload_base_url)
