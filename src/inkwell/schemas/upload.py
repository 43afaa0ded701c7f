"""Upload-related Pydantic schemas."""

from .common import CamelModel


class StoredFile(CamelModel):
    """Reference to an object written by the storage backend."""

    url: str
    key: str


class UploadResponse(CamelModel):
    """Response returned after a successful image upload."""

    message: str
    file: StoredFile
