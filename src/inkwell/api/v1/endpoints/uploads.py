"""Image upload endpoints."""

from __future__ import annotations

from fastapi import APIRouter, File, UploadFile, status

from inkwell.api.v1.dependencies import CurrentUserDep, StorageDep
from inkwell.core.errors import ValidationError
from inkwell.schemas.common import MessageResponse
from inkwell.schemas.upload import UploadResponse

router = APIRouter(prefix="/upload", tags=["uploads"])


@router.post(
    "/image",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_image(
    current_user: CurrentUserDep,
    storage: StorageDep,
    image: UploadFile | None = File(None),
) -> UploadResponse:
    """Store an image and return the URL to reference from a post or avatar."""
    if image is None:
        raise ValidationError.for_field("image", "No file uploaded")
    data = await image.read()
    stored = storage.store(data, image.content_type or "", image.filename)
    return UploadResponse(message="File uploaded successfully", file=stored)


@router.delete("/image/{key:path}", response_model=MessageResponse)
async def delete_image(
    key: str,
    current_user: CurrentUserDep,
    storage: StorageDep,
) -> MessageResponse:
    """Remove a previously uploaded image by key."""
    storage.delete(key)
    return MessageResponse(message="File deleted successfully")
