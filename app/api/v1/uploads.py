"""Presigned URLs for message and profile images."""

from fastapi import APIRouter

from app.deps import CurrentUser
from app.schemas.upload import ImageUploadRequest, ImageUploadResponse
from app.services.storage import storage_service

router = APIRouter()

UPLOAD_URL_TTL = 900


@router.post("/image", response_model=ImageUploadResponse)
async def create_image_upload(data: ImageUploadRequest, user: CurrentUser) -> ImageUploadResponse:
    """Issue a presigned PUT URL; the client uploads directly to the bucket."""
    key, url = await storage_service.generate_upload_url(
        content_type=data.content_type,
        prefix=f"{data.purpose}s/{user.id}",
        expires_in=UPLOAD_URL_TTL,
    )
    return ImageUploadResponse(key=key, upload_url=url, expires_in=UPLOAD_URL_TTL)
