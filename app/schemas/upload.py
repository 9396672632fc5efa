"""Image upload schemas."""

from typing import Literal

from pydantic import BaseModel

ImageContentType = Literal["image/jpeg", "image/png", "image/gif", "image/webp"]


class ImageUploadRequest(BaseModel):
    content_type: ImageContentType
    purpose: Literal["message", "profile", "mentor"] = "message"


class ImageUploadResponse(BaseModel):
    """Presigned PUT URL; store ``key`` on the message or profile afterwards."""

    key: str
    upload_url: str
    expires_in: int = 900
