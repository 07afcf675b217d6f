from enum import Enum
from app.core.schemas import CamelModel


class StorageBucket(str, Enum):
    AVATARS = "avatars"
    GALLERY = "gallery"
    VIDEOS = "videos"


class UploadUrlRequest(CamelModel):
    bucket: StorageBucket


class UploadUrlResponse(CamelModel):
    upload_url: str
    public_url: str
    file_name: str
