from fastapi import APIRouter, Depends
from supabase import Client
from app.database.supabase_client import get_supabase
from app.core.dependencies import get_current_user
from app.modules.auth.schemas import AuthenticatedUser
from app.modules.uploads.schemas import StorageBucket, UploadUrlRequest, UploadUrlResponse
from app.modules.uploads.service import UploadService

router = APIRouter(tags=["uploads"])


def get_upload_service(supabase: Client = Depends(get_supabase)) -> UploadService:
    return UploadService(supabase)


@router.post("/uploads/url", response_model=UploadUrlResponse)
async def create_upload_url(
    body: UploadUrlRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: UploadService = Depends(get_upload_service)
):
    """Signed upload URL in one of the media buckets, under the caller's folder"""
    return service.get_upload_url(body.bucket, user.id)


@router.post("/upload/avatar", response_model=UploadUrlResponse)
async def create_avatar_upload_url(
    user: AuthenticatedUser = Depends(get_current_user),
    service: UploadService = Depends(get_upload_service)
):
    return service.get_upload_url(StorageBucket.AVATARS, user.id)
