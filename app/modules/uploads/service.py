"""Signed upload URLs for Supabase Storage buckets."""
import uuid
import logging
from supabase import Client
from app.core.exceptions import UpstreamError
from app.modules.uploads.schemas import StorageBucket, UploadUrlResponse

logger = logging.getLogger(__name__)


class UploadService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_upload_url(self, bucket: StorageBucket, user_id: str) -> UploadUrlResponse:
        """Signed upload URL plus the public URL the file will have once uploaded."""
        file_name = f"{user_id}/{uuid.uuid4()}"
        storage = self.supabase.storage.from_(bucket.value)
        try:
            signed = storage.create_signed_upload_url(file_name)
        except Exception as e:
            logger.error(f"Failed to create upload URL in {bucket.value}: {e}")
            raise UpstreamError(f"Failed to create upload URL: {e}")
        # storage3 has used both key spellings across releases
        upload_url = (signed.get("signed_url") or signed.get("signedUrl")) if signed else None
        if not upload_url:
            raise UpstreamError("Failed to create upload URL: empty response from storage")
        return UploadUrlResponse(
            upload_url=upload_url,
            public_url=storage.get_public_url(file_name),
            file_name=file_name,
        )
