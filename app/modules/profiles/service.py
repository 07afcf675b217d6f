from supabase import Client
from app.modules.profiles.schemas import ProfileCreate, ProfileUpdate, ProfileResponse
from app.core.exceptions import NotFoundError, UpstreamError
from typing import Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_profile(self, user_id: str) -> Optional[ProfileResponse]:
        """Get profile by ID, or None when the user never completed signup"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("id", user_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise UpstreamError(f"Failed to fetch profile: {e}")
        if not result or not result.data:
            return None
        return ProfileResponse(**result.data)

    def get_profile_or_404(self, user_id: str) -> ProfileResponse:
        profile = self.get_profile(user_id)
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    def get_profiles(self, user_ids: List[str]) -> Dict[str, ProfileResponse]:
        """Fetch several profiles in one query, keyed by id"""
        ids = [i for i in set(user_ids) if i]
        if not ids:
            return {}
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .in_("id", ids)\
                .execute()
        except Exception as e:
            raise UpstreamError(f"Failed to fetch profiles: {e}")
        return {row["id"]: ProfileResponse(**row) for row in (result.data or [])}

    def create_profile(self, profile_data: ProfileCreate) -> ProfileResponse:
        now = datetime.now(timezone.utc).isoformat()
        insert_data = profile_data.to_row(exclude_none=False)
        insert_data["createdAt"] = now
        insert_data["updatedAt"] = now
        try:
            result = self.supabase.table("profiles").insert(insert_data).execute()
            if not result.data:
                raise UpstreamError("Failed to create profile")
            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating profile {profile_data.id}: {e}")
            raise UpstreamError(str(e))

    def update_profile(self, user_id: str, profile_data: ProfileUpdate) -> ProfileResponse:
        """Update the writable profile fields; role and id never change here"""
        update_data = profile_data.to_row()
        update_data["updatedAt"] = datetime.now(timezone.utc).isoformat()
        try:
            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error updating profile {user_id}: {e}")
            raise UpstreamError(str(e))
        if not result.data:
            raise NotFoundError("Profile not found")
        return ProfileResponse(**result.data[0])
