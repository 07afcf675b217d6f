from supabase import Client
from app.modules.practitioners.schemas import PractitionerResponse, PractitionerWithProfile
from app.modules.profiles.service import ProfileService
from app.core.exceptions import ConflictError, NotFoundError, UpstreamError
from typing import List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class PractitionerService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.profiles = ProfileService(supabase)

    def get_practitioner(self, user_id: str) -> Optional[PractitionerResponse]:
        try:
            result = self.supabase.table("practitioners")\
                .select("*")\
                .eq("userId", user_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise UpstreamError(f"Failed to fetch practitioner: {e}")
        if not result or not result.data:
            return None
        return PractitionerResponse(**result.data)

    def get_practitioner_or_404(self, user_id: str) -> PractitionerResponse:
        practitioner = self.get_practitioner(user_id)
        if practitioner is None:
            raise NotFoundError("Practitioner not found")
        return practitioner

    def get_practitioner_with_profile(self, user_id: str) -> Optional[PractitionerWithProfile]:
        practitioner = self.get_practitioner(user_id)
        if practitioner is None:
            return None
        profile = self.profiles.get_profile(user_id)
        if profile is None:
            return None
        return PractitionerWithProfile(**practitioner.model_dump(), profile=profile)

    def create_practitioner(self, user_id: str) -> PractitionerResponse:
        """Create the presence/rating row for a practitioner profile"""
        if self.get_practitioner(user_id) is not None:
            raise ConflictError("Practitioner record already exists")
        now = _now()
        insert_data = {
            "userId": user_id,
            "isOnline": False,
            "inService": False,
            "rating": "0.0",
            "reviewCount": 0,
            "createdAt": now,
            "updatedAt": now,
        }
        try:
            result = self.supabase.table("practitioners").insert(insert_data).execute()
            if not result.data:
                raise UpstreamError("Failed to create practitioner")
            return PractitionerResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating practitioner {user_id}: {e}")
            raise UpstreamError(str(e))

    def list_practitioners(self, online_only: bool = False) -> List[PractitionerWithProfile]:
        """List practitioners with their profiles. All: online first, then by rating."""
        try:
            query = self.supabase.table("practitioners").select("*")
            if online_only:
                query = query.eq("isOnline", True)
            else:
                query = query.order("isOnline", desc=True).order("rating", desc=True)
            result = query.execute()
        except Exception as e:
            logger.error(f"Error fetching practitioners: {e}")
            raise UpstreamError(str(e))

        rows = [r for r in (result.data or []) if r.get("userId")]
        if online_only:
            # the filter is applied upstream; re-check so a stale replica can't leak offline rows
            rows = [r for r in rows if r.get("isOnline") is True]
        if not rows:
            return []
        profiles = self.profiles.get_profiles([r["userId"] for r in rows])
        return [
            PractitionerWithProfile(**row, profile=profiles.get(row["userId"]))
            for row in rows
        ]

    def set_online(self, user_id: str, is_online: bool) -> PractitionerResponse:
        """Presence heartbeat"""
        return self._update(user_id, {"isOnline": is_online})

    def claim_for_service(self, user_id: str) -> bool:
        """Flip inService false -> true. False when someone else already holds it."""
        try:
            result = self.supabase.table("practitioners")\
                .update({"inService": True, "updatedAt": _now()})\
                .eq("userId", user_id)\
                .eq("inService", False)\
                .execute()
        except Exception as e:
            logger.error(f"Error claiming practitioner {user_id}: {e}")
            raise UpstreamError(str(e))
        return bool(result.data)

    def release_from_service(self, user_id: str) -> None:
        try:
            self.supabase.table("practitioners")\
                .update({"inService": False, "updatedAt": _now()})\
                .eq("userId", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error releasing practitioner {user_id}: {e}")
            raise UpstreamError(str(e))

    def update_rating(self, user_id: str, rating: float, review_count: int) -> PractitionerResponse:
        return self._update(user_id, {"rating": f"{rating:.1f}", "reviewCount": review_count})

    def _update(self, user_id: str, update_data: dict) -> PractitionerResponse:
        update_data = {**update_data, "updatedAt": _now()}
        try:
            result = self.supabase.table("practitioners")\
                .update(update_data)\
                .eq("userId", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error updating practitioner {user_id}: {e}")
            raise UpstreamError(str(e))
        if not result.data:
            raise NotFoundError("Practitioner not found")
        return PractitionerResponse(**result.data[0])
