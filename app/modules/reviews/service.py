from supabase import Client
from app.modules.reviews.schemas import ReviewCreate, ReviewResponse
from app.modules.sessions.phases import SessionPhase
from app.modules.sessions.service import SessionService
from app.modules.practitioners.service import PractitionerService
from app.core.exceptions import ConflictError, ForbiddenError, UpstreamError, ValidationFailure
from typing import List
from datetime import datetime, timezone
import uuid
import logging

logger = logging.getLogger(__name__)


def _is_unique_violation(error_message: str) -> bool:
    return "23505" in error_message or "duplicate key" in error_message.lower()


class ReviewService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.sessions = SessionService(supabase)
        self.practitioners = PractitionerService(supabase)

    def create_review(self, guest_id: str, review_data: ReviewCreate) -> ReviewResponse:
        """Guest reviews an ended session; the practitioner's rating is recomputed"""
        session = self.sessions.get_session(review_data.session_id)
        if session.guest_id != guest_id:
            raise ForbiddenError("Only the session guest can create a review")
        if session.phase != SessionPhase.ENDED:
            raise ValidationFailure("Can only review completed sessions")
        if self.get_session_reviews(session.id):
            raise ConflictError("This session has already been reviewed")

        insert_data = {
            "id": str(uuid.uuid4()),
            "sessionId": session.id,
            "guestId": guest_id,
            "practitionerId": session.practitioner_id,
            "rating": review_data.rating,
            "comment": review_data.comment,
            "createdAt": datetime.now(timezone.utc).isoformat(),
        }
        try:
            result = self.supabase.table("reviews").insert(insert_data).execute()
        except Exception as e:
            if _is_unique_violation(str(e)):
                # a concurrent post for the same session got in first
                raise ConflictError("This session has already been reviewed")
            logger.error(f"Error creating review for session {session.id}: {e}")
            raise UpstreamError(str(e))
        if not result.data:
            raise UpstreamError("Failed to create review")

        self._refresh_rating(session.practitioner_id)
        return ReviewResponse(**result.data[0])

    def get_session_reviews(self, session_id: str) -> List[ReviewResponse]:
        return self._list("sessionId", session_id)

    def _refresh_rating(self, practitioner_id: str) -> None:
        reviews = self._list("practitionerId", practitioner_id)
        rated = [r.rating for r in reviews if r.rating is not None]
        average = sum(rated) / len(rated) if rated else 0.0
        self.practitioners.update_rating(practitioner_id, average, len(reviews))

    def _list(self, column: str, value: str) -> List[ReviewResponse]:
        try:
            result = self.supabase.table("reviews")\
                .select("*")\
                .eq(column, value)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching reviews by {column}: {e}")
            raise UpstreamError(str(e))
        return [ReviewResponse(**row) for row in (result.data or [])]
