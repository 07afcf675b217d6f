from fastapi import APIRouter, Depends, Query
from supabase import Client
from typing import List
from app.database.supabase_client import get_supabase
from app.core.dependencies import get_current_user
from app.modules.auth.schemas import AuthenticatedUser
from app.modules.reviews.schemas import ReviewCreate, ReviewResponse
from app.modules.reviews.service import ReviewService

router = APIRouter(prefix="/reviews", tags=["reviews"])


def get_review_service(supabase: Client = Depends(get_supabase)) -> ReviewService:
    return ReviewService(supabase)


@router.post("", response_model=ReviewResponse, status_code=201)
async def create_review(
    review_data: ReviewCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service)
):
    return service.create_review(user.id, review_data)


@router.get("/session", response_model=List[ReviewResponse])
async def get_session_reviews(
    session_id: str = Query(alias="sessionId", min_length=1),
    user: AuthenticatedUser = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service)
):
    return service.get_session_reviews(session_id)
