from fastapi import APIRouter, Depends
from app.core.dependencies import get_current_user, get_profile_service
from app.modules.auth.schemas import AuthenticatedUser
from app.modules.profiles.schemas import ProfileUpdate, ProfileResponse
from app.modules.profiles.service import ProfileService

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.put("", response_model=ProfileResponse)
async def update_my_profile(
    profile_data: ProfileUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Update the caller's own profile"""
    return service.update_profile(user.id, profile_data)


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_profile(
    user_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    return service.get_profile_or_404(user_id)
