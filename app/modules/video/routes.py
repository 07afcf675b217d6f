from fastapi import APIRouter, Depends, Query
from supabase import Client
from typing import Optional
from app.database.supabase_client import get_supabase
from app.config.settings import Settings
from app.core.dependencies import get_current_user, get_settings
from app.core.exceptions import ValidationFailure
from app.modules.auth.schemas import AuthenticatedUser
from app.modules.sessions.service import SessionService
from app.modules.video.participant import Participant
from app.modules.video.schemas import TokenRequest, VideoTokenResponse
from app.modules.video.service import VideoTokenService

router = APIRouter(prefix="/agora", tags=["video"])


def get_video_token_service(
    supabase: Client = Depends(get_supabase),
    settings: Settings = Depends(get_settings)
) -> VideoTokenService:
    return VideoTokenService(settings, SessionService(supabase, settings))


def get_token_request(
    channel: Optional[str] = Query(default=None),
    uid: Optional[str] = Query(default=None)
) -> TokenRequest:
    """Shape-check channel and uid; a bad request is a 400 whatever the auth state"""
    if not channel or not channel.strip():
        raise ValidationFailure("channel is required")
    if not uid or not uid.strip():
        raise ValidationFailure("uid is required")
    try:
        participant = Participant.parse(uid)
    except ValueError as e:
        raise ValidationFailure(str(e))
    return TokenRequest(channel=channel.strip(), participant=participant)


@router.get("/token", response_model=VideoTokenResponse)
async def get_token(
    # dependencies resolve in declaration order: parameters before the bearer check
    token_request: TokenRequest = Depends(get_token_request),
    user: AuthenticatedUser = Depends(get_current_user),
    service: VideoTokenService = Depends(get_video_token_service)
):
    """Mint a publisher token for one participant of an active session's channel"""
    return service.issue_token(token_request, user.id)
