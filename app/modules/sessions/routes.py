from fastapi import APIRouter, Depends
from supabase import Client
from typing import List, Optional
from app.database.supabase_client import get_supabase
from app.config.settings import Settings
from app.core.dependencies import get_current_user, get_settings, require_role
from app.core.exceptions import ValidationFailure
from app.modules.auth.schemas import AuthenticatedUser
from app.modules.profiles.schemas import ProfileResponse, Role
from app.modules.sessions.schemas import (
    SessionAction, SessionActionRequest, SessionCreate, SessionCreated, SessionEndRequest,
    SessionResponse, SessionWithParticipants, TimeoutSweepResult
)
from app.modules.sessions.service import SessionService
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


def get_session_service(
    supabase: Client = Depends(get_supabase),
    settings: Settings = Depends(get_settings)
) -> SessionService:
    return SessionService(supabase, settings)


@router.post("", response_model=SessionCreated, status_code=201)
async def create_session(
    session_data: SessionCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    service: SessionService = Depends(get_session_service)
):
    """Guest requests a practitioner; the session starts in the waiting phase"""
    return service.create_session(user.id, session_data)


@router.get("", response_model=List[SessionWithParticipants])
async def list_my_sessions(
    practitioner: Optional[bool] = None,
    profile: ProfileResponse = Depends(require_role(Role.PRACTITIONER)),
    service: SessionService = Depends(get_session_service)
):
    """Waiting and live sessions for the calling practitioner (?practitioner=true)"""
    if not practitioner:
        raise ValidationFailure("Use /api/sessions/{id} to fetch a single session")
    return service.list_active_for_practitioner(profile.id)


@router.post("/accept", response_model=SessionResponse)
async def session_action(
    body: SessionActionRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: SessionService = Depends(get_session_service)
):
    """accept (default), acknowledge, ready or reject a waiting session"""
    if body.action == SessionAction.ACKNOWLEDGE:
        return service.acknowledge(body.session_id, user.id)
    if body.action == SessionAction.READY:
        return service.ready(body.session_id, user.id)
    if body.action == SessionAction.REJECT:
        return service.reject(body.session_id, user.id)
    return service.accept(body.session_id, user.id)


@router.post("/end", response_model=SessionResponse)
async def end_session(
    body: SessionEndRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: SessionService = Depends(get_session_service)
):
    return service.end(body.session_id, user.id)


@router.post("/check-timeouts", response_model=TimeoutSweepResult)
async def check_timeouts(service: SessionService = Depends(get_session_service)):
    """End waiting sessions past the waiting timeout. Called by an external cron."""
    result = service.expire_stale_sessions()
    if result.canceled:
        logger.info(f"Timeout sweep canceled {result.canceled} of {result.checked} waiting session(s)")
    return result


@router.get("/{session_id}", response_model=SessionWithParticipants)
async def get_session(
    session_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: SessionService = Depends(get_session_service)
):
    return service.get_session_for_participant(session_id, user.id)
