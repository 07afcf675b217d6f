from fastapi import APIRouter, Depends
from supabase import Client
from typing import List, Optional, Union
from app.database.supabase_client import get_supabase
from app.core.dependencies import get_current_user, require_role
from app.core.exceptions import NotFoundError
from app.modules.auth.schemas import AuthenticatedUser
from app.modules.profiles.schemas import ProfileResponse, Role
from app.modules.practitioners.schemas import (
    PractitionerResponse, PractitionerWithProfile, PractitionerStatus, PresenceUpdate
)
from app.modules.practitioners.service import PractitionerService

router = APIRouter(prefix="/practitioners", tags=["practitioners"])


def get_practitioner_service(supabase: Client = Depends(get_supabase)) -> PractitionerService:
    return PractitionerService(supabase)


@router.get("", response_model=Union[PractitionerWithProfile, List[PractitionerWithProfile]])
async def list_practitioners(
    online: Optional[bool] = None,
    id: Optional[str] = None,
    service: PractitionerService = Depends(get_practitioner_service)
):
    """List practitioners (?online=true for available ones only) or fetch one with ?id="""
    if id:
        practitioner = service.get_practitioner_with_profile(id)
        if practitioner is None:
            raise NotFoundError("Practitioner not found")
        return practitioner
    return service.list_practitioners(online_only=bool(online))


@router.post("", response_model=PractitionerResponse, status_code=201)
async def create_practitioner(
    profile: ProfileResponse = Depends(require_role(Role.PRACTITIONER)),
    service: PractitionerService = Depends(get_practitioner_service)
):
    """Create the caller's practitioner record (for profiles created without one)"""
    return service.create_practitioner(profile.id)


@router.get("/status", response_model=PractitionerStatus)
async def get_status(
    user: AuthenticatedUser = Depends(get_current_user),
    service: PractitionerService = Depends(get_practitioner_service)
):
    practitioner = service.get_practitioner_or_404(user.id)
    return PractitionerStatus(is_online=practitioner.is_online, in_service=practitioner.in_service)


@router.put("/status", response_model=PractitionerResponse)
async def update_status(
    presence: PresenceUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    service: PractitionerService = Depends(get_practitioner_service)
):
    """Presence heartbeat. inService is driven by session transitions and is not writable here."""
    service.get_practitioner_or_404(user.id)
    return service.set_online(user.id, presence.is_online)
