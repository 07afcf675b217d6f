"""
Core dependencies for route protection and role checks
"""

from fastapi import Depends, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from supabase import Client
from typing import Optional
from app.config.settings import Settings, settings as default_settings
from app.database.supabase_client import SupabaseClients, get_clients, get_supabase
from app.modules.auth.schemas import AuthenticatedUser
from app.modules.auth.service import AuthService
from app.modules.profiles.schemas import ProfileResponse, Role
from app.modules.profiles.service import ProfileService
from app.core.exceptions import AuthenticationError, ForbiddenError
import logging

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is a 401 from us, not FastAPI's 403
security = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", default_settings)


def get_auth_service(clients: SupabaseClients = Depends(get_clients)) -> AuthService:
    return AuthService(clients)


def get_profile_service(supabase: Client = Depends(get_supabase)) -> ProfileService:
    return ProfileService(supabase)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> AuthenticatedUser:
    """Resolve the bearer token to a user; anything short of a valid token is a 401"""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Unauthorized")
    return auth_service.get_current_user(credentials.credentials)


def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> str:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Unauthorized")
    return credentials.credentials


def require_role(required_role: Role):
    """Factory function to create a role check dependency"""
    def check_role(
        user: AuthenticatedUser = Depends(get_current_user),
        profiles: ProfileService = Depends(get_profile_service)
    ) -> ProfileResponse:
        profile = profiles.get_profile(user.id)
        if profile is None or profile.role != required_role:
            raise ForbiddenError(f"Only {required_role.value}s can access this endpoint")
        return profile
    return check_role
