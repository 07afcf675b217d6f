from fastapi import APIRouter, Depends, Request
from app.core.dependencies import get_auth_service, get_current_token, get_current_user
from app.core.limiter import limiter
from app.config.settings import settings
from app.modules.auth.schemas import (
    AuthenticatedUser, LoginRequest, SignupRequest, TokenResponse, SignupResponse,
    CurrentUserResponse
)
from app.modules.auth.service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=SignupResponse, status_code=201)
@limiter.limit(settings.auth_rate_limit)
async def signup(
    request: Request,
    signup_data: SignupRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new guest or practitioner"""
    return service.signup(signup_data)


@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.auth_rate_limit)
async def login(
    request: Request,
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/user", response_model=CurrentUserResponse)
async def get_user(
    user: AuthenticatedUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service)
):
    """Current user with profile, plus practitioner status for practitioners"""
    return service.get_user_details(user.id)
