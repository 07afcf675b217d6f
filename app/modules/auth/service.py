from app.database.supabase_client import SupabaseClients
from app.modules.auth.schemas import (
    AuthenticatedUser, LoginRequest, SignupRequest, TokenResponse, SignupResponse,
    CurrentUserResponse
)
from app.modules.profiles.schemas import ProfileCreate, Role
from app.modules.profiles.service import ProfileService
from app.modules.practitioners.service import PractitionerService
from app.core.exceptions import AuthenticationError, NotFoundError, UpstreamError, ValidationFailure
from fastapi import HTTPException
from typing import Optional
import logging

logger = logging.getLogger(__name__)


def _is_already_registered(error_message: str) -> bool:
    lowered = error_message.lower()
    return "already registered" in lowered or "already exists" in lowered


def _is_credential_error(error_message: str) -> bool:
    lowered = error_message.lower()
    return "invalid" in lowered or "credentials" in lowered or "not confirmed" in lowered


class AuthService:
    def __init__(self, clients: SupabaseClients):
        self.clients = clients
        self.supabase = clients.db
        self.profiles = ProfileService(clients.db)
        self.practitioners = PractitionerService(clients.db)

    def signup(self, signup_data: SignupRequest) -> SignupResponse:
        """Register the auth user, then its profile (and practitioner row for practitioners)"""
        try:
            auth_response = self.clients.auth_client().auth.sign_up({
                "email": signup_data.email,
                "password": signup_data.password,
                "options": {
                    "data": {"fullName": signup_data.full_name}
                }
            })
        except Exception as e:
            error_message = str(e)
            if _is_already_registered(error_message):
                raise ValidationFailure("User already registered")
            logger.error(f"Signup failed for {signup_data.email}: {error_message}")
            raise ValidationFailure(f"Signup failed: {error_message}")

        if not auth_response.user:
            raise ValidationFailure("Failed to create user")

        user_id = auth_response.user.id
        # With email confirmation on, Supabase answers a repeated signup with the existing user
        if self.profiles.get_profile(user_id) is not None:
            raise ValidationFailure("User already registered")

        try:
            profile = self.profiles.create_profile(ProfileCreate(
                id=user_id,
                role=signup_data.role,
                display_name=signup_data.full_name,
            ))
            if signup_data.role == Role.PRACTITIONER:
                self.practitioners.create_practitioner(user_id)
        except HTTPException:
            raise
        except Exception as e:
            raise UpstreamError(f"Signup failed: {e}")

        logger.info(f"Registered {signup_data.role.value} {user_id}")
        session = auth_response.session
        return SignupResponse(
            user_id=user_id,
            email=auth_response.user.email or signup_data.email,
            access_token=session.access_token if session else None,
            profile=profile,
            message="User registered successfully"
        )

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth; the account must have a profile"""
        try:
            auth_response = self.clients.auth_client().auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })
        except Exception as e:
            error_message = str(e)
            if _is_credential_error(error_message):
                logger.info(f"Login rejected for {login_data.email}: {error_message}")
                raise AuthenticationError("Invalid email or password")
            logger.error(f"Login failed for {login_data.email}: {error_message}")
            raise UpstreamError("Login failed")

        if not auth_response.user or not auth_response.session:
            raise AuthenticationError("Invalid credentials")

        profile = self.profiles.get_profile(auth_response.user.id)
        if profile is None:
            logger.error(f"No profile found for {login_data.email} - account not properly registered")
            raise AuthenticationError("Account not found. Please sign up first.")

        logger.info(f"Login successful for {login_data.email} with role: {profile.role.value}")
        return TokenResponse(
            access_token=auth_response.session.access_token,
            token_type="bearer",
            user_id=auth_response.user.id,
            email=auth_response.user.email or login_data.email,
            profile=profile
        )

    def get_current_user(self, token: str) -> AuthenticatedUser:
        """Validate a bearer token against Supabase Auth"""
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            logger.debug(f"Token rejected: {e}")
            raise AuthenticationError("Invalid token")
        if not user_response or not user_response.user:
            raise AuthenticationError("Invalid token")
        user = user_response.user
        return AuthenticatedUser(id=user.id, email=user.email)

    def get_user_details(self, user_id: str) -> CurrentUserResponse:
        profile = self.profiles.get_profile_or_404(user_id)
        practitioner = None
        if profile.role == Role.PRACTITIONER:
            practitioner = self.practitioners.get_practitioner(user_id)
        return CurrentUserResponse(id=user_id, profile=profile, practitioner=practitioner)

    def logout(self, token: str) -> bool:
        """Revoke the refresh tokens behind an access token"""
        try:
            # Access tokens are stateless JWTs; they stay valid until they expire
            self.supabase.auth.admin.sign_out(token)
            return True
        except Exception as e:
            logger.warning(f"Logout failed: {e}")
            return False

    def find_user_id_by_email(self, email: str) -> Optional[str]:
        """Walk the admin user list; used by operator tooling only"""
        page = 1
        while True:
            users = self.supabase.auth.admin.list_users(page=page, per_page=100)
            if not users:
                return None
            for user in users:
                if (user.email or "").lower() == email.lower():
                    return user.id
            page += 1

    def reset_password(self, email: str, new_password: str) -> str:
        user_id = self._require_user_id(email)
        self.supabase.auth.admin.update_user_by_id(user_id, {"password": new_password})
        logger.info(f"Password reset for {email}")
        return user_id

    def confirm_email(self, email: str) -> str:
        user_id = self._require_user_id(email)
        self.supabase.auth.admin.update_user_by_id(user_id, {"email_confirm": True})
        logger.info(f"Email confirmed for {email}")
        return user_id

    def _require_user_id(self, email: str) -> str:
        user_id = self.find_user_id_by_email(email)
        if user_id is None:
            raise NotFoundError(f"No auth user with email {email}")
        return user_id
