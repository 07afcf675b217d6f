from pydantic import EmailStr, Field
from typing import Optional
from app.core.schemas import CamelModel
from app.modules.profiles.schemas import ProfileResponse, Role
from app.modules.practitioners.schemas import PractitionerResponse


class AuthenticatedUser(CamelModel):
    id: str
    email: Optional[str] = None


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class SignupRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=1)
    role: Role


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str
    profile: ProfileResponse


class SignupResponse(CamelModel):
    user_id: str
    email: str
    access_token: Optional[str] = None
    profile: ProfileResponse
    message: str


class CurrentUserResponse(CamelModel):
    id: str
    profile: ProfileResponse
    practitioner: Optional[PractitionerResponse] = None
