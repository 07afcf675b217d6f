from enum import Enum
from typing import Optional, List
from datetime import datetime
from pydantic import Field, field_validator
from app.core.schemas import CamelModel


class Role(str, Enum):
    GUEST = "guest"
    PRACTITIONER = "practitioner"


class ProfileCreate(CamelModel):
    id: str
    role: Role
    display_name: str
    country: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    gallery_urls: List[str] = Field(default_factory=list)
    video_url: Optional[str] = None
    specialties: List[str] = Field(default_factory=list)


class ProfileUpdate(CamelModel):
    display_name: Optional[str] = Field(default=None, min_length=1)
    country: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    gallery_urls: Optional[List[str]] = None
    video_url: Optional[str] = None
    specialties: Optional[List[str]] = None


class ProfileResponse(CamelModel):
    id: str
    role: Role
    display_name: str
    country: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    gallery_urls: List[str] = Field(default_factory=list)
    video_url: Optional[str] = None
    specialties: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("gallery_urls", "specialties", mode="before")
    @classmethod
    def _null_array_as_empty(cls, value):
        return value or []
