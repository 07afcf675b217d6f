from typing import Optional
from datetime import datetime
from pydantic import field_validator
from app.core.schemas import CamelModel
from app.modules.profiles.schemas import ProfileResponse


class PresenceUpdate(CamelModel):
    is_online: bool


class PractitionerStatus(CamelModel):
    is_online: bool
    in_service: bool


class PractitionerResponse(CamelModel):
    user_id: str
    is_online: bool = False
    in_service: bool = False
    rating: str = "0.0"
    review_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("rating", mode="before")
    @classmethod
    def _rating_as_text(cls, value):
        if value is None:
            return "0.0"
        return f"{float(value):.1f}"

    @field_validator("review_count", mode="before")
    @classmethod
    def _null_count_as_zero(cls, value):
        return value or 0


class PractitionerWithProfile(PractitionerResponse):
    profile: Optional[ProfileResponse] = None
