from typing import Optional
from datetime import datetime
from pydantic import Field
from app.core.schemas import CamelModel


class ReviewCreate(CamelModel):
    session_id: str = Field(min_length=1)
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None


class ReviewResponse(CamelModel):
    id: str
    session_id: str
    guest_id: str
    practitioner_id: str
    rating: Optional[int] = None
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
