from enum import Enum
from typing import Optional, List
from datetime import datetime
from pydantic import Field, field_validator
from app.core.schemas import CamelModel
from app.modules.profiles.schemas import ProfileResponse
from app.modules.practitioners.schemas import PractitionerWithProfile
from app.modules.sessions.phases import SessionPhase, normalize_phase


class SessionAction(str, Enum):
    ACCEPT = "accept"
    ACKNOWLEDGE = "acknowledge"
    READY = "ready"
    REJECT = "reject"


class SessionCreate(CamelModel):
    practitioner_id: str = Field(min_length=1)
    live_seconds: Optional[int] = Field(default=None, gt=0)


class SessionActionRequest(CamelModel):
    session_id: str = Field(min_length=1)
    action: SessionAction = SessionAction.ACCEPT


class SessionEndRequest(CamelModel):
    session_id: str = Field(min_length=1)


class SessionCreated(CamelModel):
    session_id: str
    agora_channel: str


class SessionResponse(CamelModel):
    id: str
    practitioner_id: str
    guest_id: str
    is_group: bool = False
    phase: SessionPhase
    waiting_seconds: Optional[int] = None
    live_seconds: Optional[int] = None
    waiting_started_at: Optional[datetime] = None
    live_started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    acknowledged_practitioner: bool = False
    ready_practitioner: bool = False
    ready_guest: bool = False
    agora_channel: Optional[str] = None
    agora_uid_guest: Optional[str] = None
    agora_uid_practitioner: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("phase", mode="before")
    @classmethod
    def _canonical_phase(cls, value):
        return normalize_phase(value)

    @field_validator("acknowledged_practitioner", "ready_practitioner", "ready_guest", "is_group", mode="before")
    @classmethod
    def _null_flag_as_false(cls, value):
        return bool(value)


class SessionWithParticipants(SessionResponse):
    guest: Optional[ProfileResponse] = None
    practitioner: Optional[PractitionerWithProfile] = None


class ExpiredSession(CamelModel):
    session_id: str
    practitioner_id: str
    guest_id: str
    timeout_after: int


class TimeoutSweepResult(CamelModel):
    checked: int
    canceled: int
    sessions: List[ExpiredSession]
