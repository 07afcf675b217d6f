from typing import Dict
from datetime import datetime
from pydantic import BaseModel, ConfigDict
from app.core.schemas import CamelModel
from app.modules.video.participant import Participant


class TokenRequest(BaseModel):
    """Query parameters of a token request, already shape-checked"""
    model_config = ConfigDict(frozen=True)

    channel: str
    participant: Participant


class VideoTokenResponse(CamelModel):
    token: str
    app_id: str
    uid: str
    channel: str
    expires_at: datetime


class TokenDescription(CamelModel):
    app_id: str
    privileges: Dict[str, datetime]
    is_publisher: bool
