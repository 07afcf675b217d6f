from agora_token_builder.RtcTokenBuilder import RtcTokenBuilder, Role_Publisher
from agora_token_builder.AccessToken import (
    AccessToken, kJoinChannel, kPublishAudioStream, kPublishVideoStream, kPublishDataStream
)
from fastapi import HTTPException
from app.config.settings import Settings
from app.core.exceptions import ForbiddenError, NotFoundError
from app.modules.profiles.schemas import Role
from app.modules.sessions.service import SessionService
from app.modules.video.schemas import TokenRequest, VideoTokenResponse, TokenDescription
from typing import Optional, Tuple
from datetime import datetime, timezone
import time
import logging

logger = logging.getLogger(__name__)

PRIVILEGE_NAMES = {
    kJoinChannel: "joinChannel",
    kPublishAudioStream: "publishAudioStream",
    kPublishVideoStream: "publishVideoStream",
    kPublishDataStream: "publishDataStream",
}
PUBLISH_PRIVILEGES = (kPublishAudioStream, kPublishVideoStream, kPublishDataStream)

# version prefix + 32-char app id
_APP_ID_SLICE = slice(3, 35)


def build_token(
    app_id: str,
    app_certificate: str,
    channel: str,
    uid: str,
    ttl_seconds: int,
    now: Optional[float] = None
) -> Tuple[str, int]:
    """Build an RTC token for a string uid. Always PUBLISHER: both sides send audio and video."""
    issued_at = int(now if now is not None else time.time())
    expires_at = issued_at + ttl_seconds
    token = RtcTokenBuilder.buildTokenWithAccount(
        app_id, app_certificate, channel, uid, Role_Publisher, expires_at
    )
    return token, expires_at


def describe_token(token: str) -> TokenDescription:
    """Decode the privilege map of a token we issued. Raises ValueError on garbage."""
    access_token = AccessToken()
    if not token or not access_token.fromString(token):
        raise ValueError("Not a valid RTC access token")
    privileges = {
        PRIVILEGE_NAMES.get(privilege, str(privilege)): datetime.fromtimestamp(expires, tz=timezone.utc)
        for privilege, expires in access_token.messages.items()
    }
    return TokenDescription(
        app_id=token[_APP_ID_SLICE],
        privileges=privileges,
        is_publisher=all(p in access_token.messages for p in PUBLISH_PRIVILEGES),
    )


class VideoTokenService:
    def __init__(self, settings: Settings, sessions: SessionService):
        self.settings = settings
        self.sessions = sessions

    def issue_token(self, request: TokenRequest, caller_id: str) -> VideoTokenResponse:
        app_id = self.settings.agora_app_id
        app_certificate = self.settings.agora_app_certificate
        if not app_id or not app_certificate:
            raise HTTPException(status_code=500, detail="Agora credentials not configured")

        participant = request.participant
        session = self.sessions.find_active_by_channel(request.channel)
        if session is None:
            raise NotFoundError("No active session for this channel")
        expected_user = session.practitioner_id if participant.role == Role.PRACTITIONER else session.guest_id
        if participant.user_id != expected_user:
            raise ForbiddenError(f"uid is not this session's {participant.role.value}")
        if participant.user_id != caller_id:
            raise ForbiddenError("uid does not belong to the caller")

        token, expires_at = build_token(
            app_id,
            app_certificate,
            request.channel,
            participant.uid,
            self.settings.agora_token_ttl_seconds,
        )
        logger.info(f"Issued video token for {participant.uid} on {request.channel} (session {session.id})")
        return VideoTokenResponse(
            token=token,
            app_id=app_id,
            uid=participant.uid,
            channel=request.channel,
            expires_at=datetime.fromtimestamp(expires_at, tz=timezone.utc),
        )
