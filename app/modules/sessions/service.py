from supabase import Client
from app.config.settings import Settings, settings as default_settings
from app.modules.sessions.schemas import (
    SessionCreate, SessionCreated, SessionResponse, SessionWithParticipants,
    ExpiredSession, TimeoutSweepResult
)
from app.modules.sessions.phases import (
    SessionPhase, WAITING_VALUES, ACTIVE_VALUES, ensure_transition
)
from app.modules.practitioners.service import PractitionerService
from app.modules.profiles.service import ProfileService
from app.modules.profiles.schemas import Role
from app.modules.video.participant import Participant
from app.core.exceptions import (
    ConflictError, ForbiddenError, NotFoundError, UpstreamError, ValidationFailure
)
from typing import List, Optional
from datetime import datetime, timedelta, timezone
import uuid
import logging

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SessionService:
    def __init__(self, supabase: Client, settings: Optional[Settings] = None):
        self.supabase = supabase
        self.settings = settings or default_settings
        self.profiles = ProfileService(supabase)
        self.practitioners = PractitionerService(supabase)

    # Reads

    def get_session(self, session_id: str) -> SessionResponse:
        try:
            result = self.supabase.table("sessions")\
                .select("*")\
                .eq("id", session_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise UpstreamError(f"Failed to fetch session: {e}")
        if not result or not result.data:
            raise NotFoundError("Session not found")
        return SessionResponse(**result.data)

    def get_session_for_participant(self, session_id: str, user_id: str) -> SessionWithParticipants:
        session = self.get_session(session_id)
        if user_id not in (session.guest_id, session.practitioner_id):
            raise ForbiddenError("Not a session participant")
        return self._with_participants(session)

    def find_active_by_channel(self, channel: str) -> Optional[SessionResponse]:
        """The waiting or live session that owns a video channel, if any"""
        try:
            result = self.supabase.table("sessions")\
                .select("*")\
                .eq("agoraChannel", channel)\
                .in_("phase", list(ACTIVE_VALUES))\
                .limit(1)\
                .execute()
        except Exception as e:
            raise UpstreamError(f"Failed to look up channel: {e}")
        if not result.data:
            return None
        return SessionResponse(**result.data[0])

    def list_active_for_practitioner(self, practitioner_id: str) -> List[SessionWithParticipants]:
        try:
            result = self.supabase.table("sessions")\
                .select("*")\
                .eq("practitionerId", practitioner_id)\
                .in_("phase", list(ACTIVE_VALUES))\
                .order("createdAt", desc=True)\
                .execute()
        except Exception as e:
            raise UpstreamError(f"Failed to fetch sessions: {e}")
        return [self._with_participants(SessionResponse(**row)) for row in (result.data or [])]

    def _with_participants(self, session: SessionResponse) -> SessionWithParticipants:
        return SessionWithParticipants(
            **session.model_dump(),
            guest=self.profiles.get_profile(session.guest_id),
            practitioner=self.practitioners.get_practitioner_with_profile(session.practitioner_id),
        )

    # Transitions

    def create_session(self, guest_id: str, session_data: SessionCreate) -> SessionCreated:
        """create -> waiting. The caller must be a guest and the practitioner online and free."""
        guest = self.profiles.get_profile(guest_id)
        if guest is None or guest.role != Role.GUEST:
            raise ForbiddenError("Only guests can start sessions")

        practitioner = self.practitioners.get_practitioner(session_data.practitioner_id)
        if practitioner is None or not practitioner.is_online:
            raise ValidationFailure("Practitioner is not available")
        if practitioner.in_service:
            raise ConflictError("Practitioner is currently in another session. Please try again later.")

        session_id = str(uuid.uuid4())
        live_seconds = session_data.live_seconds or self.settings.default_live_seconds
        now = _now().isoformat()
        insert_data = {
            "id": session_id,
            "practitionerId": session_data.practitioner_id,
            "guestId": guest_id,
            "isGroup": False,
            "phase": SessionPhase.WAITING.value,
            "liveSeconds": live_seconds,
            "waitingSeconds": self.settings.session_waiting_timeout_seconds,
            "waitingStartedAt": now,
            "acknowledgedPractitioner": False,
            "readyPractitioner": False,
            "readyGuest": False,
            "agoraChannel": f"sess_{session_id[:8]}",
            "agoraUidGuest": Participant.guest(guest_id).uid,
            "agoraUidPractitioner": Participant.practitioner(session_data.practitioner_id).uid,
            "createdAt": now,
            "updatedAt": now,
        }
        try:
            result = self.supabase.table("sessions").insert(insert_data).execute()
        except Exception as e:
            logger.error(f"Error creating session: {e}")
            raise UpstreamError(str(e))
        if not result.data:
            raise UpstreamError("Failed to create session")

        session = SessionResponse(**result.data[0])
        logger.info(f"Session {session.id} created (guest={guest_id}, practitioner={session.practitioner_id})")
        return SessionCreated(session_id=session.id, agora_channel=session.agora_channel)

    def accept(self, session_id: str, user_id: str) -> SessionResponse:
        """waiting -> live, by the practitioner"""
        session = self.get_session(session_id)
        self._require_practitioner(session, user_id, "accept")
        ensure_transition(session.phase, SessionPhase.LIVE)
        return self._go_live(session, {"acknowledgedPractitioner": True, "readyPractitioner": True})

    def acknowledge(self, session_id: str, user_id: str) -> SessionResponse:
        """Practitioner saw the request; the guest gets told, the phase stays waiting"""
        session = self.get_session(session_id)
        self._require_practitioner(session, user_id, "acknowledge")
        ensure_transition(session.phase, SessionPhase.LIVE)
        return self._update_while_waiting(session, {"acknowledgedPractitioner": True})

    def ready(self, session_id: str, user_id: str) -> SessionResponse:
        """Mark one side ready; when both are, the session goes live"""
        session = self.get_session(session_id)
        is_guest = user_id == session.guest_id
        is_practitioner = user_id == session.practitioner_id
        if not is_guest and not is_practitioner:
            raise ForbiddenError("Not a session participant")
        if session.phase == SessionPhase.LIVE:
            return session
        ensure_transition(session.phase, SessionPhase.LIVE)
        if is_practitioner and not session.acknowledged_practitioner:
            raise ValidationFailure("Please acknowledge the session request first")

        flag = "readyGuest" if is_guest else "readyPractitioner"
        session = self._update_while_waiting(session, {flag: True})
        if not (session.ready_guest and session.ready_practitioner):
            return session
        try:
            return self._go_live(session)
        except ConflictError:
            # the other side's ready call may have won the transition
            current = self.get_session(session_id)
            if current.phase == SessionPhase.LIVE:
                return current
            raise

    def reject(self, session_id: str, user_id: str) -> SessionResponse:
        """waiting -> ended, by the practitioner"""
        session = self.get_session(session_id)
        self._require_practitioner(session, user_id, "reject")
        if session.phase != SessionPhase.WAITING:
            raise ConflictError("Session is not in waiting phase")
        return self._end(session, waiting_only=True)

    def end(self, session_id: str, user_id: str) -> SessionResponse:
        """waiting/live -> ended, by either participant"""
        session = self.get_session(session_id)
        if user_id not in (session.guest_id, session.practitioner_id):
            raise ForbiddenError("Not a session participant")
        ensure_transition(session.phase, SessionPhase.ENDED)
        return self._end(session)

    def expire_stale_sessions(self, now: Optional[datetime] = None) -> TimeoutSweepResult:
        """End waiting sessions nobody picked up within the waiting timeout"""
        now = now or _now()
        cutoff = now - timedelta(seconds=self.settings.session_waiting_timeout_seconds)
        try:
            result = self.supabase.table("sessions")\
                .select("*")\
                .in_("phase", list(WAITING_VALUES))\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching waiting sessions: {e}")
            raise UpstreamError("Failed to check session timeouts")

        waiting = [SessionResponse(**row) for row in (result.data or [])]
        expired = []
        for session in waiting:
            started = session.waiting_started_at or session.created_at
            if started is not None and started.tzinfo is None:
                started = started.replace(tzinfo=timezone.utc)
            if started is None or started > cutoff:
                continue
            try:
                self._end(session, now=now, waiting_only=True)
            except ConflictError:
                # accepted or ended meanwhile
                continue
            elapsed = int((now - started).total_seconds())
            logger.info(f"Canceling expired session {session.id} - elapsed: {elapsed}s")
            expired.append(ExpiredSession(
                session_id=session.id,
                practitioner_id=session.practitioner_id,
                guest_id=session.guest_id,
                timeout_after=elapsed,
            ))
        return TimeoutSweepResult(checked=len(waiting), canceled=len(expired), sessions=expired)

    def _require_practitioner(self, session: SessionResponse, user_id: str, verb: str) -> None:
        if user_id != session.practitioner_id:
            raise ForbiddenError(f"Only the practitioner can {verb} the session")

    def _update_while_waiting(self, session: SessionResponse, update_data: dict) -> SessionResponse:
        result = self._conditional_update(session.id, WAITING_VALUES, update_data)
        if not result:
            raise ConflictError("Session is not in waiting phase")
        return SessionResponse(**result[0])

    def _go_live(self, session: SessionResponse, extra: Optional[dict] = None) -> SessionResponse:
        """Claim the practitioner, then compare-and-swap the phase waiting -> live.

        Two racing callers can both get past the read-side checks; only one
        wins the inService claim, and only one wins the phase swap.
        """
        practitioner_id = session.practitioner_id
        if not self.practitioners.claim_for_service(practitioner_id):
            raise ConflictError("Practitioner is already in service")

        update_data = dict(extra or {})
        update_data["phase"] = SessionPhase.LIVE.value
        update_data["liveStartedAt"] = _now().isoformat()
        try:
            result = self._conditional_update(session.id, WAITING_VALUES, update_data)
        except Exception:
            self.practitioners.release_from_service(practitioner_id)
            raise
        if not result:
            self.practitioners.release_from_service(practitioner_id)
            raise ConflictError("Session is no longer waiting")

        logger.info(f"Session {session.id} is live")
        return SessionResponse(**result[0])

    def _end(
        self,
        session: SessionResponse,
        now: Optional[datetime] = None,
        waiting_only: bool = False
    ) -> SessionResponse:
        """Compare-and-swap to ended; frees the practitioner only when leaving live.

        With waiting_only the swap never touches a live row: reject and the
        timeout sweep lose to a concurrent accept instead of ending the call.
        """
        update_data = {
            "phase": SessionPhase.ENDED.value,
            "endedAt": (now or _now()).isoformat(),
        }
        if waiting_only:
            attempts = [WAITING_VALUES]
        elif session.phase == SessionPhase.LIVE:
            attempts = [(SessionPhase.LIVE.value,)]
        else:
            # it may have gone live since we read it
            attempts = [WAITING_VALUES, (SessionPhase.LIVE.value,)]

        for from_values in attempts:
            result = self._conditional_update(session.id, from_values, update_data)
            if result:
                if from_values == (SessionPhase.LIVE.value,):
                    self.practitioners.release_from_service(session.practitioner_id)
                logger.info(f"Session {session.id} ended (was {from_values[0]})")
                return SessionResponse(**result[0])
        if waiting_only:
            raise ConflictError("Session is no longer waiting")
        raise ConflictError("Session has already ended")

    def _conditional_update(self, session_id: str, from_values, update_data: dict) -> list:
        """update sessions set ... where id = ? and phase in (?); returns the rows that changed"""
        update_data = {**update_data, "updatedAt": _now().isoformat()}
        try:
            result = self.supabase.table("sessions")\
                .update(update_data)\
                .eq("id", session_id)\
                .in_("phase", list(from_values))\
                .execute()
        except Exception as e:
            logger.error(f"Error updating session {session_id}: {e}")
            raise UpstreamError(str(e))
        return result.data or []
