"""
Session phase lifecycle: waiting -> live -> ended.

The allowed edges live here and nowhere else. The service layer enforces them
twice: once against the row it read (to give a precise error) and once in the
database through a conditional update on the current phase, which is what
decides the winner when two requests race.
"""

from enum import Enum
from typing import Dict, FrozenSet, Tuple

from app.core.exceptions import ConflictError


class SessionPhase(str, Enum):
    WAITING = "waiting"
    LIVE = "live"
    ENDED = "ended"


TRANSITIONS: Dict[SessionPhase, FrozenSet[SessionPhase]] = {
    SessionPhase.WAITING: frozenset({SessionPhase.LIVE, SessionPhase.ENDED}),
    SessionPhase.LIVE: frozenset({SessionPhase.ENDED}),
    SessionPhase.ENDED: frozenset(),
}

# Older rows and scripts used these names for the waiting phase
LEGACY_WAITING_NAMES: Tuple[str, ...] = ("waiting_room", "room_timer")

# Every stored value that means "waiting"; used in conditional updates
WAITING_VALUES: Tuple[str, ...] = (SessionPhase.WAITING.value,) + LEGACY_WAITING_NAMES

ACTIVE_VALUES: Tuple[str, ...] = WAITING_VALUES + (SessionPhase.LIVE.value,)


def normalize_phase(value) -> SessionPhase:
    if isinstance(value, SessionPhase):
        return value
    if value in LEGACY_WAITING_NAMES:
        return SessionPhase.WAITING
    return SessionPhase(value)


def can_transition(current: SessionPhase, target: SessionPhase) -> bool:
    return target in TRANSITIONS[normalize_phase(current)]


def ensure_transition(current: SessionPhase, target: SessionPhase) -> None:
    current = normalize_phase(current)
    if can_transition(current, target):
        return
    if current == SessionPhase.ENDED:
        raise ConflictError("Session has already ended")
    raise ConflictError(f"Session is {current.value}; cannot move to {target.value}")
