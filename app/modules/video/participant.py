"""
Video participant identity.

A participant uid on the wire is ``p_<userId>`` for practitioners and
``g_<userId>`` for guests. It is parsed once at the boundary into a
Participant with an explicit role; nothing downstream looks at the prefix.
"""

from typing import Dict
from pydantic import BaseModel, ConfigDict
from app.modules.profiles.schemas import Role

UID_PREFIXES: Dict[Role, str] = {
    Role.PRACTITIONER: "p_",
    Role.GUEST: "g_",
}


class Participant(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    user_id: str

    @classmethod
    def parse(cls, uid: str) -> "Participant":
        """Raise ValueError unless uid is a known prefix followed by a non-empty id"""
        uid = (uid or "").strip()
        for role, prefix in UID_PREFIXES.items():
            if uid.startswith(prefix):
                user_id = uid[len(prefix):]
                if not user_id:
                    raise ValueError(f"uid {uid!r} has no user id after the prefix")
                return cls(role=role, user_id=user_id)
        raise ValueError(f"uid must start with one of {', '.join(UID_PREFIXES.values())}")

    @classmethod
    def practitioner(cls, user_id: str) -> "Participant":
        return cls(role=Role.PRACTITIONER, user_id=user_id)

    @classmethod
    def guest(cls, user_id: str) -> "Participant":
        return cls(role=Role.GUEST, user_id=user_id)

    @property
    def uid(self) -> str:
        return UID_PREFIXES[self.role] + self.user_id
