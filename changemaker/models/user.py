from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID, uuid4


class Role(str, Enum):
    """Stored on the user, meaningful only inside ``User.workspace_id``."""

    ADMIN = "ADMIN"
    PARTICIPANT = "PARTICIPANT"

    @classmethod
    def coerce(cls, value: object) -> Role | None:
        """Best-effort parse of an untrusted role value; None when unknown."""
        if isinstance(value, Role):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class User:
    id: UUID
    email: str
    external_id: str | None = None  # identity-provider subject; None until synced
    role: Role = Role.PARTICIPANT
    workspace_id: UUID | None = None

    @staticmethod
    def new(
        *,
        email: str,
        external_id: str | None = None,
        role: Role = Role.PARTICIPANT,
        workspace_id: UUID | None = None,
    ) -> User:
        return User(
            id=uuid4(),
            email=email,
            external_id=external_id,
            role=role,
            workspace_id=workspace_id,
        )

    def is_member_of(self, workspace_id: UUID) -> bool:
        return self.workspace_id == workspace_id

    def is_admin_of(self, workspace_id: UUID) -> bool:
        return self.is_member_of(workspace_id) and self.role is Role.ADMIN
