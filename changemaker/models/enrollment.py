from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID, uuid4

from changemaker.core.errors import ValidationError


class EnrollmentStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    WITHDRAWN = "withdrawn"

    @classmethod
    def parse(cls, value: object) -> EnrollmentStatus:
        """Normalize "ACTIVE", " Active " etc.; anything else is rejected."""
        if isinstance(value, EnrollmentStatus):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        allowed = "|".join(s.value for s in cls)
        raise ValidationError(f"status must be one of {allowed} (got {value!r})")


@dataclass(frozen=True, slots=True)
class Enrollment:
    """A user's participation in a challenge.

    There is no workspace column: the tenant is the challenge's workspace,
    so every enrollment query joins through challenges.
    """

    id: UUID
    user_id: UUID
    challenge_id: UUID
    status: EnrollmentStatus
    created_at: int
    updated_at: int

    @staticmethod
    def new(
        *,
        user_id: UUID,
        challenge_id: UUID,
        now: int,
        status: EnrollmentStatus = EnrollmentStatus.ACTIVE,
    ) -> Enrollment:
        return Enrollment(
            id=uuid4(),
            user_id=user_id,
            challenge_id=challenge_id,
            status=status,
            created_at=now,
            updated_at=now,
        )
