"""Enrollment persistence.

Enrollments have no workspace column.  Every method here takes the
workspace id and resolves it through the enrollment's challenge; callers
never build enrollment filters themselves.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from changemaker.core.errors import DuplicateEnrollment
from changemaker.models.enrollment import Enrollment, EnrollmentStatus
from changemaker.repos.challenge_repo import InMemoryChallengeRepo


class EnrollmentRepo(Protocol):
    async def get(self, workspace_id: UUID, enrollment_id: UUID) -> Enrollment | None: ...
    async def find(
        self, workspace_id: UUID, user_id: UUID, challenge_id: UUID
    ) -> Enrollment | None: ...
    async def add(self, enrollment: Enrollment) -> None: ...
    async def list_for_user(
        self, workspace_id: UUID, user_id: UUID
    ) -> list[Enrollment]: ...
    async def list_for_challenge(
        self, workspace_id: UUID, challenge_id: UUID
    ) -> list[Enrollment]: ...
    async def list_for_workspace(self, workspace_id: UUID) -> list[Enrollment]: ...
    async def update_status(
        self,
        workspace_id: UUID,
        enrollment_id: UUID,
        status: EnrollmentStatus,
        updated_at: int,
    ) -> Enrollment | None: ...
    async def delete(self, workspace_id: UUID, enrollment_id: UUID) -> bool: ...
    async def delete_for_challenge(
        self, workspace_id: UUID, challenge_id: UUID
    ) -> int: ...
    async def delete_for_user(self, workspace_id: UUID, user_id: UUID) -> int: ...
    async def delete_for_workspace(self, workspace_id: UUID) -> int: ...
    async def count_for_workspace(self, workspace_id: UUID) -> int: ...


class InMemoryEnrollmentRepo:
    def __init__(self, challenges: InMemoryChallengeRepo) -> None:
        self._challenges = challenges
        self._by_id: dict[UUID, Enrollment] = {}

    def _scoped(self, workspace_id: UUID) -> list[Enrollment]:
        return [
            e
            for e in self._by_id.values()
            if self._challenges.owner_of(e.challenge_id) == workspace_id
        ]

    def _newest_first(self, enrollments: list[Enrollment]) -> list[Enrollment]:
        # Insertion order breaks ties within the same second.
        seq = {enrollment_id: i for i, enrollment_id in enumerate(self._by_id)}
        return sorted(
            enrollments, key=lambda e: (e.created_at, seq[e.id]), reverse=True
        )

    async def get(self, workspace_id: UUID, enrollment_id: UUID) -> Enrollment | None:
        enrollment = self._by_id.get(enrollment_id)
        if enrollment is None:
            return None
        if self._challenges.owner_of(enrollment.challenge_id) != workspace_id:
            return None
        return enrollment

    async def find(
        self, workspace_id: UUID, user_id: UUID, challenge_id: UUID
    ) -> Enrollment | None:
        return next(
            (
                e
                for e in self._scoped(workspace_id)
                if e.user_id == user_id and e.challenge_id == challenge_id
            ),
            None,
        )

    async def add(self, enrollment: Enrollment) -> None:
        # Stands in for the (user_id, challenge_id) unique constraint.
        if any(
            e.user_id == enrollment.user_id and e.challenge_id == enrollment.challenge_id
            for e in self._by_id.values()
        ):
            raise DuplicateEnrollment()
        self._by_id[enrollment.id] = enrollment

    async def list_for_user(self, workspace_id: UUID, user_id: UUID) -> list[Enrollment]:
        return self._newest_first(
            [e for e in self._scoped(workspace_id) if e.user_id == user_id]
        )

    async def list_for_challenge(
        self, workspace_id: UUID, challenge_id: UUID
    ) -> list[Enrollment]:
        return self._newest_first(
            [e for e in self._scoped(workspace_id) if e.challenge_id == challenge_id]
        )

    async def list_for_workspace(self, workspace_id: UUID) -> list[Enrollment]:
        return self._newest_first(self._scoped(workspace_id))

    async def update_status(
        self,
        workspace_id: UUID,
        enrollment_id: UUID,
        status: EnrollmentStatus,
        updated_at: int,
    ) -> Enrollment | None:
        existing = await self.get(workspace_id, enrollment_id)
        if existing is None:
            return None
        updated = replace(existing, status=status, updated_at=updated_at)
        self._by_id[enrollment_id] = updated
        return updated

    async def delete(self, workspace_id: UUID, enrollment_id: UUID) -> bool:
        if await self.get(workspace_id, enrollment_id) is None:
            return False
        del self._by_id[enrollment_id]
        return True

    async def delete_for_challenge(self, workspace_id: UUID, challenge_id: UUID) -> int:
        doomed = [
            e.id for e in self._scoped(workspace_id) if e.challenge_id == challenge_id
        ]
        for enrollment_id in doomed:
            del self._by_id[enrollment_id]
        return len(doomed)

    async def delete_for_user(self, workspace_id: UUID, user_id: UUID) -> int:
        doomed = [e.id for e in self._scoped(workspace_id) if e.user_id == user_id]
        for enrollment_id in doomed:
            del self._by_id[enrollment_id]
        return len(doomed)

    async def delete_for_workspace(self, workspace_id: UUID) -> int:
        doomed = [e.id for e in self._scoped(workspace_id)]
        for enrollment_id in doomed:
            del self._by_id[enrollment_id]
        return len(doomed)

    async def count_for_workspace(self, workspace_id: UUID) -> int:
        return len(self._scoped(workspace_id))

    def count_all(self) -> int:
        """Unscoped row count, for orphan checks in tests."""
        return len(self._by_id)
