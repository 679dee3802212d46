"""Enrollments, scoped to one workspace per call.

An enrollment belongs to a workspace only through its challenge.  Both
the user and the challenge must be inside the workspace the caller is
acting in; anything else is a cross-tenant attempt and is refused before
any write.
"""

from __future__ import annotations

import datetime
import logging
from typing import NoReturn
from uuid import UUID

from changemaker.core.errors import (
    ChallengeNotFound,
    CrossTenantViolation,
    DuplicateEnrollment,
    EnrollmentNotFound,
)
from changemaker.core.metrics import ACCESS_DENIALS, ENROLLMENTS_CREATED
from changemaker.models.enrollment import Enrollment, EnrollmentStatus
from changemaker.repos.store import Store

logger = logging.getLogger(__name__)


def _now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


class EnrollmentService:
    def __init__(self, store: Store) -> None:
        self._users = store.users
        self._challenges = store.challenges
        self._enrollments = store.enrollments

    async def create_enrollment(
        self,
        workspace_id: UUID,
        user_id: UUID,
        challenge_id: UUID,
    ) -> Enrollment:
        """Enroll as ACTIVE; later changes go through update_enrollment_status."""
        if await self._users.get_in_workspace(workspace_id, user_id) is None:
            self._refuse_cross_tenant("User", workspace_id, user_id=user_id)
        if await self._challenges.get(workspace_id, challenge_id) is None:
            self._refuse_cross_tenant("Challenge", workspace_id, challenge_id=challenge_id)

        # Fast path; the (user_id, challenge_id) constraint decides races.
        if await self._enrollments.find(workspace_id, user_id, challenge_id) is not None:
            raise DuplicateEnrollment()

        enrollment = Enrollment.new(
            user_id=user_id, challenge_id=challenge_id, now=_now()
        )
        await self._enrollments.add(enrollment)
        ENROLLMENTS_CREATED.inc()
        logger.info(
            "Enrollment created id=%s user=%s challenge=%s workspace=%s",
            enrollment.id,
            user_id,
            challenge_id,
            workspace_id,
        )
        return enrollment

    @staticmethod
    def _refuse_cross_tenant(subject: str, workspace_id: UUID, **ids: UUID) -> NoReturn:
        ACCESS_DENIALS.labels(reason="cross_tenant").inc()
        logger.warning(
            "Cross-tenant enrollment refused: %s outside workspace=%s %s",
            subject.lower(),
            workspace_id,
            ids,
        )
        raise CrossTenantViolation(subject)

    async def list_user_enrollments(
        self, user_id: UUID, workspace_id: UUID
    ) -> list[Enrollment]:
        return await self._enrollments.list_for_user(workspace_id, user_id)

    async def list_workspace_enrollments(self, workspace_id: UUID) -> list[Enrollment]:
        return await self._enrollments.list_for_workspace(workspace_id)

    async def list_challenge_enrollments(
        self, workspace_id: UUID, challenge_id: UUID
    ) -> list[Enrollment]:
        if await self._challenges.get(workspace_id, challenge_id) is None:
            raise ChallengeNotFound()
        return await self._enrollments.list_for_challenge(workspace_id, challenge_id)

    async def get_enrollment(self, workspace_id: UUID, enrollment_id: UUID) -> Enrollment:
        enrollment = await self._enrollments.get(workspace_id, enrollment_id)
        if enrollment is None:
            raise EnrollmentNotFound()
        return enrollment

    async def update_enrollment_status(
        self,
        workspace_id: UUID,
        enrollment_id: UUID,
        status: EnrollmentStatus | str,
    ) -> Enrollment:
        parsed = EnrollmentStatus.parse(status)
        updated = await self._enrollments.update_status(
            workspace_id, enrollment_id, parsed, _now()
        )
        if updated is None:
            raise EnrollmentNotFound()
        logger.info(
            "Enrollment status id=%s workspace=%s status=%s",
            enrollment_id,
            workspace_id,
            parsed.value,
        )
        return updated

    async def delete_enrollment(self, workspace_id: UUID, enrollment_id: UUID) -> None:
        if not await self._enrollments.delete(workspace_id, enrollment_id):
            raise EnrollmentNotFound()
        logger.info("Enrollment deleted id=%s workspace=%s", enrollment_id, workspace_id)
