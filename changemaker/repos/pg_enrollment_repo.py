"""PostgreSQL implementation of EnrollmentRepo.

Every statement is restricted with ``_in_workspace``: an enrollment is
visible only through a challenge owned by the given workspace.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from changemaker.core.errors import DuplicateEnrollment
from changemaker.db.errors import translate_db_errors
from changemaker.db.tables import (
    UQ_ENROLLMENT_USER_CHALLENGE,
    ChallengeRow,
    EnrollmentRow,
)
from changemaker.models.enrollment import Enrollment, EnrollmentStatus


def _in_workspace(workspace_id: UUID):
    return EnrollmentRow.challenge_id.in_(
        select(ChallengeRow.id).where(ChallengeRow.workspace_id == workspace_id)
    )


class PgEnrollmentRepo:
    """Satisfies the EnrollmentRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _one(self, *conditions) -> Enrollment | None:
        stmt = select(EnrollmentRow).where(*conditions)
        with translate_db_errors("fetch enrollment"):
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_enrollment(row)

    async def _many(self, *conditions) -> list[Enrollment]:
        stmt = (
            select(EnrollmentRow)
            .where(*conditions)
            .order_by(EnrollmentRow.created_at.desc(), EnrollmentRow.id)
        )
        with translate_db_errors("list enrollments"):
            rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_enrollment(r) for r in rows]

    async def get(self, workspace_id: UUID, enrollment_id: UUID) -> Enrollment | None:
        return await self._one(
            EnrollmentRow.id == enrollment_id, _in_workspace(workspace_id)
        )

    async def find(
        self, workspace_id: UUID, user_id: UUID, challenge_id: UUID
    ) -> Enrollment | None:
        return await self._one(
            EnrollmentRow.user_id == user_id,
            EnrollmentRow.challenge_id == challenge_id,
            _in_workspace(workspace_id),
        )

    async def add(self, enrollment: Enrollment) -> None:
        row = EnrollmentRow(
            id=enrollment.id,
            user_id=enrollment.user_id,
            challenge_id=enrollment.challenge_id,
            status=enrollment.status.value,
            created_at=enrollment.created_at,
            updated_at=enrollment.updated_at,
        )
        with translate_db_errors(
            "create enrollment", {UQ_ENROLLMENT_USER_CHALLENGE: DuplicateEnrollment}
        ):
            async with self._session.begin_nested():
                self._session.add(row)
                await self._session.flush()

    async def list_for_user(self, workspace_id: UUID, user_id: UUID) -> list[Enrollment]:
        return await self._many(
            EnrollmentRow.user_id == user_id, _in_workspace(workspace_id)
        )

    async def list_for_challenge(
        self, workspace_id: UUID, challenge_id: UUID
    ) -> list[Enrollment]:
        return await self._many(
            EnrollmentRow.challenge_id == challenge_id, _in_workspace(workspace_id)
        )

    async def list_for_workspace(self, workspace_id: UUID) -> list[Enrollment]:
        return await self._many(_in_workspace(workspace_id))

    async def update_status(
        self,
        workspace_id: UUID,
        enrollment_id: UUID,
        status: EnrollmentStatus,
        updated_at: int,
    ) -> Enrollment | None:
        stmt = (
            update(EnrollmentRow)
            .where(EnrollmentRow.id == enrollment_id, _in_workspace(workspace_id))
            .values(status=status.value, updated_at=updated_at)
            .returning(EnrollmentRow)
        )
        with translate_db_errors("update enrollment"):
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_enrollment(row)

    async def delete(self, workspace_id: UUID, enrollment_id: UUID) -> bool:
        stmt = delete(EnrollmentRow).where(
            EnrollmentRow.id == enrollment_id, _in_workspace(workspace_id)
        )
        with translate_db_errors("delete enrollment"):
            result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def delete_for_challenge(self, workspace_id: UUID, challenge_id: UUID) -> int:
        stmt = delete(EnrollmentRow).where(
            EnrollmentRow.challenge_id == challenge_id, _in_workspace(workspace_id)
        )
        with translate_db_errors("delete enrollments"):
            result = await self._session.execute(stmt)
        return result.rowcount

    async def delete_for_user(self, workspace_id: UUID, user_id: UUID) -> int:
        stmt = delete(EnrollmentRow).where(
            EnrollmentRow.user_id == user_id, _in_workspace(workspace_id)
        )
        with translate_db_errors("delete enrollments"):
            result = await self._session.execute(stmt)
        return result.rowcount

    async def delete_for_workspace(self, workspace_id: UUID) -> int:
        stmt = delete(EnrollmentRow).where(_in_workspace(workspace_id))
        with translate_db_errors("delete enrollments"):
            result = await self._session.execute(stmt)
        return result.rowcount

    async def count_for_workspace(self, workspace_id: UUID) -> int:
        stmt = select(func.count()).where(_in_workspace(workspace_id))
        with translate_db_errors("count enrollments"):
            return (await self._session.execute(stmt)).scalar_one()


def _row_to_enrollment(row: EnrollmentRow) -> Enrollment:
    return Enrollment(
        id=row.id,
        user_id=row.user_id,
        challenge_id=row.challenge_id,
        status=EnrollmentStatus.parse(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
