"""PostgreSQL implementation of ChallengeRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from changemaker.db.errors import translate_db_errors
from changemaker.db.tables import ChallengeRow
from changemaker.models.challenge import Challenge


class PgChallengeRepo:
    """Satisfies the ChallengeRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, workspace_id: UUID, challenge_id: UUID) -> Challenge | None:
        stmt = select(ChallengeRow).where(
            ChallengeRow.id == challenge_id, ChallengeRow.workspace_id == workspace_id
        )
        with translate_db_errors("fetch challenge"):
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_challenge(row)

    async def list_by_workspace(self, workspace_id: UUID) -> list[Challenge]:
        stmt = (
            select(ChallengeRow)
            .where(ChallengeRow.workspace_id == workspace_id)
            .order_by(ChallengeRow.title)
        )
        with translate_db_errors("list challenges"):
            rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_challenge(r) for r in rows]

    async def add(self, challenge: Challenge) -> None:
        row = ChallengeRow(
            id=challenge.id,
            workspace_id=challenge.workspace_id,
            title=challenge.title,
            description=challenge.description,
        )
        with translate_db_errors("create challenge"):
            self._session.add(row)
            await self._session.flush()

    async def update(
        self,
        workspace_id: UUID,
        challenge_id: UUID,
        *,
        title: str | None,
        description: str | None,
    ) -> Challenge | None:
        values: dict[str, str] = {}
        if title is not None:
            values["title"] = title
        if description is not None:
            values["description"] = description
        if not values:
            return await self.get(workspace_id, challenge_id)

        stmt = (
            update(ChallengeRow)
            .where(
                ChallengeRow.id == challenge_id,
                ChallengeRow.workspace_id == workspace_id,
            )
            .values(**values)
            .returning(ChallengeRow)
        )
        with translate_db_errors("update challenge"):
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_challenge(row)

    async def delete(self, workspace_id: UUID, challenge_id: UUID) -> bool:
        stmt = delete(ChallengeRow).where(
            ChallengeRow.id == challenge_id, ChallengeRow.workspace_id == workspace_id
        )
        with translate_db_errors("delete challenge"):
            result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def delete_by_workspace(self, workspace_id: UUID) -> int:
        stmt = delete(ChallengeRow).where(ChallengeRow.workspace_id == workspace_id)
        with translate_db_errors("delete challenges"):
            result = await self._session.execute(stmt)
        return result.rowcount

    async def count_by_workspace(self, workspace_id: UUID) -> int:
        stmt = select(func.count()).where(ChallengeRow.workspace_id == workspace_id)
        with translate_db_errors("count challenges"):
            return (await self._session.execute(stmt)).scalar_one()


def _row_to_challenge(row: ChallengeRow) -> Challenge:
    return Challenge(
        id=row.id,
        workspace_id=row.workspace_id,
        title=row.title,
        description=row.description,
    )
