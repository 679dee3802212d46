"""PostgreSQL implementation of WorkspaceRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from changemaker.core.errors import SlugTaken
from changemaker.db.errors import translate_db_errors
from changemaker.db.tables import UQ_WORKSPACE_SLUG, WorkspaceRow
from changemaker.models.workspace import Workspace


class PgWorkspaceRepo:
    """Satisfies the WorkspaceRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, workspace_id: UUID) -> Workspace | None:
        stmt = select(WorkspaceRow).where(WorkspaceRow.id == workspace_id)
        with translate_db_errors("fetch workspace"):
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_workspace(row)

    async def get_by_slug(self, slug: str) -> Workspace | None:
        stmt = select(WorkspaceRow).where(WorkspaceRow.slug == slug)
        with translate_db_errors("fetch workspace"):
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_workspace(row)

    async def add(self, workspace: Workspace) -> None:
        row = WorkspaceRow(id=workspace.id, slug=workspace.slug, name=workspace.name)
        with translate_db_errors(
            "create workspace", {UQ_WORKSPACE_SLUG: lambda: SlugTaken(workspace.slug)}
        ):
            async with self._session.begin_nested():
                self._session.add(row)
                await self._session.flush()

    async def update(
        self, workspace_id: UUID, *, name: str | None, slug: str | None
    ) -> Workspace | None:
        values: dict[str, str] = {}
        if name is not None:
            values["name"] = name
        if slug is not None:
            values["slug"] = slug
        if not values:
            return await self.get_by_id(workspace_id)

        stmt = (
            update(WorkspaceRow)
            .where(WorkspaceRow.id == workspace_id)
            .values(**values)
            .returning(WorkspaceRow)
        )
        with translate_db_errors(
            "update workspace", {UQ_WORKSPACE_SLUG: lambda: SlugTaken(slug or "")}
        ):
            async with self._session.begin_nested():
                row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_workspace(row)

    async def delete(self, workspace_id: UUID) -> bool:
        stmt = delete(WorkspaceRow).where(WorkspaceRow.id == workspace_id)
        with translate_db_errors("delete workspace"):
            result = await self._session.execute(stmt)
        return result.rowcount > 0


def _row_to_workspace(row: WorkspaceRow) -> Workspace:
    return Workspace(id=row.id, slug=row.slug, name=row.name)
