from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from changemaker.core.errors import SlugTaken
from changemaker.models.workspace import Workspace


class WorkspaceRepo(Protocol):
    async def get_by_id(self, workspace_id: UUID) -> Workspace | None: ...
    async def get_by_slug(self, slug: str) -> Workspace | None: ...
    async def add(self, workspace: Workspace) -> None: ...
    async def update(
        self, workspace_id: UUID, *, name: str | None, slug: str | None
    ) -> Workspace | None: ...
    async def delete(self, workspace_id: UUID) -> bool: ...


class InMemoryWorkspaceRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Workspace] = {}

    async def get_by_id(self, workspace_id: UUID) -> Workspace | None:
        return self._by_id.get(workspace_id)

    async def get_by_slug(self, slug: str) -> Workspace | None:
        return next((w for w in self._by_id.values() if w.slug == slug), None)

    async def add(self, workspace: Workspace) -> None:
        # Stands in for the unique index on slug.
        if await self.get_by_slug(workspace.slug) is not None:
            raise SlugTaken(workspace.slug)
        self._by_id[workspace.id] = workspace

    async def update(
        self, workspace_id: UUID, *, name: str | None, slug: str | None
    ) -> Workspace | None:
        existing = self._by_id.get(workspace_id)
        if existing is None:
            return None
        if slug is not None and slug != existing.slug:
            if await self.get_by_slug(slug) is not None:
                raise SlugTaken(slug)
        updated = replace(
            existing,
            name=existing.name if name is None else name,
            slug=existing.slug if slug is None else slug,
        )
        self._by_id[workspace_id] = updated
        return updated

    async def delete(self, workspace_id: UUID) -> bool:
        return self._by_id.pop(workspace_id, None) is not None
