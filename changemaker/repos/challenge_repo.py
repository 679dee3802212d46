from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from changemaker.models.challenge import Challenge


class ChallengeRepo(Protocol):
    """Every read and write is keyed by the owning workspace."""

    async def get(self, workspace_id: UUID, challenge_id: UUID) -> Challenge | None: ...
    async def list_by_workspace(self, workspace_id: UUID) -> list[Challenge]: ...
    async def add(self, challenge: Challenge) -> None: ...
    async def update(
        self,
        workspace_id: UUID,
        challenge_id: UUID,
        *,
        title: str | None,
        description: str | None,
    ) -> Challenge | None: ...
    async def delete(self, workspace_id: UUID, challenge_id: UUID) -> bool: ...
    async def delete_by_workspace(self, workspace_id: UUID) -> int: ...
    async def count_by_workspace(self, workspace_id: UUID) -> int: ...


class InMemoryChallengeRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Challenge] = {}

    async def get(self, workspace_id: UUID, challenge_id: UUID) -> Challenge | None:
        challenge = self._by_id.get(challenge_id)
        if challenge is None or challenge.workspace_id != workspace_id:
            return None
        return challenge

    async def list_by_workspace(self, workspace_id: UUID) -> list[Challenge]:
        owned = [c for c in self._by_id.values() if c.workspace_id == workspace_id]
        return sorted(owned, key=lambda c: c.title)

    async def add(self, challenge: Challenge) -> None:
        self._by_id[challenge.id] = challenge

    async def update(
        self,
        workspace_id: UUID,
        challenge_id: UUID,
        *,
        title: str | None,
        description: str | None,
    ) -> Challenge | None:
        existing = await self.get(workspace_id, challenge_id)
        if existing is None:
            return None
        updated = replace(
            existing,
            title=existing.title if title is None else title,
            description=existing.description if description is None else description,
        )
        self._by_id[challenge_id] = updated
        return updated

    async def delete(self, workspace_id: UUID, challenge_id: UUID) -> bool:
        if await self.get(workspace_id, challenge_id) is None:
            return False
        del self._by_id[challenge_id]
        return True

    async def delete_by_workspace(self, workspace_id: UUID) -> int:
        doomed = [c.id for c in self._by_id.values() if c.workspace_id == workspace_id]
        for challenge_id in doomed:
            del self._by_id[challenge_id]
        return len(doomed)

    async def count_by_workspace(self, workspace_id: UUID) -> int:
        return sum(1 for c in self._by_id.values() if c.workspace_id == workspace_id)

    def owner_of(self, challenge_id: UUID) -> UUID | None:
        """Workspace of a challenge; the in-memory stand-in for the join."""
        challenge = self._by_id.get(challenge_id)
        return None if challenge is None else challenge.workspace_id
