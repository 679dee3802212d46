from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from changemaker.core.errors import SyncConflict
from changemaker.models.user import Role, User


class UserRepo(Protocol):
    async def get_by_id(self, user_id: UUID) -> User | None: ...
    async def get_by_external_id(self, external_id: str) -> User | None: ...
    async def get_in_workspace(
        self, workspace_id: UUID, user_id: UUID
    ) -> User | None: ...
    async def upsert_by_external_id(
        self,
        *,
        external_id: str,
        email: str,
        role_on_create: Role,
        role_on_update: Role | None,
    ) -> User: ...
    async def set_workspace(
        self, user_id: UUID, workspace_id: UUID | None, role: Role
    ) -> User | None: ...
    async def update_role_in_workspace(
        self, workspace_id: UUID, user_id: UUID, role: Role
    ) -> User | None: ...
    async def list_by_workspace(self, workspace_id: UUID) -> list[User]: ...
    async def count_by_workspace(self, workspace_id: UUID) -> int: ...
    async def detach_workspace(self, workspace_id: UUID) -> int: ...


class InMemoryUserRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, User] = {}

    async def get_by_id(self, user_id: UUID) -> User | None:
        return self._by_id.get(user_id)

    async def get_by_external_id(self, external_id: str) -> User | None:
        return next(
            (u for u in self._by_id.values() if u.external_id == external_id), None
        )

    async def get_in_workspace(self, workspace_id: UUID, user_id: UUID) -> User | None:
        user = self._by_id.get(user_id)
        if user is None or user.workspace_id != workspace_id:
            return None
        return user

    async def upsert_by_external_id(
        self,
        *,
        external_id: str,
        email: str,
        role_on_create: Role,
        role_on_update: Role | None,
    ) -> User:
        # Single-threaded event loop: no await between read and write, so
        # this is as atomic as ON CONFLICT DO UPDATE.
        existing = await self.get_by_external_id(external_id)
        owner = next((u for u in self._by_id.values() if u.email == email), None)
        if owner is not None and (existing is None or owner.id != existing.id):
            raise SyncConflict("email is already linked to another identity")

        if existing is None:
            user = User.new(email=email, external_id=external_id, role=role_on_create)
        else:
            user = replace(
                existing,
                email=email,
                role=existing.role if role_on_update is None else role_on_update,
            )
        self._by_id[user.id] = user
        return user

    async def set_workspace(
        self, user_id: UUID, workspace_id: UUID | None, role: Role
    ) -> User | None:
        user = self._by_id.get(user_id)
        if user is None:
            return None
        updated = replace(user, workspace_id=workspace_id, role=role)
        self._by_id[user_id] = updated
        return updated

    async def update_role_in_workspace(
        self, workspace_id: UUID, user_id: UUID, role: Role
    ) -> User | None:
        user = await self.get_in_workspace(workspace_id, user_id)
        if user is None:
            return None
        updated = replace(user, role=role)
        self._by_id[user_id] = updated
        return updated

    async def list_by_workspace(self, workspace_id: UUID) -> list[User]:
        members = [u for u in self._by_id.values() if u.workspace_id == workspace_id]
        return sorted(members, key=lambda u: u.email)

    async def count_by_workspace(self, workspace_id: UUID) -> int:
        return sum(1 for u in self._by_id.values() if u.workspace_id == workspace_id)

    async def detach_workspace(self, workspace_id: UUID) -> int:
        members = [u for u in self._by_id.values() if u.workspace_id == workspace_id]
        for user in members:
            self._by_id[user.id] = replace(
                user, workspace_id=None, role=Role.PARTICIPANT
            )
        return len(members)
