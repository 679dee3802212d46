from __future__ import annotations

import logging
from uuid import UUID

from changemaker.core.errors import (
    SlugTaken,
    UserNotFound,
    ValidationError,
    WorkspaceNotFound,
)
from changemaker.models.user import Role, User
from changemaker.models.workspace import (
    SLUG_MAX_LEN,
    SLUG_MIN_LEN,
    Workspace,
    WorkspaceStats,
    is_workspace_slug,
)
from changemaker.repos.store import Store

logger = logging.getLogger(__name__)

NAME_MAX_LEN = 255


def _validate_slug(slug: str) -> str:
    if not is_workspace_slug(slug):
        raise ValidationError(
            "slug must be lowercase letters, digits and hyphens, "
            f"{SLUG_MIN_LEN}-{SLUG_MAX_LEN} characters (got {slug!r})"
        )
    return slug


def _validate_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValidationError("name must be non-empty")
    if len(name) > NAME_MAX_LEN:
        raise ValidationError(f"name must be at most {NAME_MAX_LEN} characters")
    return name


class TenantDirectory:
    """Workspaces and who belongs to them."""

    def __init__(self, store: Store) -> None:
        self._store = store

    async def resolve_by_slug(self, slug: str) -> Workspace:
        # Exact match: "ACME" is not "acme".
        workspace = await self._store.workspaces.get_by_slug(slug)
        if workspace is None:
            raise WorkspaceNotFound()
        return workspace

    async def get_by_id(self, workspace_id: UUID) -> Workspace:
        workspace = await self._store.workspaces.get_by_id(workspace_id)
        if workspace is None:
            raise WorkspaceNotFound()
        return workspace

    async def create_workspace(
        self, name: str, slug: str, *, creator: User | None = None
    ) -> Workspace:
        name = _validate_name(name)
        slug = _validate_slug(slug)

        # Fast path only; the unique index decides under concurrency.
        if await self._store.workspaces.get_by_slug(slug) is not None:
            raise SlugTaken(slug)

        workspace = Workspace.new(slug=slug, name=name)
        await self._store.workspaces.add(workspace)
        logger.info("Workspace created id=%s slug=%s", workspace.id, slug)

        if creator is not None:
            await self._store.users.set_workspace(creator.id, workspace.id, Role.ADMIN)
            logger.info("Creator user=%s is admin of workspace=%s", creator.id, slug)
        return workspace

    async def update_workspace(
        self,
        workspace_id: UUID,
        *,
        name: str | None = None,
        slug: str | None = None,
    ) -> Workspace:
        if name is not None:
            name = _validate_name(name)
        if slug is not None:
            slug = _validate_slug(slug)

        updated = await self._store.workspaces.update(workspace_id, name=name, slug=slug)
        if updated is None:
            raise WorkspaceNotFound()
        logger.info("Workspace updated id=%s slug=%s", workspace_id, updated.slug)
        return updated

    async def delete_workspace(self, workspace_id: UUID) -> None:
        # Children first, then detach members, then the workspace itself.
        enrollments = await self._store.enrollments.delete_for_workspace(workspace_id)
        challenges = await self._store.challenges.delete_by_workspace(workspace_id)
        members = await self._store.users.detach_workspace(workspace_id)
        if not await self._store.workspaces.delete(workspace_id):
            raise WorkspaceNotFound()
        logger.info(
            "Workspace deleted id=%s enrollments=%d challenges=%d members=%d",
            workspace_id,
            enrollments,
            challenges,
            members,
        )

    async def workspace_stats(self, workspace_id: UUID) -> WorkspaceStats:
        return WorkspaceStats(
            member_count=await self._store.users.count_by_workspace(workspace_id),
            challenge_count=await self._store.challenges.count_by_workspace(
                workspace_id
            ),
            enrollment_count=await self._store.enrollments.count_for_workspace(
                workspace_id
            ),
        )

    async def _withdraw_from(self, user: User, workspace_id: UUID | None) -> int:
        """Drop the user's enrollments in a workspace they are leaving."""
        if workspace_id is None:
            return 0
        withdrawn = await self._store.enrollments.delete_for_user(workspace_id, user.id)
        if withdrawn:
            logger.info(
                "Withdrew %d enrollments user=%s workspace=%s",
                withdrawn,
                user.id,
                workspace_id,
            )
        return withdrawn

    async def join_workspace(self, user: User, slug: str) -> User:
        """Move the user into the workspace as a participant.

        One workspace per user: joining replaces any previous membership
        and withdraws the user's enrollments in the workspace left behind.
        """
        workspace = await self.resolve_by_slug(slug)
        if user.workspace_id != workspace.id:
            await self._withdraw_from(user, user.workspace_id)
        updated = await self._store.users.set_workspace(
            user.id, workspace.id, Role.PARTICIPANT
        )
        if updated is None:
            raise UserNotFound()
        logger.info("User=%s joined workspace=%s", user.id, slug)
        return updated

    async def leave_workspace(self, user: User) -> User:
        await self._withdraw_from(user, user.workspace_id)
        updated = await self._store.users.set_workspace(user.id, None, Role.PARTICIPANT)
        if updated is None:
            raise UserNotFound()
        logger.info("User=%s left workspace=%s", user.id, user.workspace_id)
        return updated

    async def list_members(self, workspace_id: UUID) -> list[User]:
        return await self._store.users.list_by_workspace(workspace_id)

    async def update_member_role(
        self, workspace_id: UUID, user_id: UUID, role: Role | str
    ) -> User:
        parsed = Role.coerce(role)
        if parsed is None:
            allowed = "|".join(r.value for r in Role)
            raise ValidationError(f"role must be one of {allowed} (got {role!r})")

        updated = await self._store.users.update_role_in_workspace(
            workspace_id, user_id, parsed
        )
        if updated is None:
            raise UserNotFound()
        logger.info(
            "Member role changed user=%s workspace=%s role=%s",
            user_id,
            workspace_id,
            parsed.value,
        )
        return updated
