"""Workspace endpoints.

The workspace is addressed by slug in the path.  Reading a workspace
needs membership; changing it or its members needs a current admin role.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from changemaker.api.auth import UserOut
from changemaker.api.dependencies import (
    AdminDep,
    DirectoryDep,
    MemberDep,
    PrincipalDep,
)
from changemaker.models.workspace import Workspace

router = APIRouter(prefix="/v1/workspaces", tags=["workspaces"])


class WorkspaceCreateIn(BaseModel):
    name: str
    slug: str


class WorkspaceUpdateIn(BaseModel):
    name: str | None = None
    slug: str | None = None


class WorkspaceOut(BaseModel):
    id: str
    slug: str
    name: str

    @classmethod
    def of(cls, workspace: Workspace) -> WorkspaceOut:
        return cls(id=str(workspace.id), slug=workspace.slug, name=workspace.name)


class StatsOut(BaseModel):
    member_count: int
    challenge_count: int
    enrollment_count: int


class RoleIn(BaseModel):
    role: str


@router.post("", response_model=WorkspaceOut, status_code=status.HTTP_201_CREATED)
async def create_workspace(
    body: WorkspaceCreateIn, principal: PrincipalDep, directory: DirectoryDep
) -> WorkspaceOut:
    """Create a workspace. The creator becomes its admin."""
    workspace = await directory.create_workspace(
        body.name, body.slug, creator=principal.user
    )
    return WorkspaceOut.of(workspace)


@router.get("/{slug}", response_model=WorkspaceOut)
async def get_workspace(ctx: MemberDep) -> WorkspaceOut:
    return WorkspaceOut.of(ctx.workspace)


@router.patch("/{slug}", response_model=WorkspaceOut)
async def update_workspace(
    body: WorkspaceUpdateIn, ctx: AdminDep, directory: DirectoryDep
) -> WorkspaceOut:
    workspace = await directory.update_workspace(
        ctx.workspace_id, name=body.name, slug=body.slug
    )
    return WorkspaceOut.of(workspace)


@router.delete("/{slug}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_workspace(ctx: AdminDep, directory: DirectoryDep) -> Response:
    await directory.delete_workspace(ctx.workspace_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{slug}/stats", response_model=StatsOut)
async def workspace_stats(ctx: AdminDep, directory: DirectoryDep) -> StatsOut:
    stats = await directory.workspace_stats(ctx.workspace_id)
    return StatsOut(
        member_count=stats.member_count,
        challenge_count=stats.challenge_count,
        enrollment_count=stats.enrollment_count,
    )


@router.post("/{slug}/join", response_model=UserOut)
async def join_workspace(
    slug: str, principal: PrincipalDep, directory: DirectoryDep
) -> UserOut:
    """Join as a participant, leaving any previous workspace."""
    user = await directory.join_workspace(principal.user, slug)
    return UserOut.of(user)


@router.post("/{slug}/leave", status_code=status.HTTP_204_NO_CONTENT)
async def leave_workspace(ctx: MemberDep, directory: DirectoryDep) -> Response:
    await directory.leave_workspace(ctx.user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{slug}/members", response_model=list[UserOut])
async def list_members(ctx: AdminDep, directory: DirectoryDep) -> list[UserOut]:
    members = await directory.list_members(ctx.workspace_id)
    return [UserOut.of(u) for u in members]


@router.patch("/{slug}/members/{user_id}", response_model=UserOut)
async def update_member_role(
    user_id: UUID, body: RoleIn, ctx: AdminDep, directory: DirectoryDep
) -> UserOut:
    user = await directory.update_member_role(ctx.workspace_id, user_id, body.role)
    return UserOut.of(user)
