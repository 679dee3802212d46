"""Enrollment endpoints inside one workspace.

Participants act on their own enrollments; acting on someone else's
(or listing the whole workspace) needs a current admin role.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, ConfigDict

from changemaker.api.dependencies import EnrollmentsDep, MemberDep, get_guard
from changemaker.models.enrollment import Enrollment
from changemaker.models.principal import WorkspaceContext
from changemaker.services.access_guard import AccessGuard

router = APIRouter(prefix="/v1/workspaces/{slug}/enrollments", tags=["enrollments"])

GuardDep = Annotated[AccessGuard, Depends(get_guard)]


class EnrollmentIn(BaseModel):
    # New enrollments always start active; status is changed with PATCH.
    model_config = ConfigDict(extra="forbid")

    challenge_id: UUID
    user_id: UUID | None = None  # defaults to the caller


class StatusIn(BaseModel):
    status: str


class EnrollmentOut(BaseModel):
    id: str
    user_id: str
    challenge_id: str
    status: str
    created_at: int
    updated_at: int

    @classmethod
    def of(cls, enrollment: Enrollment) -> EnrollmentOut:
        return cls(
            id=str(enrollment.id),
            user_id=str(enrollment.user_id),
            challenge_id=str(enrollment.challenge_id),
            status=enrollment.status.value,
            created_at=enrollment.created_at,
            updated_at=enrollment.updated_at,
        )


async def _require_self_or_admin(
    ctx: WorkspaceContext, user_id: UUID, guard: AccessGuard
) -> None:
    if user_id == ctx.user.id:
        return
    await guard.require_workspace_admin(ctx.principal, ctx.workspace.slug)


@router.post("", response_model=EnrollmentOut, status_code=status.HTTP_201_CREATED)
async def create_enrollment(
    body: EnrollmentIn,
    ctx: MemberDep,
    guard: GuardDep,
    enrollments: EnrollmentsDep,
) -> EnrollmentOut:
    user_id = body.user_id or ctx.user.id
    await _require_self_or_admin(ctx, user_id, guard)
    enrollment = await enrollments.create_enrollment(
        ctx.workspace_id, user_id, body.challenge_id
    )
    return EnrollmentOut.of(enrollment)


@router.get("", response_model=list[EnrollmentOut])
async def list_enrollments(
    ctx: MemberDep,
    guard: GuardDep,
    enrollments: EnrollmentsDep,
    user_id: UUID | None = None,
) -> list[EnrollmentOut]:
    """Without ``user_id``: everything for admins, own enrollments otherwise."""
    if user_id is None and ctx.is_admin:
        found = await enrollments.list_workspace_enrollments(ctx.workspace_id)
    else:
        target = user_id or ctx.user.id
        await _require_self_or_admin(ctx, target, guard)
        found = await enrollments.list_user_enrollments(target, ctx.workspace_id)
    return [EnrollmentOut.of(e) for e in found]


@router.get("/{enrollment_id}", response_model=EnrollmentOut)
async def get_enrollment(
    enrollment_id: UUID,
    ctx: MemberDep,
    guard: GuardDep,
    enrollments: EnrollmentsDep,
) -> EnrollmentOut:
    enrollment = await enrollments.get_enrollment(ctx.workspace_id, enrollment_id)
    await _require_self_or_admin(ctx, enrollment.user_id, guard)
    return EnrollmentOut.of(enrollment)


@router.patch("/{enrollment_id}", response_model=EnrollmentOut)
async def update_enrollment_status(
    enrollment_id: UUID,
    body: StatusIn,
    ctx: MemberDep,
    guard: GuardDep,
    enrollments: EnrollmentsDep,
) -> EnrollmentOut:
    enrollment = await enrollments.get_enrollment(ctx.workspace_id, enrollment_id)
    await _require_self_or_admin(ctx, enrollment.user_id, guard)
    updated = await enrollments.update_enrollment_status(
        ctx.workspace_id, enrollment_id, body.status
    )
    return EnrollmentOut.of(updated)


@router.delete("/{enrollment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_enrollment(
    enrollment_id: UUID,
    ctx: MemberDep,
    guard: GuardDep,
    enrollments: EnrollmentsDep,
) -> Response:
    enrollment = await enrollments.get_enrollment(ctx.workspace_id, enrollment_id)
    await _require_self_or_admin(ctx, enrollment.user_id, guard)
    await enrollments.delete_enrollment(ctx.workspace_id, enrollment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
