"""Challenge endpoints, always inside one workspace.

Members read; admins write.  The workspace id handed to the service
comes from the guard's WorkspaceContext, never from the request body.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from changemaker.api.dependencies import (
    AdminDep,
    ChallengesDep,
    EnrollmentsDep,
    MemberDep,
)
from changemaker.api.enrollments import EnrollmentOut
from changemaker.models.challenge import Challenge

router = APIRouter(prefix="/v1/workspaces/{slug}/challenges", tags=["challenges"])


class ChallengeIn(BaseModel):
    title: str
    description: str


class ChallengePatchIn(BaseModel):
    title: str | None = None
    description: str | None = None


class ChallengeOut(BaseModel):
    id: str
    workspace_id: str
    title: str
    description: str

    @classmethod
    def of(cls, challenge: Challenge) -> ChallengeOut:
        return cls(
            id=str(challenge.id),
            workspace_id=str(challenge.workspace_id),
            title=challenge.title,
            description=challenge.description,
        )


@router.get("", response_model=list[ChallengeOut])
async def list_challenges(ctx: MemberDep, challenges: ChallengesDep) -> list[ChallengeOut]:
    return [ChallengeOut.of(c) for c in await challenges.list_challenges(ctx.workspace_id)]


@router.post("", response_model=ChallengeOut, status_code=status.HTTP_201_CREATED)
async def create_challenge(
    body: ChallengeIn, ctx: AdminDep, challenges: ChallengesDep
) -> ChallengeOut:
    challenge = await challenges.create_challenge(
        ctx.workspace_id, body.title, body.description
    )
    return ChallengeOut.of(challenge)


@router.get("/{challenge_id}", response_model=ChallengeOut)
async def get_challenge(
    challenge_id: UUID, ctx: MemberDep, challenges: ChallengesDep
) -> ChallengeOut:
    return ChallengeOut.of(await challenges.get_challenge(ctx.workspace_id, challenge_id))


@router.patch("/{challenge_id}", response_model=ChallengeOut)
async def update_challenge(
    challenge_id: UUID,
    body: ChallengePatchIn,
    ctx: AdminDep,
    challenges: ChallengesDep,
) -> ChallengeOut:
    challenge = await challenges.update_challenge(
        ctx.workspace_id,
        challenge_id,
        title=body.title,
        description=body.description,
    )
    return ChallengeOut.of(challenge)


@router.delete("/{challenge_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_challenge(
    challenge_id: UUID, ctx: AdminDep, challenges: ChallengesDep
) -> Response:
    await challenges.delete_challenge(ctx.workspace_id, challenge_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{challenge_id}/enrollments", response_model=list[EnrollmentOut])
async def list_challenge_enrollments(
    challenge_id: UUID, ctx: AdminDep, enrollments: EnrollmentsDep
) -> list[EnrollmentOut]:
    found = await enrollments.list_challenge_enrollments(ctx.workspace_id, challenge_id)
    return [EnrollmentOut.of(e) for e in found]
