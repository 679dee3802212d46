from __future__ import annotations

import logging
from uuid import UUID

from changemaker.core.errors import ChallengeNotFound, ValidationError
from changemaker.models.challenge import Challenge
from changemaker.repos.store import Store

logger = logging.getLogger(__name__)


def _required(field: str, value: str) -> str:
    value = value.strip()
    if not value:
        raise ValidationError(f"{field} must be non-empty")
    return value


class ChallengeService:
    """Challenges of one workspace at a time.

    Every method takes the workspace id and every store call is keyed by
    it; a challenge of another workspace is reported as not found.
    """

    def __init__(self, store: Store) -> None:
        self._challenges = store.challenges
        self._enrollments = store.enrollments

    async def list_challenges(self, workspace_id: UUID) -> list[Challenge]:
        return await self._challenges.list_by_workspace(workspace_id)

    async def get_challenge(self, workspace_id: UUID, challenge_id: UUID) -> Challenge:
        challenge = await self._challenges.get(workspace_id, challenge_id)
        if challenge is None:
            raise ChallengeNotFound()
        return challenge

    async def create_challenge(
        self, workspace_id: UUID, title: str, description: str
    ) -> Challenge:
        challenge = Challenge.new(
            workspace_id=workspace_id,
            title=_required("title", title),
            description=_required("description", description),
        )
        await self._challenges.add(challenge)
        logger.info("Challenge created id=%s workspace=%s", challenge.id, workspace_id)
        return challenge

    async def update_challenge(
        self,
        workspace_id: UUID,
        challenge_id: UUID,
        *,
        title: str | None = None,
        description: str | None = None,
    ) -> Challenge:
        updated = await self._challenges.update(
            workspace_id,
            challenge_id,
            title=None if title is None else _required("title", title),
            description=(
                None if description is None else _required("description", description)
            ),
        )
        if updated is None:
            raise ChallengeNotFound()
        logger.info("Challenge updated id=%s workspace=%s", challenge_id, workspace_id)
        return updated

    async def delete_challenge(self, workspace_id: UUID, challenge_id: UUID) -> None:
        await self.get_challenge(workspace_id, challenge_id)
        removed = await self._enrollments.delete_for_challenge(workspace_id, challenge_id)
        await self._challenges.delete(workspace_id, challenge_id)
        logger.info(
            "Challenge deleted id=%s workspace=%s enrollments=%d",
            challenge_id,
            workspace_id,
            removed,
        )
