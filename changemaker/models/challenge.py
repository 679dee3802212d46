from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class Challenge:
    id: UUID
    workspace_id: UUID  # owning tenant, never null
    title: str
    description: str

    @staticmethod
    def new(*, workspace_id: UUID, title: str, description: str) -> Challenge:
        return Challenge(
            id=uuid4(), workspace_id=workspace_id, title=title, description=description
        )
