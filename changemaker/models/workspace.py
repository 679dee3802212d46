from __future__ import annotations

import re
from dataclasses import dataclass
from uuid import UUID, uuid4

_SLUG_RE = re.compile(r"^[a-z0-9-]+$")
SLUG_MIN_LEN = 2
SLUG_MAX_LEN = 50


def is_workspace_slug(slug: str) -> bool:
    """Lowercase alphanumerics and hyphens, 2-50 characters."""
    return SLUG_MIN_LEN <= len(slug) <= SLUG_MAX_LEN and bool(_SLUG_RE.match(slug))


@dataclass(frozen=True, slots=True)
class Workspace:
    id: UUID
    slug: str
    name: str

    @staticmethod
    def new(*, slug: str, name: str) -> Workspace:
        return Workspace(id=uuid4(), slug=slug, name=name)


@dataclass(frozen=True, slots=True)
class WorkspaceStats:
    member_count: int
    challenge_count: int
    enrollment_count: int
