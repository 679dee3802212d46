from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from changemaker.models.user import User
from changemaker.models.workspace import Workspace


@dataclass(frozen=True, slots=True)
class IdentityClaims:
    """What the external identity provider vouches for on this request.

    ``role_claim`` is informational only: it can lag behind role changes
    made in this service, so authorization never reads it.
    """

    principal_id: str
    email: str
    role_claim: str | None = None
    token_id: str | None = None
    expires_at: int | None = None


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated identity: provider claims plus the synced user row."""

    user: User
    claims: IdentityClaims

    @property
    def user_id(self) -> UUID:
        return self.user.id

    @property
    def workspace_id(self) -> UUID | None:
        return self.user.workspace_id


@dataclass(frozen=True, slots=True)
class WorkspaceContext:
    """Outcome of a passed member/admin check for one request.

    ``principal.user`` is the row as re-read by the guard, so its role is
    current as of this request.
    """

    workspace: Workspace
    principal: Principal
    is_admin: bool = False

    @property
    def workspace_id(self) -> UUID:
        return self.workspace.id

    @property
    def user(self) -> User:
        return self.principal.user
