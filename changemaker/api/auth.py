"""Identity endpoints: sync the local principal, read it, sign out.

Sign-in itself happens at the identity provider; clients arrive here with
the provider's bearer token.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from changemaker.api.dependencies import (
    ClaimsDep,
    IdentityDep,
    PrincipalDep,
    ResolverDep,
    bearer_token,
)
from changemaker.core.errors import Unauthorized
from changemaker.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class UserOut(BaseModel):
    id: str
    email: str
    role: str
    workspace_id: str | None

    @classmethod
    def of(cls, user: User) -> UserOut:
        return cls(
            id=str(user.id),
            email=user.email,
            role=user.role.value,
            workspace_id=None if user.workspace_id is None else str(user.workspace_id),
        )


@router.post("/sync", response_model=UserOut)
async def sync(claims: ClaimsDep, resolver: ResolverDep) -> UserOut:
    """Create or refresh the local user for the token's principal."""
    user = await resolver.resolve_principal(
        claims.principal_id, claims.email, claims.role_claim
    )
    return UserOut.of(user)


@router.get("/me", response_model=UserOut)
async def me(principal: PrincipalDep) -> UserOut:
    return UserOut.of(principal.user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    token: Annotated[str | None, Depends(bearer_token)],
    idp: IdentityDep,
) -> Response:
    """Revoke the presented token.

    Idempotent: a missing, invalid or already revoked token is already
    unusable, so those also get 204.
    """
    if token is not None:
        try:
            claims = await idp.authenticate(token)
        except Unauthorized:
            logger.debug("Logout with unusable token; nothing to revoke")
        else:
            await idp.sign_out(claims)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
