"""FastAPI dependencies: store wiring, services, and the guard levels.

Each request gets one ``Store``.  With a database configured the store's
repositories share the request's AsyncSession, committed when the handler
returns and rolled back if it raises.  Without one, the process-wide
in-memory store on ``app.state`` is used.

Guard dependencies build on each other:

  require_claims -> require_principal -> require_member / require_admin
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from changemaker.core.config import SETTINGS
from changemaker.core.errors import Unauthorized
from changemaker.db.engine import session_scope
from changemaker.models.principal import IdentityClaims, Principal, WorkspaceContext
from changemaker.repos.store import Store, pg_store
from changemaker.services.access_guard import AccessGuard
from changemaker.services.challenges import ChallengeService
from changemaker.services.enrollments import EnrollmentService
from changemaker.services.identity import IdentityProvider, identity_provider
from changemaker.services.principal_resolver import PrincipalResolver
from changemaker.services.tenant_directory import TenantDirectory

logger = logging.getLogger(__name__)

# auto_error=False: a missing header must surface as our Unauthorized
# (401 + WWW-Authenticate), not FastAPI's 403.
bearer_scheme = HTTPBearer(auto_error=False)


async def get_store(request: Request) -> AsyncGenerator[Store, None]:
    factory = getattr(request.app.state, "session_factory", None)
    if factory is None:
        yield request.app.state.memory_store
        return
    async with session_scope(factory) as session:
        yield pg_store(session, SETTINGS)


def get_identity_provider() -> IdentityProvider:
    return identity_provider


StoreDep = Annotated[Store, Depends(get_store)]
IdentityDep = Annotated[IdentityProvider, Depends(get_identity_provider)]


def get_guard(store: StoreDep) -> AccessGuard:
    return AccessGuard(store)


def get_resolver(store: StoreDep) -> PrincipalResolver:
    return PrincipalResolver(store)


def get_directory(store: StoreDep) -> TenantDirectory:
    return TenantDirectory(store)


def get_challenge_service(store: StoreDep) -> ChallengeService:
    return ChallengeService(store)


def get_enrollment_service(store: StoreDep) -> EnrollmentService:
    return EnrollmentService(store)


def bearer_token(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
) -> str | None:
    return None if credentials is None else credentials.credentials


async def require_claims(
    token: Annotated[str | None, Depends(bearer_token)],
    idp: IdentityDep,
) -> IdentityClaims:
    """Verified provider claims, or 401."""
    if token is None:
        logger.warning("Request without bearer token rejected")
        raise Unauthorized("Authentication required")
    return await idp.authenticate(token)


async def require_principal(
    claims: Annotated[IdentityClaims, Depends(require_claims)],
    guard: Annotated[AccessGuard, Depends(get_guard)],
) -> Principal:
    return await guard.require_authenticated(claims)


async def require_member(
    slug: str,
    principal: Annotated[Principal, Depends(require_principal)],
    guard: Annotated[AccessGuard, Depends(get_guard)],
) -> WorkspaceContext:
    """Resolve ``{slug}`` from the path and demand membership."""
    return await guard.require_workspace_member(principal, slug)


async def require_admin(
    slug: str,
    principal: Annotated[Principal, Depends(require_principal)],
    guard: Annotated[AccessGuard, Depends(get_guard)],
) -> WorkspaceContext:
    """Resolve ``{slug}`` from the path and demand a current admin role."""
    return await guard.require_workspace_admin(principal, slug)


ClaimsDep = Annotated[IdentityClaims, Depends(require_claims)]
PrincipalDep = Annotated[Principal, Depends(require_principal)]
MemberDep = Annotated[WorkspaceContext, Depends(require_member)]
AdminDep = Annotated[WorkspaceContext, Depends(require_admin)]
DirectoryDep = Annotated[TenantDirectory, Depends(get_directory)]
ResolverDep = Annotated[PrincipalResolver, Depends(get_resolver)]
ChallengesDep = Annotated[ChallengeService, Depends(get_challenge_service)]
EnrollmentsDep = Annotated[EnrollmentService, Depends(get_enrollment_service)]
