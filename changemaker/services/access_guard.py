"""Per-request authorization checks.

Levels, each implying the one before:

  unauthenticated -> authenticated -> workspace member -> workspace admin

Membership is ``user.workspace_id == workspace.id``, exact equality, one
workspace per user.  The admin check re-reads the user row: a role
carried on the token or on an earlier read in the same request may be
stale, the row is not.

Denials are logged at WARNING with the requirement that failed and
counted in ``access_denials_total``.  Messages never mention another
tenant's data.
"""

from __future__ import annotations

import logging

from changemaker.core.errors import AdminRequired, NotWorkspaceMember, Unauthorized
from changemaker.core.logging import user_id_var, workspace_id_var
from changemaker.core.metrics import ACCESS_DENIALS
from changemaker.models.principal import IdentityClaims, Principal, WorkspaceContext
from changemaker.models.user import Role
from changemaker.repos.store import Store
from changemaker.services.principal_resolver import PrincipalResolver
from changemaker.services.tenant_directory import TenantDirectory

logger = logging.getLogger(__name__)


class AccessGuard:
    def __init__(self, store: Store) -> None:
        self._users = store.users
        self._resolver = PrincipalResolver(store)
        self._directory = TenantDirectory(store)

    async def require_authenticated(self, claims: IdentityClaims | None) -> Principal:
        if claims is None:
            ACCESS_DENIALS.labels(reason="unauthenticated").inc()
            logger.warning("Access denied: authentication required")
            raise Unauthorized("Authentication required")

        user = await self._resolver.get_by_external_id(claims.principal_id)
        if user is None:
            # First request after sign-up; the role hint only applies here.
            user = await self._resolver.resolve_principal(
                claims.principal_id, claims.email, claims.role_claim
            )
        user_id_var.set(str(user.id))
        return Principal(user=user, claims=claims)

    async def require_workspace_member(
        self, principal: Principal, slug: str
    ) -> WorkspaceContext:
        workspace = await self._directory.resolve_by_slug(slug)
        workspace_id_var.set(str(workspace.id))

        if not principal.user.is_member_of(workspace.id):
            ACCESS_DENIALS.labels(reason="not_member").inc()
            logger.warning(
                "Access denied: user=%s is not a member of workspace=%s",
                principal.user_id,
                slug,
            )
            raise NotWorkspaceMember()

        return WorkspaceContext(
            workspace=workspace,
            principal=principal,
            is_admin=principal.user.role is Role.ADMIN,
        )

    async def require_workspace_admin(
        self, principal: Principal, slug: str
    ) -> WorkspaceContext:
        ctx = await self.require_workspace_member(principal, slug)

        current = await self._users.get_by_id(principal.user_id)
        if current is None or not current.is_admin_of(ctx.workspace_id):
            ACCESS_DENIALS.labels(reason="admin_required").inc()
            logger.warning(
                "Access denied: user=%s requires admin of workspace=%s (role=%s)",
                principal.user_id,
                slug,
                current.role.value if current else "-",
            )
            raise AdminRequired()

        fresh = Principal(user=current, claims=principal.claims)
        return WorkspaceContext(workspace=ctx.workspace, principal=fresh, is_admin=True)
