"""Map an identity-provider principal to the local user row.

The identity provider owns credentials; this service owns the local copy
of the principal (email, role, workspace).  The first sign-in creates the
row, later sign-ins refresh the email.  The role is written from the
provider's hint only when the row is created, unless the caller vouches
for the hint (seed tooling): provider metadata can lag behind a role change
made here, and copying it back on every sign-in would undo demotions.
"""

from __future__ import annotations

import logging

from changemaker.core.errors import InvalidPrincipalData, SyncConflict
from changemaker.core.metrics import PRINCIPAL_SYNCS
from changemaker.models.user import Role, User
from changemaker.repos.store import Store

logger = logging.getLogger(__name__)


class PrincipalResolver:
    def __init__(self, store: Store) -> None:
        self._users = store.users

    async def resolve_principal(
        self,
        external_id: str | None,
        email: str | None,
        role_hint: str | None = None,
        *,
        trust_role_hint: bool = False,
    ) -> User:
        external_id = (external_id or "").strip()
        email = (email or "").strip().lower()
        if not external_id:
            raise InvalidPrincipalData("external_id must be non-empty")
        if not email:
            raise InvalidPrincipalData("email must be non-empty")

        hinted = Role.coerce(role_hint)
        try:
            user = await self._users.upsert_by_external_id(
                external_id=external_id,
                email=email,
                role_on_create=hinted or Role.PARTICIPANT,
                role_on_update=hinted if trust_role_hint else None,
            )
        except SyncConflict:
            PRINCIPAL_SYNCS.labels(result="conflict").inc()
            logger.warning("Principal sync conflict external_id=%s", external_id)
            raise

        PRINCIPAL_SYNCS.labels(result="ok").inc()
        logger.info(
            "Principal synced user=%s external_id=%s role=%s",
            user.id,
            external_id,
            user.role.value,
        )
        return user

    async def get_by_external_id(self, external_id: str) -> User | None:
        return await self._users.get_by_external_id(external_id)
