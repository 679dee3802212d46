from __future__ import annotations

import logging

import pytest

from changemaker.core.errors import (
    AdminRequired,
    NotWorkspaceMember,
    Unauthorized,
    WorkspaceNotFound,
)
from changemaker.models.principal import IdentityClaims, Principal
from changemaker.models.user import Role, User
from changemaker.repos.store import Store
from changemaker.services.access_guard import AccessGuard
from tests.conftest import run, seed_user, seed_workspace


def _claims(sub: str, role: str | None = None) -> IdentityClaims:
    return IdentityClaims(principal_id=sub, email=f"{sub}@example.com", role_claim=role)


def _principal(user: User) -> Principal:
    return Principal(user=user, claims=_claims(user.external_id or "x"))


# ---- authenticated ----


def test_no_claims_is_unauthorized(store: Store) -> None:
    with pytest.raises(Unauthorized):
        run(AccessGuard(store).require_authenticated(None))


def test_authenticated_syncs_unknown_principal(store: Store) -> None:
    principal = run(AccessGuard(store).require_authenticated(_claims("new-user")))
    assert principal.user.external_id == "new-user"
    assert run(store.users.get_by_external_id("new-user")) is not None


def test_authenticated_reuses_existing_row(store: Store) -> None:
    existing = seed_user("alice")
    principal = run(AccessGuard(store).require_authenticated(_claims("alice")))
    assert principal.user_id == existing.id


def test_token_role_claim_is_ignored_for_existing_user(store: Store) -> None:
    acme = seed_workspace("acme")
    seed_user("alice", acme, Role.PARTICIPANT)
    principal = run(AccessGuard(store).require_authenticated(_claims("alice", "ADMIN")))
    assert principal.user.role is Role.PARTICIPANT


# ---- member ----


def test_member_passes(store: Store) -> None:
    acme = seed_workspace("acme")
    user = seed_user("alice", acme)
    ctx = run(AccessGuard(store).require_workspace_member(_principal(user), "acme"))
    assert ctx.workspace_id == acme.id
    assert ctx.is_admin is False


def test_member_of_other_workspace_is_denied(store: Store) -> None:
    seed_workspace("acme")
    globex = seed_workspace("globex")
    user = seed_user("alice", globex, Role.ADMIN)
    with pytest.raises(NotWorkspaceMember):
        run(AccessGuard(store).require_workspace_member(_principal(user), "acme"))


def test_user_without_workspace_is_denied(store: Store) -> None:
    seed_workspace("acme")
    user = seed_user("drifter")
    with pytest.raises(NotWorkspaceMember):
        run(AccessGuard(store).require_workspace_member(_principal(user), "acme"))


def test_unknown_workspace_is_not_found(store: Store) -> None:
    user = seed_user("alice")
    with pytest.raises(WorkspaceNotFound):
        run(AccessGuard(store).require_workspace_member(_principal(user), "nope"))


def test_denial_is_logged_without_other_tenant_data(
    store: Store, caplog: pytest.LogCaptureFixture
) -> None:
    seed_workspace("acme")
    globex = seed_workspace("globex")
    user = seed_user("alice", globex)
    with caplog.at_level(logging.WARNING, logger="changemaker.services.access_guard"):
        with pytest.raises(NotWorkspaceMember) as exc_info:
            run(AccessGuard(store).require_workspace_member(_principal(user), "acme"))
    assert "not a member" in caplog.text
    assert "globex" not in exc_info.value.message


# ---- admin ----


def test_admin_passes(store: Store) -> None:
    acme = seed_workspace("acme")
    admin = seed_user("boss", acme, Role.ADMIN)
    ctx = run(AccessGuard(store).require_workspace_admin(_principal(admin), "acme"))
    assert ctx.is_admin is True
    assert ctx.user.id == admin.id


def test_participant_is_not_admin(store: Store) -> None:
    acme = seed_workspace("acme")
    user = seed_user("alice", acme)
    with pytest.raises(AdminRequired):
        run(AccessGuard(store).require_workspace_admin(_principal(user), "acme"))


def test_admin_of_other_workspace_is_not_admin_here(store: Store) -> None:
    seed_workspace("acme")
    globex = seed_workspace("globex")
    admin = seed_user("boss", globex, Role.ADMIN)
    with pytest.raises(NotWorkspaceMember):
        run(AccessGuard(store).require_workspace_admin(_principal(admin), "acme"))


def test_demoted_admin_is_rejected_despite_stale_principal(store: Store) -> None:
    acme = seed_workspace("acme")
    admin = seed_user("boss", acme, Role.ADMIN)
    stale = _principal(admin)  # still says ADMIN

    run(store.users.update_role_in_workspace(acme.id, admin.id, Role.PARTICIPANT))

    with pytest.raises(AdminRequired):
        run(AccessGuard(store).require_workspace_admin(stale, "acme"))
