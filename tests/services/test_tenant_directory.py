from __future__ import annotations

import pytest

from changemaker.core.errors import (
    SlugTaken,
    UserNotFound,
    ValidationError,
    WorkspaceNotFound,
)
from changemaker.models.user import Role
from changemaker.repos.store import Store
from changemaker.services.tenant_directory import TenantDirectory
from tests.conftest import (
    run,
    seed_challenge,
    seed_enrollment,
    seed_user,
    seed_workspace,
)

# ---- resolve / create ----


def test_resolve_by_slug(store: Store) -> None:
    acme = seed_workspace("acme")
    assert run(TenantDirectory(store).resolve_by_slug("acme")) == acme


def test_resolve_by_slug_is_case_sensitive(store: Store) -> None:
    seed_workspace("acme")
    with pytest.raises(WorkspaceNotFound):
        run(TenantDirectory(store).resolve_by_slug("ACME"))


def test_resolve_unknown_slug(store: Store) -> None:
    with pytest.raises(WorkspaceNotFound):
        run(TenantDirectory(store).resolve_by_slug("nope"))


def test_create_workspace(store: Store) -> None:
    workspace = run(TenantDirectory(store).create_workspace("  Acme Corp ", "acme"))
    assert workspace.name == "Acme Corp"
    assert workspace.slug == "acme"
    assert run(store.workspaces.get_by_slug("acme")) == workspace


def test_create_workspace_makes_creator_admin_member(store: Store) -> None:
    creator = seed_user("founder")
    workspace = run(
        TenantDirectory(store).create_workspace("Acme", "acme", creator=creator)
    )
    refreshed = run(store.users.get_by_id(creator.id))
    assert refreshed is not None
    assert refreshed.workspace_id == workspace.id
    assert refreshed.role is Role.ADMIN


def test_duplicate_slug_is_a_conflict(store: Store) -> None:
    directory = TenantDirectory(store)
    run(directory.create_workspace("Acme", "acme"))
    with pytest.raises(SlugTaken):
        run(directory.create_workspace("Acme Again", "acme"))


@pytest.mark.parametrize("slug", ["a", "Acme", "acme corp", "acme_corp", "x" * 51, ""])
def test_invalid_slug_is_rejected(store: Store, slug: str) -> None:
    with pytest.raises(ValidationError):
        run(TenantDirectory(store).create_workspace("Acme", slug))


def test_blank_name_is_rejected(store: Store) -> None:
    with pytest.raises(ValidationError):
        run(TenantDirectory(store).create_workspace("   ", "acme"))


# ---- update / delete ----


def test_update_workspace(store: Store) -> None:
    acme = seed_workspace("acme")
    updated = run(
        TenantDirectory(store).update_workspace(acme.id, name="ACME", slug="acme-corp")
    )
    assert updated.name == "ACME"
    assert updated.slug == "acme-corp"
    assert run(store.workspaces.get_by_slug("acme")) is None


def test_update_workspace_to_taken_slug(store: Store) -> None:
    acme = seed_workspace("acme")
    seed_workspace("globex")
    with pytest.raises(SlugTaken):
        run(TenantDirectory(store).update_workspace(acme.id, slug="globex"))


def test_delete_workspace_removes_children_and_detaches_members(
    store: Store,
) -> None:
    acme = seed_workspace("acme")
    other = seed_workspace("globex")
    admin = seed_user("admin", acme, Role.ADMIN)
    challenge = seed_challenge(acme)
    kept = seed_challenge(other, "Tree Planting")
    outsider = seed_user("outsider", other)
    seed_enrollment(admin, challenge)
    seed_enrollment(outsider, kept)

    run(TenantDirectory(store).delete_workspace(acme.id))

    assert run(store.workspaces.get_by_id(acme.id)) is None
    assert run(store.challenges.count_by_workspace(acme.id)) == 0
    detached = run(store.users.get_by_id(admin.id))
    assert detached is not None
    assert detached.workspace_id is None
    assert detached.role is Role.PARTICIPANT
    # The other tenant is untouched.
    assert run(store.enrollments.count_for_workspace(other.id)) == 1
    assert store.enrollments.count_all() == 1  # type: ignore[attr-defined]


def test_delete_unknown_workspace(store: Store) -> None:
    acme = seed_workspace("acme")
    run(TenantDirectory(store).delete_workspace(acme.id))
    with pytest.raises(WorkspaceNotFound):
        run(TenantDirectory(store).delete_workspace(acme.id))


# ---- stats ----


def test_workspace_stats_counts_only_this_workspace(store: Store) -> None:
    acme = seed_workspace("acme")
    other = seed_workspace("globex")
    alice = seed_user("alice", acme)
    seed_user("bob", acme)
    carol = seed_user("carol", other)
    cleanup = seed_challenge(acme, "Beach Cleanup")
    seed_challenge(acme, "Tree Planting")
    other_challenge = seed_challenge(other, "Recycling")
    seed_enrollment(alice, cleanup)
    seed_enrollment(carol, other_challenge)

    stats = run(TenantDirectory(store).workspace_stats(acme.id))
    assert stats.member_count == 2
    assert stats.challenge_count == 2
    assert stats.enrollment_count == 1


# ---- membership ----


def test_join_sets_participant_and_replaces_previous_workspace(store: Store) -> None:
    acme = seed_workspace("acme")
    globex = seed_workspace("globex")
    user = seed_user("alice", acme, Role.ADMIN)

    joined = run(TenantDirectory(store).join_workspace(user, "globex"))
    assert joined.workspace_id == globex.id
    assert joined.role is Role.PARTICIPANT
    assert not joined.is_member_of(acme.id)


def test_switching_workspace_withdraws_old_enrollments(store: Store) -> None:
    acme = seed_workspace("acme")
    globex = seed_workspace("globex")
    alice = seed_user("alice", acme)
    seed_enrollment(alice, seed_challenge(acme))
    kept = seed_enrollment(seed_user("bob", acme), seed_challenge(acme, "Food Drive"))

    run(TenantDirectory(store).join_workspace(alice, "globex"))

    assert run(store.enrollments.list_for_user(acme.id, alice.id)) == []
    assert run(store.enrollments.list_for_workspace(acme.id)) == [kept]
    assert run(store.enrollments.count_for_workspace(globex.id)) == 0


def test_rejoining_same_workspace_keeps_enrollments(store: Store) -> None:
    acme = seed_workspace("acme")
    alice = seed_user("alice", acme)
    mine = seed_enrollment(alice, seed_challenge(acme))

    run(TenantDirectory(store).join_workspace(alice, "acme"))

    assert run(store.enrollments.list_for_user(acme.id, alice.id)) == [mine]



def test_join_unknown_workspace(store: Store) -> None:
    user = seed_user("alice")
    with pytest.raises(WorkspaceNotFound):
        run(TenantDirectory(store).join_workspace(user, "nope"))


def test_leave_clears_membership_and_role(store: Store) -> None:
    acme = seed_workspace("acme")
    user = seed_user("alice", acme, Role.ADMIN)
    left = run(TenantDirectory(store).leave_workspace(user))
    assert left.workspace_id is None
    assert left.role is Role.PARTICIPANT


def test_leave_withdraws_own_enrollments(store: Store) -> None:
    acme = seed_workspace("acme")
    alice = seed_user("alice", acme)
    cleanup = seed_challenge(acme)
    seed_enrollment(alice, cleanup)
    kept = seed_enrollment(seed_user("bob", acme), cleanup)

    run(TenantDirectory(store).leave_workspace(alice))

    assert run(store.enrollments.list_for_workspace(acme.id)) == [kept]
    assert store.enrollments.count_all() == 1



def test_list_members_sorted_by_email(store: Store) -> None:
    acme = seed_workspace("acme")
    seed_user("zed", acme)
    seed_user("amy", acme)
    seed_user("outsider")
    members = run(TenantDirectory(store).list_members(acme.id))
    assert [m.email for m in members] == ["amy@example.com", "zed@example.com"]


def test_update_member_role(store: Store) -> None:
    acme = seed_workspace("acme")
    user = seed_user("alice", acme)
    promoted = run(TenantDirectory(store).update_member_role(acme.id, user.id, "admin"))
    assert promoted.role is Role.ADMIN


def test_update_member_role_outside_workspace_is_not_found(store: Store) -> None:
    acme = seed_workspace("acme")
    other = seed_workspace("globex")
    outsider = seed_user("carol", other)
    with pytest.raises(UserNotFound):
        run(TenantDirectory(store).update_member_role(acme.id, outsider.id, "ADMIN"))
    unchanged = run(store.users.get_by_id(outsider.id))
    assert unchanged is not None
    assert unchanged.role is Role.PARTICIPANT


def test_update_member_role_rejects_unknown_role(store: Store) -> None:
    acme = seed_workspace("acme")
    user = seed_user("alice", acme)
    with pytest.raises(ValidationError):
        run(TenantDirectory(store).update_member_role(acme.id, user.id, "OWNER"))
