from __future__ import annotations

from uuid import uuid4

from fastapi.testclient import TestClient

from changemaker.models.user import Role
from tests.conftest import (
    auth,
    mint_token,
    run,
    seed_challenge,
    seed_enrollment,
    seed_user,
    seed_workspace,
)


def _acme_with_admin():
    acme = seed_workspace("acme")
    seed_user("boss", acme, Role.ADMIN)
    return acme, auth(mint_token("boss"))


def test_admin_creates_challenge(client: TestClient) -> None:
    acme, headers = _acme_with_admin()
    resp = client.post(
        "/v1/workspaces/acme/challenges",
        json={"title": "  Beach Cleanup ", "description": "Bring gloves"},
        headers=headers,
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["title"] == "Beach Cleanup"
    assert body["workspace_id"] == str(acme.id)


def test_blank_title_is_422(client: TestClient) -> None:
    _acme_with_admin()
    resp = client.post(
        "/v1/workspaces/acme/challenges",
        json={"title": "   ", "description": "Bring gloves"},
        headers=auth(mint_token("boss")),
    )
    assert resp.status_code == 422
    assert resp.json() == {"detail": "title must be non-empty", "code": "validation"}


def test_participant_cannot_create_challenge(client: TestClient) -> None:
    acme = seed_workspace("acme")
    seed_user("alice", acme)
    resp = client.post(
        "/v1/workspaces/acme/challenges",
        json={"title": "Mine", "description": "Mine"},
        headers=auth(mint_token("alice")),
    )
    assert resp.status_code == 403


def test_members_list_challenges_by_title(client: TestClient) -> None:
    acme = seed_workspace("acme")
    seed_user("alice", acme)
    seed_challenge(acme, "Tree Planting")
    seed_challenge(acme, "Beach Cleanup")
    seed_challenge(seed_workspace("globex"), "Globex Secret")

    resp = client.get("/v1/workspaces/acme/challenges", headers=auth(mint_token("alice")))
    assert resp.status_code == 200
    assert [c["title"] for c in resp.json()] == ["Beach Cleanup", "Tree Planting"]


def test_get_challenge(client: TestClient) -> None:
    acme = seed_workspace("acme")
    seed_user("alice", acme)
    cleanup = seed_challenge(acme)
    resp = client.get(
        f"/v1/workspaces/acme/challenges/{cleanup.id}", headers=auth(mint_token("alice"))
    )
    assert resp.status_code == 200
    assert resp.json()["id"] == str(cleanup.id)


def test_get_unknown_challenge_is_404(client: TestClient) -> None:
    _acme_with_admin()
    resp = client.get(
        f"/v1/workspaces/acme/challenges/{uuid4()}", headers=auth(mint_token("boss"))
    )
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Challenge not found"


def test_patch_updates_given_fields_only(client: TestClient) -> None:
    acme, headers = _acme_with_admin()
    cleanup = seed_challenge(acme)
    resp = client.patch(
        f"/v1/workspaces/acme/challenges/{cleanup.id}",
        json={"title": "Big Beach Cleanup"},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["title"] == "Big Beach Cleanup"
    assert resp.json()["description"] == cleanup.description


def test_patch_blank_description_is_422(client: TestClient) -> None:
    acme, headers = _acme_with_admin()
    cleanup = seed_challenge(acme)
    resp = client.patch(
        f"/v1/workspaces/acme/challenges/{cleanup.id}",
        json={"description": ""},
        headers=headers,
    )
    assert resp.status_code == 422


def test_delete_challenge_removes_its_enrollments(client: TestClient, store) -> None:
    acme, headers = _acme_with_admin()
    cleanup = seed_challenge(acme)
    other = seed_challenge(acme, "Food Drive")
    for sub in ("a", "b", "c"):
        seed_enrollment(seed_user(sub, acme), cleanup)
    kept = seed_enrollment(seed_user("d", acme), other)

    resp = client.delete(f"/v1/workspaces/acme/challenges/{cleanup.id}", headers=headers)
    assert resp.status_code == 204

    assert run(store.challenges.get(acme.id, cleanup.id)) is None
    assert run(store.enrollments.list_for_workspace(acme.id)) == [kept]
    assert store.enrollments.count_all() == 1


def test_delete_twice_is_404(client: TestClient) -> None:
    acme, headers = _acme_with_admin()
    cleanup = seed_challenge(acme)
    url = f"/v1/workspaces/acme/challenges/{cleanup.id}"
    assert client.delete(url, headers=headers).status_code == 204
    assert client.delete(url, headers=headers).status_code == 404


def test_admin_lists_challenge_enrollments(client: TestClient) -> None:
    acme, headers = _acme_with_admin()
    cleanup = seed_challenge(acme)
    older = seed_enrollment(seed_user("alice", acme), cleanup, now=1_700_000_000)
    newer = seed_enrollment(seed_user("bob", acme), cleanup, now=1_700_000_500)

    resp = client.get(
        f"/v1/workspaces/acme/challenges/{cleanup.id}/enrollments", headers=headers
    )
    assert resp.status_code == 200
    assert [e["id"] for e in resp.json()] == [str(newer.id), str(older.id)]


def test_participant_cannot_list_challenge_enrollments(client: TestClient) -> None:
    acme = seed_workspace("acme")
    seed_user("alice", acme)
    cleanup = seed_challenge(acme)
    resp = client.get(
        f"/v1/workspaces/acme/challenges/{cleanup.id}/enrollments",
        headers=auth(mint_token("alice")),
    )
    assert resp.status_code == 403


def test_malformed_challenge_id_is_422(client: TestClient) -> None:
    _acme_with_admin()
    resp = client.get(
        "/v1/workspaces/acme/challenges/not-a-uuid", headers=auth(mint_token("boss"))
    )
    assert resp.status_code == 422
