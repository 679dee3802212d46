"""Table-driven workspace RBAC tests.

Each row: method, path template, caller, expected status.  Callers are
an admin and a participant of the workspace, an admin of a different
workspace, a synced user with no workspace, and an anonymous request.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from changemaker.models.user import Role
from tests.conftest import auth, mint_token, seed_challenge, seed_user, seed_workspace

_CALLERS = ("admin", "participant", "outsider", "loner", None)


def _setup() -> tuple[dict[str, str], dict[str, dict[str, str]]]:
    acme = seed_workspace("acme")
    globex = seed_workspace("globex")
    seed_user("admin", acme, Role.ADMIN)
    participant = seed_user("participant", acme)
    seed_user("outsider", globex, Role.ADMIN)
    seed_user("loner")
    challenge = seed_challenge(acme)

    ids = {"challenge_id": str(challenge.id), "user_id": str(participant.id)}
    headers = {sub: auth(mint_token(sub)) for sub in _CALLERS if sub is not None}
    return ids, headers


# (method, path, caller, expected, body)
_CASES: list[tuple[str, str, str | None, int, dict | None]] = [
    ("GET", "/v1/workspaces/acme", "admin", 200, None),
    ("GET", "/v1/workspaces/acme", "participant", 200, None),
    ("GET", "/v1/workspaces/acme", "outsider", 403, None),
    ("GET", "/v1/workspaces/acme", "loner", 403, None),
    ("GET", "/v1/workspaces/acme", None, 401, None),
    ("GET", "/v1/workspaces/acme/stats", "admin", 200, None),
    ("GET", "/v1/workspaces/acme/stats", "participant", 403, None),
    ("GET", "/v1/workspaces/acme/stats", "outsider", 403, None),
    ("GET", "/v1/workspaces/acme/stats", None, 401, None),
    ("GET", "/v1/workspaces/acme/members", "admin", 200, None),
    ("GET", "/v1/workspaces/acme/members", "participant", 403, None),
    ("GET", "/v1/workspaces/acme/challenges", "admin", 200, None),
    ("GET", "/v1/workspaces/acme/challenges", "participant", 200, None),
    ("GET", "/v1/workspaces/acme/challenges", "outsider", 403, None),
    ("GET", "/v1/workspaces/acme/challenges", None, 401, None),
    ("GET", "/v1/workspaces/acme/challenges/{challenge_id}", "participant", 200, None),
    ("GET", "/v1/workspaces/acme/challenges/{challenge_id}", "outsider", 403, None),
    (
        "POST",
        "/v1/workspaces/acme/challenges",
        "admin",
        201,
        {"title": "Food Drive", "description": "Cans"},
    ),
    (
        "POST",
        "/v1/workspaces/acme/challenges",
        "participant",
        403,
        {"title": "Food Drive", "description": "Cans"},
    ),
    (
        "POST",
        "/v1/workspaces/acme/challenges",
        "outsider",
        403,
        {"title": "Food Drive", "description": "Cans"},
    ),
    (
        "POST",
        "/v1/workspaces/acme/challenges",
        None,
        401,
        {"title": "Food Drive", "description": "Cans"},
    ),
    ("DELETE", "/v1/workspaces/acme/challenges/{challenge_id}", "admin", 204, None),
    ("DELETE", "/v1/workspaces/acme/challenges/{challenge_id}", "participant", 403, None),
    ("GET", "/v1/workspaces/acme/challenges/{challenge_id}/enrollments", "admin", 200, None),
    (
        "GET",
        "/v1/workspaces/acme/challenges/{challenge_id}/enrollments",
        "participant",
        403,
        None,
    ),
    ("POST", "/v1/workspaces/acme/enrollments", "participant", 201, {}),
    ("POST", "/v1/workspaces/acme/enrollments", "admin", 201, {}),
    ("POST", "/v1/workspaces/acme/enrollments", "outsider", 403, {}),
    ("POST", "/v1/workspaces/acme/enrollments", "loner", 403, {}),
    ("POST", "/v1/workspaces/acme/enrollments", None, 401, {}),
    ("GET", "/v1/workspaces/acme/enrollments", "participant", 200, None),
    ("GET", "/v1/workspaces/acme/enrollments?user_id={user_id}", "participant", 200, None),
    ("GET", "/v1/workspaces/acme/enrollments?user_id={user_id}", "admin", 200, None),
    ("DELETE", "/v1/workspaces/acme", "participant", 403, None),
    ("DELETE", "/v1/workspaces/acme", "outsider", 403, None),
    ("DELETE", "/v1/workspaces/acme", "admin", 204, None),
]


def _case_id(case: tuple) -> str:
    method, path, caller, expected, _ = case
    return f"{method} {path} [{caller or 'anon'}] -> {expected}"


@pytest.mark.parametrize(
    "method,path_tpl,caller,expected,body",
    _CASES,
    ids=[_case_id(c) for c in _CASES],
)
def test_workspace_rbac(
    client: TestClient,
    method: str,
    path_tpl: str,
    caller: str | None,
    expected: int,
    body: dict | None,
) -> None:
    ids, headers = _setup()
    path = path_tpl.format(**ids)
    if body == {}:
        body = {"challenge_id": ids["challenge_id"]}

    resp = client.request(
        method,
        path,
        json=body,
        headers=headers[caller] if caller is not None else {},
    )
    assert resp.status_code == expected, resp.text


def test_demoted_admin_is_denied_despite_admin_claim(client: TestClient) -> None:
    """The role claim on the token lags; the stored role decides."""
    acme = seed_workspace("acme")
    boss = seed_user("boss", acme, Role.ADMIN)
    token = mint_token("boss", role="ADMIN")

    assert client.get("/v1/workspaces/acme/stats", headers=auth(token)).status_code == 200

    seed_user("other-admin", acme, Role.ADMIN)
    demote = client.patch(
        f"/v1/workspaces/acme/members/{boss.id}",
        json={"role": "PARTICIPANT"},
        headers=auth(mint_token("other-admin")),
    )
    assert demote.status_code == 200

    resp = client.get("/v1/workspaces/acme/stats", headers=auth(token))
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Admin privileges required for this operation"
    # Still a member, so member routes keep working.
    assert client.get("/v1/workspaces/acme", headers=auth(token)).status_code == 200


def test_resync_does_not_restore_admin_from_claim(client: TestClient) -> None:
    acme = seed_workspace("acme")
    seed_user("boss", acme, Role.PARTICIPANT)
    token = mint_token("boss", role="ADMIN")

    assert client.post("/auth/sync", headers=auth(token)).json()["role"] == "PARTICIPANT"
    assert client.get("/v1/workspaces/acme/stats", headers=auth(token)).status_code == 403
