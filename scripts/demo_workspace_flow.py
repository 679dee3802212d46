"""Demo: walk sign-in → workspace → challenge → enrollment using FastAPI TestClient.

Run with:
    python scripts/demo_workspace_flow.py

Tokens are signed locally with IDP_JWT_SECRET, standing in for the
identity provider.  Everything runs against the in-memory store.
"""

from __future__ import annotations

import time
import uuid

import jwt
from fastapi.testclient import TestClient

from changemaker.core.config import SETTINGS
from changemaker.main import app


def _token(sub: str, email: str, role: str | None = None) -> dict[str, str]:
    now = int(time.time())
    payload: dict = {
        "sub": sub,
        "email": email,
        "aud": SETTINGS.idp_jwt_audience,
        "iat": now,
        "exp": now + 900,
        "jti": str(uuid.uuid4()),
    }
    if role is not None:
        payload["user_metadata"] = {"role": role}
    token = jwt.encode(payload, SETTINGS.idp_jwt_secret, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


def main() -> None:
    client = TestClient(app)
    founder = _token("demo-founder", "founder@acme.com")
    bob = _token("demo-bob", "bob@acme.com", role="ADMIN")  # claim is ignored
    mallory = _token("demo-mallory", "mallory@globex.com")

    # ── Step 1: sync principals ─────────────────────────────────────
    r = client.post("/auth/sync", headers=founder)
    print(f"1. POST /auth/sync (founder)        → {r.status_code}  role={r.json()['role']}")

    # ── Step 2: founder creates a workspace ─────────────────────────
    r = client.post("/v1/workspaces", json={"name": "Acme", "slug": "acme"}, headers=founder)
    print(f"2. POST /v1/workspaces              → {r.status_code}  slug={r.json()['slug']}")

    # ── Step 3: admin adds a challenge ──────────────────────────────
    r = client.post(
        "/v1/workspaces/acme/challenges",
        json={"title": "Beach Cleanup", "description": "Saturday, 9am, bring gloves"},
        headers=founder,
    )
    challenge_id = r.json()["id"]
    print(f"3. POST .../challenges              → {r.status_code}  id={challenge_id}")

    # ── Step 4: bob joins and enrolls ───────────────────────────────
    r = client.post("/v1/workspaces/acme/join", headers=bob)
    print(f"4. POST .../join (bob)              → {r.status_code}  role={r.json()['role']}")
    r = client.post(
        "/v1/workspaces/acme/enrollments", json={"challenge_id": challenge_id}, headers=bob
    )
    print(f"5. POST .../enrollments (bob)       → {r.status_code}  status={r.json()['status']}")

    # ── Step 5: duplicate is a conflict ─────────────────────────────
    r = client.post(
        "/v1/workspaces/acme/enrollments", json={"challenge_id": challenge_id}, headers=bob
    )
    print(f"6. POST .../enrollments (again)     → {r.status_code}  ({r.json()['detail']})")

    # ── Step 6: bob is not an admin, whatever his token says ────────
    r = client.get("/v1/workspaces/acme/stats", headers=bob)
    print(f"7. GET  .../stats (bob)             → {r.status_code}  ({r.json()['detail']})")

    # ── Step 7: an outsider sees nothing ────────────────────────────
    r = client.get(f"/v1/workspaces/acme/challenges/{challenge_id}", headers=mallory)
    print(f"8. GET  .../challenges/id (mallory) → {r.status_code}  ({r.json()['detail']})")

    r = client.get("/v1/workspaces/acme/stats", headers=founder)
    print(f"9. GET  .../stats (founder)         → {r.status_code}  {r.json()}")


if __name__ == "__main__":
    main()
