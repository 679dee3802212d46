from __future__ import annotations

import asyncio
import sys
import time
import uuid
from pathlib import Path

import jwt
import pytest
from fastapi.testclient import TestClient

from changemaker.core.config import SETTINGS
from changemaker.main import app
from changemaker.models.challenge import Challenge
from changemaker.models.enrollment import Enrollment, EnrollmentStatus
from changemaker.models.user import Role, User
from changemaker.models.workspace import Workspace
from changemaker.repos.store import Store, in_memory_store
from changemaker.services.session_revocations import revocation_list

# Ensure repo root is on sys.path so `import changemaker` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def reset_store() -> None:
    """Fresh in-memory store for every test."""
    app.state.memory_store = in_memory_store()


@pytest.fixture(autouse=True)
def reset_revocations() -> None:
    if hasattr(revocation_list, "clear"):
        revocation_list.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def store() -> Store:
    return app.state.memory_store


def run(coro):
    """Drive a coroutine from a sync test."""
    return asyncio.run(coro)


def mint_token(
    sub: str = "idp-user",
    email: str | None = None,
    role: str | None = None,
    *,
    ttl_seconds: int = 900,
    secret: str | None = None,
    audience: str | None = None,
) -> str:
    """Sign a token the way the identity provider does (HS256)."""
    now = int(time.time())
    payload: dict = {
        "sub": sub,
        "email": email or f"{sub}@example.com",
        "aud": audience or SETTINGS.idp_jwt_audience,
        "iat": now,
        "exp": now + ttl_seconds,
        "jti": str(uuid.uuid4()),
    }
    if role is not None:
        payload["user_metadata"] = {"role": role}
    return jwt.encode(payload, secret or SETTINGS.idp_jwt_secret, algorithm="HS256")


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Seed helpers (write straight into the in-memory store)
# ---------------------------------------------------------------------------


def seed_workspace(slug: str = "acme", name: str | None = None) -> Workspace:
    workspace = Workspace.new(slug=slug, name=name or slug.title())
    run(app.state.memory_store.workspaces.add(workspace))
    return workspace


def seed_user(
    sub: str,
    workspace: Workspace | None = None,
    role: Role = Role.PARTICIPANT,
) -> User:
    """Synced user with external id ``sub``, optionally placed in a workspace."""
    users = app.state.memory_store.users
    user = run(
        users.upsert_by_external_id(
            external_id=sub,
            email=f"{sub}@example.com",
            role_on_create=role,
            role_on_update=None,
        )
    )
    if workspace is not None:
        user = run(users.set_workspace(user.id, workspace.id, role))
    return user


def seed_challenge(workspace: Workspace, title: str = "Beach Cleanup") -> Challenge:
    challenge = Challenge.new(
        workspace_id=workspace.id, title=title, description=f"{title} description"
    )
    run(app.state.memory_store.challenges.add(challenge))
    return challenge


def seed_enrollment(
    user: User,
    challenge: Challenge,
    status: EnrollmentStatus = EnrollmentStatus.ACTIVE,
    now: int = 1_700_000_000,
) -> Enrollment:
    enrollment = Enrollment.new(
        user_id=user.id, challenge_id=challenge.id, now=now, status=status
    )
    run(app.state.memory_store.enrollments.add(enrollment))
    return enrollment
