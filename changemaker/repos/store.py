"""The repository bundle handed to services.

Services never construct repositories; they receive a ``Store``.  The
API layer builds one per request: the process-wide in-memory store when
no database is configured, otherwise PostgreSQL repos sharing the
request's session (so a service call is one transaction).
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from changemaker.core.config import Settings
from changemaker.repos.challenge_repo import ChallengeRepo, InMemoryChallengeRepo
from changemaker.repos.enrollment_repo import EnrollmentRepo, InMemoryEnrollmentRepo
from changemaker.repos.pg_challenge_repo import PgChallengeRepo
from changemaker.repos.pg_enrollment_repo import PgEnrollmentRepo
from changemaker.repos.pg_user_repo import PgUserRepo
from changemaker.repos.pg_workspace_repo import PgWorkspaceRepo
from changemaker.repos.user_repo import InMemoryUserRepo, UserRepo
from changemaker.repos.workspace_repo import InMemoryWorkspaceRepo, WorkspaceRepo


@dataclass(frozen=True, slots=True)
class Store:
    workspaces: WorkspaceRepo
    users: UserRepo
    challenges: ChallengeRepo
    enrollments: EnrollmentRepo


def in_memory_store() -> Store:
    challenges = InMemoryChallengeRepo()
    return Store(
        workspaces=InMemoryWorkspaceRepo(),
        users=InMemoryUserRepo(),
        challenges=challenges,
        enrollments=InMemoryEnrollmentRepo(challenges),
    )


def pg_store(session: AsyncSession, settings: Settings) -> Store:
    return Store(
        workspaces=PgWorkspaceRepo(session),
        users=PgUserRepo(
            session,
            lock_timeout_ms=settings.sync_lock_timeout_ms,
            statement_timeout_ms=settings.sync_statement_timeout_ms,
        ),
        challenges=PgChallengeRepo(session),
        enrollments=PgEnrollmentRepo(session),
    )
