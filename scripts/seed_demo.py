"""Seed the demo workspaces, users, challenges and enrollments.

Run with:
    DATABASE_URL=postgresql+asyncpg://... python scripts/seed_demo.py

Without DATABASE_URL the data goes into a throwaway in-memory store,
which is only useful to see what would be created.

Everything goes through the services, so the same validation and
uniqueness rules apply as for API traffic.  Re-running is safe: existing
workspaces, users and enrollments are reused.  Users get deterministic
external ids (``seed|<email>``); the identity provider accounts for them
are created separately.
"""

from __future__ import annotations

import asyncio
import logging

from changemaker.core.config import SETTINGS
from changemaker.core.errors import DuplicateEnrollment, SlugTaken
from changemaker.core.logging import setup_logging
from changemaker.db.engine import build_engine, build_session_factory, session_scope
from changemaker.models.enrollment import EnrollmentStatus
from changemaker.models.user import Role
from changemaker.repos.store import Store, in_memory_store, pg_store
from changemaker.services.challenges import ChallengeService
from changemaker.services.enrollments import EnrollmentService
from changemaker.services.principal_resolver import PrincipalResolver
from changemaker.services.tenant_directory import TenantDirectory

logger = logging.getLogger("seed_demo")

WORKSPACES = [
    ("acme", "ACME Corporation"),
    ("alldigitalrewards", "AllDigitalRewards"),
    ("sharecare", "Sharecare"),
]

ADMINS = [
    ("krobinson@alldigitalrewards.com", "alldigitalrewards"),
    ("kfelke@alldigitalrewards.com", "alldigitalrewards"),
    ("jfelke@alldigitalrewards.com", "alldigitalrewards"),
    ("jhoughtelin@alldigitalrewards.com", "alldigitalrewards"),
]

PARTICIPANTS = [
    ("john.doe@acme.com", "acme"),
    ("jane.smith@acme.com", "acme"),
    ("bob.wilson@acme.com", "acme"),
    ("sarah.jones@alldigitalrewards.com", "alldigitalrewards"),
    ("mike.chen@alldigitalrewards.com", "alldigitalrewards"),
    ("lisa.taylor@alldigitalrewards.com", "alldigitalrewards"),
    ("david.brown@sharecare.com", "sharecare"),
    ("emma.davis@sharecare.com", "sharecare"),
    ("alex.johnson@sharecare.com", "sharecare"),
]

CHALLENGES = [
    (
        "Innovation Sprint 2025",
        "Propose and develop innovative solutions to improve our customer "
        "experience using AI and automation.",
    ),
    (
        "Sustainability Challenge",
        "Create initiatives to reduce our carbon footprint and promote "
        "environmental responsibility.",
    ),
    (
        "Wellness & Wellbeing",
        "Design programs that enhance employee wellness and work-life balance.",
    ),
]

# Participants are enrolled in the first challenges of their workspace.
ENROLLMENT_STATUSES = [EnrollmentStatus.ACTIVE, EnrollmentStatus.PENDING]


async def seed(store: Store) -> None:
    directory = TenantDirectory(store)
    resolver = PrincipalResolver(store)
    challenges = ChallengeService(store)
    enrollments = EnrollmentService(store)

    workspace_ids = {}
    for slug, name in WORKSPACES:
        try:
            workspace = await directory.create_workspace(name, slug)
        except SlugTaken:
            workspace = await directory.resolve_by_slug(slug)
        workspace_ids[slug] = workspace.id

    for email, slug in ADMINS:
        user = await resolver.resolve_principal(
            f"seed|{email}", email, Role.ADMIN.value, trust_role_hint=True
        )
        await store.users.set_workspace(user.id, workspace_ids[slug], Role.ADMIN)

    seeded_challenges = {}
    for slug, name in WORKSPACES:
        existing = {
            c.title: c for c in await challenges.list_challenges(workspace_ids[slug])
        }
        seeded_challenges[slug] = []
        for title, description in CHALLENGES:
            full_title = f"{title} - {name}"
            challenge = existing.get(full_title) or await challenges.create_challenge(
                workspace_ids[slug], full_title, description
            )
            seeded_challenges[slug].append(challenge)

    created = 0
    for email, slug in PARTICIPANTS:
        user = await resolver.resolve_principal(
            f"seed|{email}", email, Role.PARTICIPANT.value, trust_role_hint=True
        )
        user = await directory.join_workspace(user, slug)
        for challenge, status in zip(
            seeded_challenges[slug], ENROLLMENT_STATUSES, strict=False
        ):
            try:
                enrollment = await enrollments.create_enrollment(
                    workspace_ids[slug], user.id, challenge.id
                )
            except DuplicateEnrollment:
                logger.debug("%s already enrolled in %s", email, challenge.title)
                continue
            if status is not EnrollmentStatus.ACTIVE:
                await enrollments.update_enrollment_status(
                    workspace_ids[slug], enrollment.id, status.value
                )
            created += 1

    for slug, _ in WORKSPACES:
        stats = await directory.workspace_stats(workspace_ids[slug])
        logger.info(
            "%s: members=%d challenges=%d enrollments=%d",
            slug,
            stats.member_count,
            stats.challenge_count,
            stats.enrollment_count,
        )
    logger.info("Seed complete, %d new enrollments", created)


async def main() -> None:
    setup_logging(SETTINGS.log_level)
    if not SETTINGS.database_url:
        logger.warning("DATABASE_URL not set; seeding an in-memory store")
        await seed(in_memory_store())
        return

    engine = build_engine(SETTINGS.database_url)
    try:
        async with session_scope(build_session_factory(engine)) as session:
            await seed(pg_store(session, SETTINGS))
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
