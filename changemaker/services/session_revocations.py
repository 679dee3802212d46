"""Revocation list for signed-out identity-provider sessions.

Provider tokens are self-contained: once issued they verify until they
expire.  Sign-out therefore records the token's session key here, and
every authenticated request checks the list after the signature check.

Entries only need to outlive the token itself, so each one expires at the
token's ``exp``.  In Redis that is the key TTL; the in-memory variant
drops stale entries on lookup.
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable

from changemaker.core.metrics import SESSION_REVOCATION_CHECKS
from changemaker.db.redis import redis_pool


@runtime_checkable
class RevocationList(Protocol):
    async def revoke(self, key: str, expires_at: float) -> None:
        """Reject the token with this session key until it would have expired."""
        ...

    async def is_revoked(self, key: str) -> bool: ...


class InMemoryRevocationList:
    """Per-process list for dev and tests.

    Not shared between API instances; production sets REDIS_URL.
    """

    def __init__(self) -> None:
        self._revoked: dict[str, float] = {}  # session key -> exp (unix seconds)

    async def revoke(self, key: str, expires_at: float) -> None:
        if expires_at > time.time():
            self._revoked[key] = expires_at

    async def is_revoked(self, key: str) -> bool:
        exp = self._revoked.get(key)
        if exp is not None and exp < time.time():
            del self._revoked[key]
            exp = None
        result = "valid" if exp is None else "revoked"
        SESSION_REVOCATION_CHECKS.labels(result=result).inc()
        return exp is not None

    def clear(self) -> None:
        self._revoked.clear()


class RedisRevocationList:
    """Shared across API instances; keys expire with the token."""

    _PREFIX = "revoked:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def revoke(self, key: str, expires_at: float) -> None:
        ttl_seconds = int(expires_at - time.time())
        if ttl_seconds <= 0:
            return  # already expired
        # SETEX: value and TTL in one command, so no key is left without expiry.
        await self._redis.setex(f"{self._PREFIX}{key}", ttl_seconds, "1")

    async def is_revoked(self, key: str) -> bool:
        revoked = bool(await self._redis.exists(f"{self._PREFIX}{key}"))
        SESSION_REVOCATION_CHECKS.labels(
            result="revoked" if revoked else "valid"
        ).inc()
        return revoked


if redis_pool is not None:
    revocation_list: RevocationList = RedisRevocationList(redis_pool)
else:
    revocation_list = InMemoryRevocationList()
