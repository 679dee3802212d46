"""Boundary to the external identity provider.

The provider issues HS256 JWTs signed with a shared project secret
(IDP_JWT_SECRET).  This module verifies them and turns the payload into
``IdentityClaims``; it never issues tokens itself.

Claims read:
  sub                          -> principal id
  email                        -> email
  user_metadata.role,
  app_metadata.role            -> role claim (informational, see IdentityClaims)
  jti, session_id, exp         -> used by sign-out

Sign-out revokes the token's session key: its jti, else the provider's
session_id, else a digest of the token itself.  Every verified token
therefore has a key, so /auth/logout always takes effect.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Protocol

import jwt

from changemaker.core.config import SETTINGS, Settings
from changemaker.core.errors import Unauthorized
from changemaker.models.principal import IdentityClaims
from changemaker.services.session_revocations import RevocationList, revocation_list

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class IdentityProvider(Protocol):
    async def authenticate(self, token: str) -> IdentityClaims: ...
    async def sign_out(self, claims: IdentityClaims) -> None: ...


def _role_claim(payload: dict[str, Any]) -> str | None:
    for section in ("user_metadata", "app_metadata"):
        metadata = payload.get(section)
        if isinstance(metadata, dict) and isinstance(metadata.get("role"), str):
            return metadata["role"]
    return None


def session_key(payload: dict[str, Any], token: str) -> str:
    for claim in ("jti", "session_id"):
        value = payload.get(claim)
        if isinstance(value, str) and value:
            return f"{claim}:{value}"
    return "sha256:" + hashlib.sha256(token.encode()).hexdigest()


class JwtIdentityProvider:
    def __init__(self, settings: Settings, revocations: RevocationList) -> None:
        self._settings = settings
        self._revocations = revocations

    def decode(self, token: str) -> dict[str, Any]:
        """Verify signature, audience, issuer (when configured) and expiry.

        Pins the algorithm so a token cannot pick its own (alg:none,
        alg switching).  Raises jwt.InvalidTokenError on failure.
        """
        return jwt.decode(
            token,
            self._settings.idp_jwt_secret,
            algorithms=[ALGORITHM],
            audience=self._settings.idp_jwt_audience,
            issuer=self._settings.idp_jwt_issuer,
            options={
                "require": ["sub", "exp"],
                "verify_iss": self._settings.idp_jwt_issuer is not None,
            },
        )

    async def authenticate(self, token: str) -> IdentityClaims:
        try:
            payload = self.decode(token)
        except jwt.ExpiredSignatureError:
            logger.warning("Expired identity token rejected")
            raise Unauthorized("Token expired") from None
        except jwt.InvalidTokenError as e:
            logger.warning("Invalid identity token rejected: %s", e)
            raise Unauthorized("Invalid token") from None

        key = session_key(payload, token)
        if await self._revocations.is_revoked(key):
            logger.warning("Revoked identity token rejected key=%s", key)
            raise Unauthorized("Session has been signed out")

        return IdentityClaims(
            principal_id=str(payload["sub"]),
            email=str(payload.get("email") or ""),
            role_claim=_role_claim(payload),
            token_id=key,
            expires_at=int(payload["exp"]),
        )

    async def sign_out(self, claims: IdentityClaims) -> None:
        if not claims.token_id or claims.expires_at is None:
            raise Unauthorized("Token cannot be signed out")
        await self._revocations.revoke(claims.token_id, float(claims.expires_at))
        logger.info("Session signed out key=%s", claims.token_id)


identity_provider: IdentityProvider = JwtIdentityProvider(SETTINGS, revocation_list)
