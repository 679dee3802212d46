from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

# Dev/test fallback so the service boots without an identity provider.
# load_settings() refuses to use it when APP_ENV=prod.
DEV_IDP_JWT_SECRET = "dev-only-idp-secret-change-me-before-deploying"


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it’s easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    redis_url: str | None
    idp_jwt_secret: str = DEV_IDP_JWT_SECRET
    idp_jwt_audience: str = "authenticated"
    idp_jwt_issuer: str | None = None
    # Budget for the first-sign-in upsert transaction (lock wait / statement).
    sync_lock_timeout_ms: int = 5000
    sync_statement_timeout_ms: int = 10000

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    log_json_raw = _getenv("LOG_JSON", "false").lower()

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    if log_json_raw not in ("true", "false", "1", "0"):
        raise ValueError(f"LOG_JSON must be true|false (got {log_json_raw!r})")

    port = _getenv_int("PORT", 8000)
    sync_lock_timeout_ms = _getenv_int("SYNC_LOCK_TIMEOUT_MS", 5000)
    sync_statement_timeout_ms = _getenv_int("SYNC_STATEMENT_TIMEOUT_MS", 10000)
    if sync_lock_timeout_ms <= 0 or sync_statement_timeout_ms <= 0:
        raise ValueError("SYNC_*_TIMEOUT_MS must be positive")

    idp_jwt_secret = _getenv("IDP_JWT_SECRET", "")
    if not idp_jwt_secret:
        if app_env_raw == "prod":
            raise ValueError("IDP_JWT_SECRET is required when APP_ENV=prod")
        idp_jwt_secret = DEV_IDP_JWT_SECRET

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json_raw in ("true", "1"),
        port=port,
        database_url=_getenv("DATABASE_URL", "") or None,
        redis_url=_getenv("REDIS_URL", "") or None,
        idp_jwt_secret=idp_jwt_secret,
        idp_jwt_audience=_getenv("IDP_JWT_AUDIENCE", "authenticated"),
        idp_jwt_issuer=_getenv("IDP_JWT_ISSUER", "") or None,
        sync_lock_timeout_ms=sync_lock_timeout_ms,
        sync_statement_timeout_ms=sync_statement_timeout_ms,
    )


# Optional: module-level singleton so imports are cheap
SETTINGS = load_settings()
