from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from changemaker.api.auth import router as auth_router
from changemaker.api.challenges import router as challenges_router
from changemaker.api.enrollments import router as enrollments_router
from changemaker.api.errors import install_error_handlers
from changemaker.api.health import router as health_router
from changemaker.api.workspaces import router as workspaces_router
from changemaker.core.config import SETTINGS
from changemaker.core.logging import setup_logging
from changemaker.db.engine import lifespan_db
from changemaker.db.redis import lifespan_redis
from changemaker.middleware.metrics import MetricsMiddleware
from changemaker.middleware.request_context import RequestContextMiddleware
from changemaker.repos.store import in_memory_store

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Nested so teardown runs in reverse order even if one side fails.
    async with lifespan_db(app):
        async with lifespan_redis():
            yield


app = FastAPI(
    title="changemaker",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

# Serves every request until lifespan_db installs a session factory.
app.state.memory_store = in_memory_store()
app.state.session_factory = None

# Last added runs first: RequestContext -> Metrics -> route handler, so
# every request has an id before metrics and handlers log anything.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

install_error_handlers(app)

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(workspaces_router)
app.include_router(challenges_router)
app.include_router(enrollments_router)

logger.info(
    "changemaker started  env=%s log_level=%s port=%d store=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "postgres" if SETTINGS.database_url else "memory",
)
