"""Async SQLAlchemy engine and session factory.

The engine is built once, at process start, by ``lifespan_db`` and hung
on ``app.state``; nothing below imports a global session.  Each request
gets its own ``AsyncSession`` from ``app.state.session_factory``.

When DATABASE_URL is not configured the factory stays None and the API
serves from ``app.state.memory_store`` instead (dev and tests).
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from changemaker.core.config import SETTINGS

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all table models."""


def build_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """One unit of work: commit on success, roll back on exception."""
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def lifespan_db(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup/shutdown hook for the database engine."""
    if not SETTINGS.database_url:
        logger.info("No DATABASE_URL configured, using in-memory repositories")
        yield
        return

    engine = build_engine(SETTINGS.database_url, echo=SETTINGS.is_dev)
    app.state.session_factory = build_session_factory(engine)
    logger.info("Database engine created: %s", engine.url)
    try:
        yield
    finally:
        app.state.session_factory = None
        await engine.dispose()
        logger.info("Database engine disposed")
