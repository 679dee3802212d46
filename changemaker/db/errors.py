"""Translate SQLAlchemy failures into the service error taxonomy.

Uniqueness violations are matched by constraint name (the names are
pinned in changemaker/db/tables.py).  Anything not matched is wrapped as
DatabaseError and propagated; nothing is retried.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from changemaker.core.errors import ChangemakerError, DatabaseError

logger = logging.getLogger(__name__)


@contextmanager
def translate_db_errors(
    operation: str,
    conflicts: Mapping[str, Callable[[], ChangemakerError]] | None = None,
) -> Iterator[None]:
    try:
        yield
    except IntegrityError as exc:
        detail = str(exc.orig)
        for constraint, make_error in (conflicts or {}).items():
            if constraint in detail:
                logger.warning("%s rejected by %s", operation, constraint)
                raise make_error() from exc
        logger.exception("Integrity error during %s", operation)
        raise DatabaseError(f"Failed to {operation}") from exc
    except SQLAlchemyError as exc:
        logger.exception("Database error during %s", operation)
        raise DatabaseError(f"Failed to {operation}") from exc
