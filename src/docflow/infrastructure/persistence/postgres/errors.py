"""Translate psycopg errors into domain persistence errors."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import psycopg
from psycopg import errors as pg_errors

from docflow.domain.exceptions import (
    ConnectionFailure,
    ConstraintViolation,
    DuplicateDocument,
    PersistenceError,
)

logger = logging.getLogger(__name__)


def classify_error(exc: psycopg.Error, *, operation: str, entity: str) -> PersistenceError:
    """Map a driver error to ConnectionFailure, ConstraintViolation or PersistenceError."""
    detail = f"{entity} {operation} failed: {exc}"
    if isinstance(exc, pg_errors.UniqueViolation) and entity == "document":
        return DuplicateDocument(detail, operation=operation, entity=entity)
    if isinstance(exc, psycopg.IntegrityError):
        return ConstraintViolation(detail, operation=operation, entity=entity)
    # PoolTimeout is an OperationalError too
    if isinstance(exc, psycopg.OperationalError):
        return ConnectionFailure(detail, operation=operation, entity=entity)
    return PersistenceError(detail, operation=operation, entity=entity)


@asynccontextmanager
async def translate_errors(operation: str, entity: str) -> AsyncIterator[None]:
    """Re-raise psycopg errors raised inside the block as domain errors."""
    try:
        yield
    except psycopg.Error as e:
        error = classify_error(e, operation=operation, entity=entity)
        logger.warning("Database error (%s): %s", error.kind, error)
        raise error from e
