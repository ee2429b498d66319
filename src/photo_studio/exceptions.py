"""Persistence errors shared by the repositories."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import exc as sa_exc

__all__ = [
    "RepositoryError",
    "NotFoundError",
    "IntegrityConstraintViolation",
    "DatabaseOperationError",
    "handle_sqlalchemy_errors",
]


class RepositoryError(Exception):
    """Base class for persistence layer failures."""


class NotFoundError(RepositoryError):
    """Raised when a job or account row could not be located."""


class IntegrityConstraintViolation(RepositoryError):
    """Raised when a database constraint is violated."""


class DatabaseOperationError(RepositoryError):
    """Raised for unexpected driver errors."""


@contextmanager
def handle_sqlalchemy_errors(*, entity: str | None = None) -> Iterator[None]:
    """Translate SQLAlchemy errors raised inside the block into repository errors."""
    prefix = f"{entity}: " if entity else ""
    try:
        yield
    except sa_exc.IntegrityError as exc:
        raise IntegrityConstraintViolation(f"{prefix}integrity constraint violated") from exc
    except sa_exc.DBAPIError as exc:
        raise DatabaseOperationError(f"{prefix}database operation failed") from exc
