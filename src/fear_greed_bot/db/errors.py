"""Typed storage errors wrapping SQLAlchemy engine failures.

Callers never see raw engine exceptions: every repository call wraps them into
StorageError (or a subclass) carrying the failed operation name and, when the
engine message names one, the violated constraint kind.
"""
import logging
from enum import Enum

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


class ConstraintKind(str, Enum):
    UNIQUE = "UNIQUE"
    FOREIGN_KEY = "FOREIGN_KEY"
    CHECK = "CHECK"
    UNKNOWN = "UNKNOWN"


class StorageError(Exception):
    """A persistence call failed."""

    def __init__(self, operation: str, original: BaseException, message: str | None = None) -> None:
        super().__init__(message or f"Storage operation '{operation}' failed: {original}")
        self.operation = operation
        self.original = original


class StorageConstraintError(StorageError):
    """A write violated a UNIQUE, FOREIGN KEY or CHECK constraint."""

    def __init__(self, operation: str, original: BaseException, constraint: ConstraintKind) -> None:
        super().__init__(
            operation,
            original,
            f"Storage operation '{operation}' violated {constraint.value} constraint: {original}",
        )
        self.constraint = constraint


class StorageTransactionError(StorageError):
    """Committing or rolling back a transaction failed."""


def classify_constraint(exc: BaseException) -> ConstraintKind | None:
    """Detect the constraint kind from the engine error text."""
    text = str(exc).lower()
    if not isinstance(exc, IntegrityError) and "constraint" not in text:
        return None
    if "unique" in text:
        return ConstraintKind.UNIQUE
    if "foreign key" in text:
        return ConstraintKind.FOREIGN_KEY
    if "check" in text:
        return ConstraintKind.CHECK
    if isinstance(exc, IntegrityError):
        return ConstraintKind.UNKNOWN
    return None


def wrap_storage_error(
    operation: str, exc: SQLAlchemyError, *, during_commit: bool = False
) -> StorageError:
    """Map an engine error to the matching StorageError subclass."""
    constraint = classify_constraint(exc)
    if constraint is not None:
        return StorageConstraintError(operation, exc, constraint)
    if during_commit:
        return StorageTransactionError(operation, exc)
    return StorageError(operation, exc)


def log_storage_error(error: StorageError) -> StorageError:
    """Log a wrapped error with full context and return it for raising."""
    constraint = getattr(error, "constraint", None)
    logger.error(
        "%s in %s (constraint=%s): %s",
        type(error).__name__,
        error.operation,
        constraint.value if constraint else None,
        error.original,
        exc_info=(type(error.original), error.original, error.original.__traceback__),
    )
    return error
