"""Application error taxonomy.

Every failure that crosses a component boundary is expressed as an AppError
with a type, so callers can decide whether to reply to the user, degrade the
notification, or surface a 5xx. Storage failures have their own hierarchy in
fear_greed_bot.db.errors and are folded in by to_app_error().
"""
from enum import Enum

from fear_greed_bot.db.errors import StorageError


class ErrorType(str, Enum):
    NETWORK = "NETWORK_ERROR"
    VALIDATION = "VALIDATION_ERROR"
    STORAGE = "STORAGE_ERROR"
    API = "API_ERROR"
    TELEGRAM = "TELEGRAM_ERROR"
    UNKNOWN = "UNKNOWN_ERROR"


class AppError(Exception):
    """Typed application error carrying an optional cause and HTTP status."""

    def __init__(
        self,
        error_type: ErrorType,
        message: str,
        cause: BaseException | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.type = error_type
        self.message = message
        self.cause = cause
        self.status_code = status_code

    def __repr__(self) -> str:
        return f"AppError({self.type.value}, {self.message!r})"


def network_error(message: str, cause: BaseException | None = None) -> AppError:
    return AppError(ErrorType.NETWORK, message, cause, 503)


def validation_error(message: str) -> AppError:
    return AppError(ErrorType.VALIDATION, message, None, 400)


def api_error(
    message: str, status_code: int = 500, cause: BaseException | None = None
) -> AppError:
    return AppError(ErrorType.API, message, cause, status_code)


def to_app_error(exc: BaseException) -> AppError:
    """Wrap any exception into an AppError, keeping existing AppErrors as-is."""
    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, StorageError):
        return AppError(ErrorType.STORAGE, str(exc), exc, 500)
    return AppError(ErrorType.UNKNOWN, str(exc) or type(exc).__name__, exc, 500)
