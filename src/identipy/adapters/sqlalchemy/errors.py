"""Translation of driver errors into the domain error taxonomy."""

from __future__ import annotations

from functools import wraps
from typing import TYPE_CHECKING

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

from identipy.domain.errors import ConflictError, StoreUnavailable

if TYPE_CHECKING:
    from collections.abc import Callable

# serialization_failure, deadlock_detected
RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})

# SQLite reports a writer holding the lock past the busy timeout this way
SQLITE_LOCKED_MESSAGES = ("database is locked", "database table is locked")


def _sqlstate(exc: DBAPIError) -> str | None:
    original = exc.orig
    for attribute in ("sqlstate", "pgcode"):
        value = getattr(original, attribute, None)
        if isinstance(value, str):
            return value
    return None


def _is_lock_timeout(exc: DBAPIError) -> bool:
    if not isinstance(exc, OperationalError):
        return False
    message = str(exc.orig).lower()
    return any(locked in message for locked in SQLITE_LOCKED_MESSAGES)


def translate_store_error(exc: DBAPIError) -> ConflictError | StoreUnavailable:
    """Map a driver error onto ``ConflictError`` or ``StoreUnavailable``."""

    if (
        isinstance(exc, IntegrityError)
        or _sqlstate(exc) in RETRYABLE_SQLSTATES
        or _is_lock_timeout(exc)
    ):
        return ConflictError(f"Concurrent contact update detected: {exc.orig}")
    return StoreUnavailable(f"Contact store failure: {exc.orig}")


def translate_store_errors[**P, R](func: Callable[P, R]) -> Callable[P, R]:
    """Decorator re-raising driver errors as domain errors."""

    @wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return func(*args, **kwargs)
        except DBAPIError as exc:
            raise translate_store_error(exc) from exc

    return wrapper
