"""Error taxonomy for identity reconciliation.

Only the HTTP boundary maps these to status codes; everything below it raises
them and lets them propagate.
"""

from __future__ import annotations


class IdentipyError(Exception):
    """Base class for reconciliation failures."""


class ValidationError(IdentipyError):
    """Neither email nor phone was supplied."""


class ConflictError(IdentipyError):
    """A concurrent request changed the contact graph under this one."""


class IntegrityViolation(IdentipyError):
    """Stored contacts break the one-primary-per-cluster invariant."""


class StoreUnavailable(IdentipyError):
    """The contact store could not be reached or failed unexpectedly."""
