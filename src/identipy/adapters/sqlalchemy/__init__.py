"""SQLAlchemy adapter package for identipy."""

from __future__ import annotations

from .mappings import contact_table, create_all_tables, mapper_registry, start_mappers
from .repositories import SqlAlchemyContactRepository
from .unit_of_work import (
    SqlAlchemyContactUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
    use_immediate_transactions,
)

__all__ = [
    "SqlAlchemyContactRepository",
    "SqlAlchemyContactUnitOfWork",
    "StartupError",
    "configured_engine",
    "contact_table",
    "create_all_tables",
    "is_started",
    "mapper_registry",
    "shutdown",
    "startup",
    "use_immediate_transactions",
]
