"""SQLAlchemy mapping metadata for the identipy domain model."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    TypeDecorator,
    orm,
    text,
)
from sqlalchemy.orm import configure_mappers

from identipy.domain.model import Contact, LinkPrecedence

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    """Timezone-aware UTC timestamps; naive input is taken to be UTC already."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Live primaries only: two of them sharing a value means two requests raced
# through the no-match path.
LIVE_PRIMARY_EMAIL = text("precedence = 'primary' AND deleted_at IS NULL AND email IS NOT NULL")
LIVE_PRIMARY_PHONE = text("precedence = 'primary' AND deleted_at IS NULL AND phone IS NOT NULL")

contact_table = Table(
    "contact",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=True),
    Column("phone", String(32), nullable=True),
    Column("linked_id", Integer, ForeignKey("contact.id"), nullable=True),
    Column(
        "precedence",
        Enum(
            LinkPrecedence,
            native_enum=False,
            length=10,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    ),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    Column("deleted_at", UTCDateTime(), nullable=True),
    CheckConstraint("precedence IN ('primary', 'secondary')", name="precedence"),
    Index("ix_contact_email", "email"),
    Index("ix_contact_phone", "phone"),
    Index("ix_contact_linked_id", "linked_id"),
    Index(
        "uq_contact_primary_email",
        "email",
        unique=True,
        sqlite_where=LIVE_PRIMARY_EMAIL,
        postgresql_where=LIVE_PRIMARY_EMAIL,
    ),
    Index(
        "uq_contact_primary_phone",
        "phone",
        unique=True,
        sqlite_where=LIVE_PRIMARY_PHONE,
        postgresql_where=LIVE_PRIMARY_PHONE,
    ),
)


@cache
def start_mappers() -> orm.registry:
    """Map ``Contact`` onto the contact table; safe to call repeatedly."""

    log.debug("Mapping Contact onto %s", contact_table.name)

    mapper_registry.map_imperatively(Contact, contact_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create the schema straight from metadata, bypassing Alembic."""

    log.info("Creating contact schema without migrations")
    mapper_registry.metadata.create_all(engine)
