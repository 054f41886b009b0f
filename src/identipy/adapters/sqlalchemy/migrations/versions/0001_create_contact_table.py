"""create contact table

Revision ID: 0001
Revises:
Create Date: 2026-10-18 09:00:00

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from identipy.adapters.sqlalchemy.mappings import (
    LIVE_PRIMARY_EMAIL,
    LIVE_PRIMARY_PHONE,
    UTCDateTime,
)

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "contact",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("linked_id", sa.Integer(), nullable=True),
        sa.Column("precedence", sa.String(length=10), nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=False),
        sa.Column("deleted_at", UTCDateTime(), nullable=True),
        sa.ForeignKeyConstraint(
            ["linked_id"],
            ["contact.id"],
            name=op.f("fk_contact_linked_id_contact"),
        ),
        sa.CheckConstraint(
            "precedence IN ('primary', 'secondary')",
            name=op.f("ck_contact_precedence"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_contact")),
    )
    op.create_index("ix_contact_email", "contact", ["email"])
    op.create_index("ix_contact_phone", "contact", ["phone"])
    op.create_index("ix_contact_linked_id", "contact", ["linked_id"])
    op.create_index(
        "uq_contact_primary_email",
        "contact",
        ["email"],
        unique=True,
        sqlite_where=LIVE_PRIMARY_EMAIL,
        postgresql_where=LIVE_PRIMARY_EMAIL,
    )
    op.create_index(
        "uq_contact_primary_phone",
        "contact",
        ["phone"],
        unique=True,
        sqlite_where=LIVE_PRIMARY_PHONE,
        postgresql_where=LIVE_PRIMARY_PHONE,
    )


def downgrade() -> None:
    op.drop_index("uq_contact_primary_phone", table_name="contact")
    op.drop_index("uq_contact_primary_email", table_name="contact")
    op.drop_index("ix_contact_linked_id", table_name="contact")
    op.drop_index("ix_contact_phone", table_name="contact")
    op.drop_index("ix_contact_email", table_name="contact")
    op.drop_table("contact")
