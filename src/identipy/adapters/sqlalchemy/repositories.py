"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import or_, select, update

from identipy.adapters.sqlalchemy.errors import translate_store_errors
from identipy.adapters.sqlalchemy.mappings import contact_table
from identipy.domain.errors import ConflictError
from identipy.domain.model import Contact, LinkPrecedence

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy import ColumnElement, CursorResult, Select
    from sqlalchemy.orm import Session


class SqlAlchemyContactRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    @translate_store_errors
    def find_by_email_or_phone(self, email: str | None, phone: str | None) -> list[Contact]:
        conditions: list[ColumnElement[bool]] = []
        if email is not None:
            conditions.append(contact_table.c.email == email)
        if phone is not None:
            conditions.append(contact_table.c.phone == phone)
        if not conditions:
            return []
        stmt = self._live().where(or_(*conditions))
        return list(self.session.scalars(stmt))

    @translate_store_errors
    def find_by_id(self, contact_id: int, *, for_update: bool = False) -> Contact | None:
        stmt = self._live().where(contact_table.c.id == contact_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.scalars(stmt).one_or_none()

    @translate_store_errors
    def find_primary_and_secondaries_of(self, primary_id: int) -> list[Contact]:
        stmt = self._live().where(
            or_(contact_table.c.id == primary_id, contact_table.c.linked_id == primary_id)
        )
        return list(self.session.scalars(stmt))

    @translate_store_errors
    def insert(self, contact: Contact) -> Contact:
        self.session.add(contact)
        self.session.flush()
        return contact

    @translate_store_errors
    def update_linkage(
        self,
        contact_id: int,
        *,
        linked_id: int | None,
        precedence: LinkPrecedence,
        updated_at: datetime,
        expected: LinkPrecedence | None = None,
    ) -> None:
        stmt = (
            update(contact_table)
            .where(contact_table.c.id == contact_id)
            .where(contact_table.c.deleted_at.is_(None))
            .values(linked_id=linked_id, precedence=precedence, updated_at=updated_at)
        )
        if expected is not None:
            stmt = stmt.where(contact_table.c.precedence == expected)
        result = cast("CursorResult[Any]", self.session.execute(stmt))
        if result.rowcount == 0:
            raise ConflictError(
                f"Contact {contact_id} changed concurrently (expected {expected or 'a live row'})"
            )

    @translate_store_errors
    def repoint_secondaries(
        self,
        old_primary_id: int,
        new_primary_id: int,
        *,
        updated_at: datetime,
    ) -> None:
        stmt = (
            update(contact_table)
            .where(contact_table.c.linked_id == old_primary_id)
            .where(contact_table.c.precedence == LinkPrecedence.SECONDARY)
            .values(linked_id=new_primary_id, updated_at=updated_at)
        )
        self.session.execute(stmt)

    @staticmethod
    def _live() -> Select[tuple[Contact]]:
        return (
            select(Contact)
            .where(contact_table.c.deleted_at.is_(None))
            .order_by(contact_table.c.created_at, contact_table.c.id)
            .execution_options(populate_existing=True)
        )


if TYPE_CHECKING:
    from identipy.domain.ports.persistence import ContactRepository

    _session_stub = cast("Session", object())
    _repo_check: ContactRepository = SqlAlchemyContactRepository(_session_stub)
