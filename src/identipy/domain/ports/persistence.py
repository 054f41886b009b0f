"""Ports for persisting contacts."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from identipy.domain.model import Contact, LinkPrecedence


@runtime_checkable
class ContactRepository(Protocol):
    """Typed read/write primitives over contact records.

    Every read excludes soft-deleted rows. All calls run inside the transaction
    owned by the surrounding unit of work.
    """

    def find_by_email_or_phone(self, email: str | None, phone: str | None) -> list[Contact]:
        """Contacts whose email equals ``email`` or whose phone equals ``phone``."""
        ...

    def find_by_id(self, contact_id: int, *, for_update: bool = False) -> Contact | None: ...

    def find_primary_and_secondaries_of(self, primary_id: int) -> list[Contact]:
        """The primary and its secondaries, ordered by (created_at, id)."""
        ...

    def insert(self, contact: Contact) -> Contact:
        """Persist ``contact`` and return it with its assigned id."""
        ...

    def update_linkage(
        self,
        contact_id: int,
        *,
        linked_id: int | None,
        precedence: LinkPrecedence,
        updated_at: datetime,
        expected: LinkPrecedence | None = None,
    ) -> None:
        """Rewrite one contact's link.

        With ``expected`` set, only a row currently holding that precedence is
        touched; if none matches, ``ConflictError`` is raised.
        """
        ...

    def repoint_secondaries(
        self,
        old_primary_id: int,
        new_primary_id: int,
        *,
        updated_at: datetime,
    ) -> None: ...
