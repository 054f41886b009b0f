"""In-memory fakes of the contact store for domain-level tests."""

from __future__ import annotations

import copy
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Literal

from identipy.domain.errors import ConflictError
from identipy.domain.model import Contact, LinkPrecedence
from identipy.domain.ports.unit_of_work import ContactRepositories

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from types import TracebackType

T0 = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)


def at(minutes: int) -> datetime:
    """Timestamp ``minutes`` after ``T0``."""
    return T0 + timedelta(minutes=minutes)


def fixed_clock(start: datetime = T0, step: timedelta = timedelta(minutes=1)) -> Iterator[datetime]:
    current = start
    while True:
        yield current
        current += step


class InMemoryContactRepository:
    """Dictionary-backed ``ContactRepository`` with database-like semantics."""

    def __init__(self, contacts: Iterable[Contact] = ()) -> None:
        self.rows: dict[int, Contact] = {}
        self.next_id = 1
        self.locked_reads: list[int] = []
        for contact in contacts:
            self.insert(contact)

    def _live(self) -> list[Contact]:
        live = [row for row in self.rows.values() if row.deleted_at is None]
        return sorted(live, key=lambda row: (row.created_at, row.id or 0))

    def find_by_email_or_phone(self, email: str | None, phone: str | None) -> list[Contact]:
        return [
            row
            for row in self._live()
            if (email is not None and row.email == email)
            or (phone is not None and row.phone == phone)
        ]

    def find_by_id(self, contact_id: int, *, for_update: bool = False) -> Contact | None:
        if for_update:
            self.locked_reads.append(contact_id)
        row = self.rows.get(contact_id)
        if row is None or row.deleted_at is not None:
            return None
        return row

    def find_primary_and_secondaries_of(self, primary_id: int) -> list[Contact]:
        return [row for row in self._live() if primary_id in (row.id, row.linked_id)]

    def insert(self, contact: Contact) -> Contact:
        if contact.id is None:
            contact.id = self.next_id
        self.next_id = max(self.next_id, contact.id) + 1
        self.rows[contact.id] = contact
        return contact

    def update_linkage(
        self,
        contact_id: int,
        *,
        linked_id: int | None,
        precedence: LinkPrecedence,
        updated_at: datetime,
        expected: LinkPrecedence | None = None,
    ) -> None:
        row = self.find_by_id(contact_id)
        if row is None or (expected is not None and row.precedence != expected):
            raise ConflictError(f"contact {contact_id} changed concurrently")
        row.linked_id = linked_id
        row.precedence = precedence
        row.updated_at = updated_at

    def repoint_secondaries(
        self,
        old_primary_id: int,
        new_primary_id: int,
        *,
        updated_at: datetime,
    ) -> None:
        for row in self.rows.values():
            if row.linked_id == old_primary_id and not row.is_primary:
                row.linked_id = new_primary_id
                row.updated_at = updated_at


class InMemoryUnitOfWork:
    """Snapshot-based unit of work: leaving without commit restores the snapshot."""

    def __init__(self, contacts: InMemoryContactRepository) -> None:
        self.contacts = contacts
        self.commits = 0
        self._snapshot: tuple[dict[int, Contact], int] | None = None

    @property
    def repositories(self) -> ContactRepositories:
        return ContactRepositories(contacts=self.contacts)

    def __enter__(self) -> InMemoryUnitOfWork:
        self._take_snapshot()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        self.rollback()
        return False

    def commit(self) -> None:
        self.commits += 1
        self._take_snapshot()

    def rollback(self) -> None:
        if self._snapshot is None:
            return
        rows, next_id = self._snapshot
        self.contacts.rows = copy.deepcopy(rows)
        self.contacts.next_id = next_id

    def _take_snapshot(self) -> None:
        self._snapshot = (copy.deepcopy(self.contacts.rows), self.contacts.next_id)

