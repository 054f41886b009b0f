"""Contact records and their cluster linkage.

A cluster is one primary contact plus every secondary whose ``linked_id``
points at it. Secondaries never point at other secondaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from .enums import LinkPrecedence


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(eq=False, kw_only=True)
class Contact:
    """One observed (email, phone) submission.

    ``id`` stays ``None`` until the store assigns it on insert.
    """

    email: str | None = None
    phone: str | None = None
    linked_id: int | None = None
    precedence: LinkPrecedence = LinkPrecedence.PRIMARY
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    deleted_at: datetime | None = None
    id: int | None = None

    def __post_init__(self) -> None:
        if self.precedence == LinkPrecedence.PRIMARY and self.linked_id is not None:
            raise ValueError("primary contact cannot be linked to another contact")
        if self.precedence == LinkPrecedence.SECONDARY and self.linked_id is None:
            raise ValueError("secondary contact requires linked_id")

    @classmethod
    def new_primary(
        cls,
        *,
        email: str | None,
        phone: str | None,
        at: datetime | None = None,
    ) -> Contact:
        created = at or utcnow()
        return cls(email=email, phone=phone, created_at=created, updated_at=created)

    @classmethod
    def new_secondary(
        cls,
        *,
        linked_id: int,
        email: str | None,
        phone: str | None,
        at: datetime | None = None,
    ) -> Contact:
        created = at or utcnow()
        return cls(
            email=email,
            phone=phone,
            linked_id=linked_id,
            precedence=LinkPrecedence.SECONDARY,
            created_at=created,
            updated_at=created,
        )

    @property
    def is_primary(self) -> bool:
        return self.precedence == LinkPrecedence.PRIMARY

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def cluster_id(self) -> int | None:
        """Id of the primary heading this contact's cluster."""
        return self.id if self.is_primary else self.linked_id

    def mark_deleted(self, *, at: datetime | None = None) -> None:
        deleted = at or utcnow()
        self.deleted_at = deleted
        self.updated_at = deleted


def precedence_key(contact: Contact) -> tuple[datetime, int]:
    """Sort key for merge precedence: oldest first, lowest id on equal timestamps."""

    if contact.id is None:
        raise ValueError("contact has no id yet")
    return contact.created_at, contact.id
