"""Consolidated view of one cluster."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from identipy.domain.errors import IntegrityViolation

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from identipy.domain.model import Contact


@dataclass(frozen=True, slots=True)
class ContactSummary:
    primary_contact_id: int
    emails: tuple[str, ...]
    phone_numbers: tuple[str, ...]
    secondary_contact_ids: tuple[int, ...]


def build_contact_summary(members: Sequence[Contact]) -> ContactSummary:
    """Project a cluster's full membership into its summary.

    ``members`` must be in membership order (oldest first). The primary's own
    email and phone come first in their lists, followed by the remaining values
    in membership order, without duplicates. Anything other than exactly one
    primary with every secondary linked straight to it is an ``IntegrityViolation``.
    """

    live = [member for member in members if not member.is_deleted]
    primaries = [member for member in live if member.is_primary]
    if len(primaries) != 1:
        ids = [member.id for member in primaries]
        raise IntegrityViolation(f"cluster must have exactly one primary, found {ids}")
    primary = primaries[0]
    if primary.id is None:
        raise IntegrityViolation("primary contact has no id")

    secondaries = [member for member in live if not member.is_primary]
    stray = [member.id for member in secondaries if member.linked_id != primary.id]
    if stray:
        raise IntegrityViolation(f"contacts {stray} are not linked to primary {primary.id}")

    ordered = [primary, *secondaries]
    return ContactSummary(
        primary_contact_id=primary.id,
        emails=_distinct(member.email for member in ordered),
        phone_numbers=_distinct(member.phone for member in ordered),
        secondary_contact_ids=tuple(
            member.id for member in secondaries if member.id is not None
        ),
    )


def _distinct(values: Iterable[str | None]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for value in values:
        if value:
            seen.setdefault(value)
    return tuple(seen)
