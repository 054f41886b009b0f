"""Cluster resolution.

Responsibilities of this stage:
- find every stored contact sharing the candidate email or phone
- map each match to the primary heading its cluster
- pick the oldest primary and decide which others must be demoted
- decide whether the candidate carries values the merged cluster lacks

Out of scope for this stage:
- any write to the store
- commit/rollback
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from identipy.domain.errors import IntegrityViolation
from identipy.domain.model import precedence_key

from .plan import MergePlan, NewSecondary, NoMatch

if TYPE_CHECKING:
    from collections.abc import Iterable

    from identipy.domain.model import Contact
    from identipy.domain.ports import ContactRepository

    from .plan import IdentifyRequest, Resolution


def resolve_cluster(contacts: ContactRepository, request: IdentifyRequest) -> Resolution:
    """Compute the merge plan for ``request`` against the stored contact graph.

    Matching is exact equality on email or phone. Candidate primaries are read
    back by id (locked where the store supports it) so their ``created_at`` is
    authoritative; precedence is ascending ``created_at`` with ascending ``id``
    breaking ties.
    """

    seed = contacts.find_by_email_or_phone(request.email, request.phone)
    if not seed:
        return NoMatch(email=request.email, phone=request.phone)

    primaries = sorted(
        # ascending id, so concurrent merges lock rows in the same order
        _load_primaries(contacts, sorted(_cluster_ids(seed))),
        key=precedence_key,
    )
    ultimate, *demoted = primaries

    members: list[Contact] = []
    for primary in primaries:
        members.extend(_cluster_members(contacts, primary))

    known_emails = set(_distinct(member.email for member in members))
    known_phones = set(_distinct(member.phone for member in members))
    new_email = request.email if request.email not in known_emails else None
    new_phone = request.phone if request.phone not in known_phones else None

    new_secondary = None
    if new_email is not None or new_phone is not None:
        new_secondary = NewSecondary(email=new_email, phone=new_phone)

    return MergePlan(
        ultimate_primary_id=_require_id(ultimate),
        clusters_to_demote=tuple(_require_id(primary) for primary in demoted),
        new_secondary=new_secondary,
    )


def _cluster_ids(seed: Iterable[Contact]) -> list[int]:
    cluster_ids: list[int] = []
    for contact in seed:
        cluster_id = contact.cluster_id
        if cluster_id is None:
            raise IntegrityViolation(f"contact {contact.id} is secondary without linked_id")
        if cluster_id not in cluster_ids:
            cluster_ids.append(cluster_id)
    return cluster_ids


def _load_primaries(contacts: ContactRepository, cluster_ids: Iterable[int]) -> list[Contact]:
    primaries: list[Contact] = []
    for cluster_id in cluster_ids:
        primary = contacts.find_by_id(cluster_id, for_update=True)
        if primary is None:
            raise IntegrityViolation(f"cluster primary {cluster_id} is missing or deleted")
        if not primary.is_primary:
            raise IntegrityViolation(
                f"contact {cluster_id} is referenced as primary but is {primary.precedence}"
            )
        primaries.append(primary)
    return primaries


def _cluster_members(contacts: ContactRepository, primary: Contact) -> list[Contact]:
    members = contacts.find_primary_and_secondaries_of(_require_id(primary))
    if not any(member.id == primary.id for member in members):
        raise IntegrityViolation(f"cluster {primary.id} lost its primary during resolution")
    return members


def _distinct(values: Iterable[str | None]) -> list[str]:
    seen: list[str] = []
    for value in values:
        if value is not None and value not in seen:
            seen.append(value)
    return seen


def _require_id(contact: Contact) -> int:
    if contact.id is None:
        raise IntegrityViolation("stored contact has no id")
    return contact.id
