"""Merge execution.

Applies a ``MergePlan`` through the contact repository. Transaction control
belongs to the caller's unit of work: a failure here leaves the plan half
written in the session, and the unit of work rolls it back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from identipy.domain.model import Contact, LinkPrecedence, utcnow

if TYPE_CHECKING:
    from datetime import datetime

    from identipy.domain.ports import ContactRepository

    from .plan import MergePlan


@dataclass(slots=True)
class MergeResult:
    """Summary of the writes performed for one plan."""

    demoted: int = 0
    created: Contact | None = None


def execute_merge_plan(
    contacts: ContactRepository,
    plan: MergePlan,
    *,
    at: datetime | None = None,
) -> MergeResult:
    """Demote losing primaries, re-parent their secondaries, add the new secondary."""

    now = at or utcnow()
    result = MergeResult()
    for demoted_id in plan.clusters_to_demote:
        contacts.update_linkage(
            demoted_id,
            linked_id=plan.ultimate_primary_id,
            precedence=LinkPrecedence.SECONDARY,
            updated_at=now,
            expected=LinkPrecedence.PRIMARY,
        )
        # keep links one level deep
        contacts.repoint_secondaries(demoted_id, plan.ultimate_primary_id, updated_at=now)
        result.demoted += 1

    if plan.new_secondary is not None:
        result.created = contacts.insert(
            Contact.new_secondary(
                linked_id=plan.ultimate_primary_id,
                email=plan.new_secondary.email,
                phone=plan.new_secondary.phone,
                at=now,
            )
        )
    return result
