"""Orchestrator for identity reconciliation.

One call runs resolution, merge execution and summary building inside a single
unit of work, committing once at the end. A ``ConflictError`` anywhere in that
sequence rolls the unit back and the whole sequence is re-run from fresh reads,
up to ``max_attempts`` times in total.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from logging import getLogger
from typing import TYPE_CHECKING

from identipy.domain.errors import ConflictError
from identipy.domain.model import Contact, utcnow

from .apply import execute_merge_plan
from .plan import NoMatch
from .resolve import resolve_cluster
from .summary import build_contact_summary

if TYPE_CHECKING:
    from identipy.domain.ports import ContactUnitOfWork

    from .plan import IdentifyRequest
    from .summary import ContactSummary

type UnitOfWorkFactory = Callable[[], ContactUnitOfWork]
type Clock = Callable[[], datetime]

DEFAULT_MAX_ATTEMPTS = 2

log = getLogger(__name__)


@dataclass(slots=True)
class IdentityReconciler:
    """Resolve a submitted (email, phone) pair to its consolidated identity."""

    unit_of_work_factory: UnitOfWorkFactory
    clock: Clock = field(default=utcnow)
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def identify(self, request: IdentifyRequest) -> ContactSummary:
        attempt = 1
        while True:
            try:
                return self._identify_once(request)
            except ConflictError:
                if attempt >= self.max_attempts:
                    log.warning("Conflict persisted after %s attempt(s); giving up", attempt)
                    raise
                log.warning("Conflict while reconciling contact; retrying (attempt %s)", attempt)
                attempt += 1

    def _identify_once(self, request: IdentifyRequest) -> ContactSummary:
        now = self.clock()
        with self.unit_of_work_factory() as uow:
            contacts = uow.repositories.contacts
            resolution = resolve_cluster(contacts, request)

            if isinstance(resolution, NoMatch):
                primary = contacts.insert(
                    Contact.new_primary(email=resolution.email, phone=resolution.phone, at=now)
                )
                summary = build_contact_summary([primary])
                uow.commit()
                log.info("Created primary contact %s", summary.primary_contact_id)
                return summary

            result = execute_merge_plan(contacts, resolution, at=now)
            members = contacts.find_primary_and_secondaries_of(resolution.ultimate_primary_id)
            summary = build_contact_summary(members)
            uow.commit()

        if result.demoted:
            log.info(
                "Merged %s cluster(s) into primary %s",
                result.demoted,
                resolution.ultimate_primary_id,
            )
        if result.created is not None:
            log.info(
                "Linked secondary contact %s to primary %s",
                result.created.id,
                resolution.ultimate_primary_id,
            )
        return summary
