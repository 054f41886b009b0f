from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING

import pytest

from identipy.domain.errors import ConflictError, ValidationError
from identipy.domain.model import Contact, LinkPrecedence
from identipy.domain.reconciliation import ContactSummary, IdentifyRequest, IdentityReconciler
from tests.helpers.contacts import InMemoryContactRepository, InMemoryUnitOfWork, at, fixed_clock

if TYPE_CHECKING:
    from datetime import datetime


class ConflictingContactRepository(InMemoryContactRepository):
    """Fails the next ``conflicts`` inserts the way a unique index would."""

    def __init__(self, conflicts: int) -> None:
        super().__init__()
        self.conflicts = conflicts

    def insert(self, contact: Contact) -> Contact:
        if self.conflicts:
            self.conflicts -= 1
            raise ConflictError("duplicate live primary")
        return super().insert(contact)


class RepointConflictRepository(InMemoryContactRepository):
    """Loses the race right after demoting a primary."""

    def repoint_secondaries(
        self,
        old_primary_id: int,
        new_primary_id: int,
        *,
        updated_at: datetime,
    ) -> None:
        raise ConflictError(f"contact {old_primary_id} changed concurrently")


def _reconciler(
    contacts: InMemoryContactRepository, *, max_attempts: int = 2
) -> tuple[IdentityReconciler, list[InMemoryUnitOfWork]]:
    units: list[InMemoryUnitOfWork] = []

    def factory() -> InMemoryUnitOfWork:
        uow = InMemoryUnitOfWork(contacts)
        units.append(uow)
        return uow

    reconciler = IdentityReconciler(
        unit_of_work_factory=factory,
        clock=partial(next, fixed_clock(at(100))),
        max_attempts=max_attempts,
    )
    return reconciler, units


def test_identify_creates_primary_when_nothing_matches() -> None:
    contacts = InMemoryContactRepository()
    reconciler, units = _reconciler(contacts)

    summary = reconciler.identify(IdentifyRequest(email="a@x.com", phone="111"))

    assert summary == ContactSummary(
        primary_contact_id=1,
        emails=("a@x.com",),
        phone_numbers=("111",),
        secondary_contact_ids=(),
    )
    assert contacts.rows[1].is_primary
    assert contacts.rows[1].created_at == at(100)
    assert [uow.commits for uow in units] == [1]


def test_identify_links_new_information_as_secondary() -> None:
    contacts = InMemoryContactRepository()
    reconciler, _ = _reconciler(contacts)
    reconciler.identify(IdentifyRequest(email="a@x.com", phone="111"))

    summary = reconciler.identify(IdentifyRequest(email="a@x.com", phone="222"))

    assert summary.primary_contact_id == 1
    assert summary.emails == ("a@x.com",)
    assert summary.phone_numbers == ("111", "222")
    assert summary.secondary_contact_ids == (2,)
    secondary = contacts.rows[2]
    assert secondary.linked_id == 1
    assert secondary.email is None
    assert secondary.phone == "222"


def test_identify_is_idempotent_for_known_pair() -> None:
    contacts = InMemoryContactRepository()
    reconciler, _ = _reconciler(contacts)
    first = reconciler.identify(IdentifyRequest(email="a@x.com", phone="111"))

    second = reconciler.identify(IdentifyRequest(email="a@x.com", phone="111"))
    third = reconciler.identify(IdentifyRequest(phone="111"))

    assert first == second == third
    assert len(contacts.rows) == 1


def test_identify_merges_clusters_under_oldest_primary() -> None:
    contacts = InMemoryContactRepository(
        [
            Contact.new_primary(email="a@x.com", phone="111", at=at(0)),
            Contact.new_primary(email="b@x.com", phone="222", at=at(1)),
            Contact.new_secondary(linked_id=2, email="c@x.com", phone="222", at=at(2)),
        ]
    )
    reconciler, _ = _reconciler(contacts)

    summary = reconciler.identify(IdentifyRequest(email="a@x.com", phone="222"))

    assert summary == ContactSummary(
        primary_contact_id=1,
        emails=("a@x.com", "b@x.com", "c@x.com"),
        phone_numbers=("111", "222"),
        secondary_contact_ids=(2, 3),
    )
    assert contacts.rows[2].precedence is LinkPrecedence.SECONDARY
    assert contacts.rows[2].updated_at == at(100)
    # the old secondary points straight at the surviving primary
    assert contacts.rows[3].linked_id == 1
    assert len(contacts.rows) == 3


def test_identify_retries_once_after_conflict(caplog: pytest.LogCaptureFixture) -> None:
    contacts = ConflictingContactRepository(conflicts=1)
    reconciler, units = _reconciler(contacts)

    with caplog.at_level(logging.WARNING, logger="identipy.domain.reconciliation.engine"):
        summary = reconciler.identify(IdentifyRequest(email="a@x.com"))

    assert summary.primary_contact_id == 1
    assert [uow.commits for uow in units] == [0, 1]
    assert "retrying" in caplog.text


def test_identify_gives_up_when_conflict_persists() -> None:
    contacts = ConflictingContactRepository(conflicts=5)
    reconciler, units = _reconciler(contacts)

    with pytest.raises(ConflictError):
        reconciler.identify(IdentifyRequest(email="a@x.com"))

    assert len(units) == 2
    assert contacts.rows == {}
    assert contacts.conflicts == 3


def test_identify_rolls_back_partial_merge_on_conflict() -> None:
    contacts = RepointConflictRepository(
        [
            Contact.new_primary(email="a@x.com", phone=None, at=at(0)),
            Contact.new_primary(email=None, phone="222", at=at(1)),
        ]
    )
    reconciler, units = _reconciler(contacts, max_attempts=1)

    with pytest.raises(ConflictError):
        reconciler.identify(IdentifyRequest(email="a@x.com", phone="222"))

    # the demotion ran before the failure and was undone
    assert [uow.commits for uow in units] == [0]
    assert contacts.rows[2].is_primary
    assert contacts.rows[2].linked_id is None


def test_reconciler_requires_positive_attempts() -> None:
    with pytest.raises(ValueError, match="at least 1"):
        IdentityReconciler(
            unit_of_work_factory=lambda: InMemoryUnitOfWork(InMemoryContactRepository()),
            max_attempts=0,
        )


def test_request_without_values_never_reaches_store() -> None:
    with pytest.raises(ValidationError):
        IdentifyRequest(email=" ", phone=None)
