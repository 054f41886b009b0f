from __future__ import annotations

import pytest

from identipy.domain.model import Contact, LinkPrecedence, precedence_key
from tests.helpers.contacts import at


def test_new_primary_has_no_link() -> None:
    contact = Contact.new_primary(email="a@x.com", phone=None, at=at(0))

    assert contact.is_primary
    assert contact.linked_id is None
    assert contact.created_at == contact.updated_at == at(0)


def test_secondary_requires_linked_id() -> None:
    with pytest.raises(ValueError, match="requires linked_id"):
        Contact(email="a@x.com", precedence=LinkPrecedence.SECONDARY)


def test_primary_cannot_carry_link() -> None:
    with pytest.raises(ValueError, match="cannot be linked"):
        Contact(email="a@x.com", linked_id=3)


def test_cluster_id_follows_precedence() -> None:
    primary = Contact.new_primary(email="a@x.com", phone=None)
    primary.id = 7
    secondary = Contact.new_secondary(linked_id=7, email=None, phone="111")
    secondary.id = 9

    assert primary.cluster_id == 7
    assert secondary.cluster_id == 7


def test_mark_deleted_sets_deleted_at() -> None:
    contact = Contact.new_primary(email="b@x.com", phone=None, at=at(0))

    contact.mark_deleted(at=at(1))

    assert contact.is_deleted
    assert contact.deleted_at == at(1)


def test_precedence_key_breaks_timestamp_ties_by_id() -> None:
    older_id = Contact.new_primary(email="a@x.com", phone=None, at=at(0))
    older_id.id = 4
    newer_id = Contact.new_primary(email="b@x.com", phone=None, at=at(0))
    newer_id.id = 9
    later = Contact.new_primary(email="c@x.com", phone=None, at=at(-1))
    later.id = 12

    ordered = sorted([newer_id, older_id, later], key=precedence_key)

    assert [contact.id for contact in ordered] == [12, 4, 9]


def test_precedence_key_requires_id() -> None:
    with pytest.raises(ValueError, match="no id"):
        precedence_key(Contact.new_primary(email="a@x.com", phone=None))
