"""Public domain model surface."""

from __future__ import annotations

from identipy.domain.model.contact import Contact, precedence_key, utcnow
from identipy.domain.model.enums import LinkPrecedence

__all__ = [
    "Contact",
    "LinkPrecedence",
    "precedence_key",
    "utcnow",
]
