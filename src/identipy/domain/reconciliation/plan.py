"""Plan types shared by the resolver, the merge executor and the engine.

The resolver only reads; everything it decides is carried in these values so
the executor can apply it without re-deriving anything.
"""

from __future__ import annotations

from dataclasses import dataclass

from identipy.domain.errors import ValidationError


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


@dataclass(frozen=True, slots=True)
class IdentifyRequest:
    """Candidate (email, phone) pair; at least one value must be present."""

    email: str | None = None
    phone: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "email", _blank_to_none(self.email))
        object.__setattr__(self, "phone", _blank_to_none(self.phone))
        if self.email is None and self.phone is None:
            raise ValidationError("Either email or phoneNumber must be provided")


@dataclass(frozen=True, slots=True)
class NoMatch:
    """No stored contact shares the email or the phone."""

    email: str | None
    phone: str | None


@dataclass(frozen=True, slots=True)
class NewSecondary:
    """Values not yet known anywhere in the merged cluster."""

    email: str | None = None
    phone: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class MergePlan:
    """What to do with the clusters touched by a request.

    ``clusters_to_demote`` holds primary ids in ascending precedence order and
    never contains ``ultimate_primary_id``.
    """

    ultimate_primary_id: int
    clusters_to_demote: tuple[int, ...] = ()
    new_secondary: NewSecondary | None = None

    def __post_init__(self) -> None:
        if self.ultimate_primary_id in self.clusters_to_demote:
            raise ValueError("ultimate primary cannot be demoted")

    @property
    def needs_new_secondary(self) -> bool:
        return self.new_secondary is not None

    @property
    def is_noop(self) -> bool:
        return not self.clusters_to_demote and self.new_secondary is None


type Resolution = NoMatch | MergePlan
