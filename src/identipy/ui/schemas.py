"""Pydantic models for the /identify HTTP contract."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from identipy.domain.reconciliation import ContactSummary


def _blank_to_none(value: object) -> object:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class IdentifyPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    email: str | None = None
    phone_number: str | None = Field(
        default=None,
        validation_alias=AliasChoices("phoneNumber", "phone", "phonenumber", "phone_number"),
    )

    _normalize = field_validator("email", "phone_number", mode="before")(_blank_to_none)


class ContactPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    primary_contact_id: int = Field(serialization_alias="primaryContactId")
    emails: list[str]
    phone_numbers: list[str] = Field(serialization_alias="phoneNumbers")
    secondary_contact_ids: list[int] = Field(serialization_alias="secondaryContactIds")


class IdentifyResponse(BaseModel):
    contact: ContactPayload

    @classmethod
    def from_summary(cls, summary: ContactSummary) -> IdentifyResponse:
        return cls(
            contact=ContactPayload(
                primary_contact_id=summary.primary_contact_id,
                emails=list(summary.emails),
                phone_numbers=list(summary.phone_numbers),
                secondary_contact_ids=list(summary.secondary_contact_ids),
            )
        )


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
