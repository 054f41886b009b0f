"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class LinkPrecedence(StrEnum):
    """Role of a contact inside its identity cluster."""

    PRIMARY = "primary"
    SECONDARY = "secondary"
