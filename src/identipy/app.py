"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from identipy.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyContactUnitOfWork,
    is_started,
    startup,
)
from identipy.config import get_identity_config
from identipy.domain.reconciliation import IdentifyRequest, IdentityReconciler

if TYPE_CHECKING:
    from identipy.domain.reconciliation import ContactSummary
    from identipy.domain.reconciliation.engine import UnitOfWorkFactory


log = getLogger(__name__)


def build_reconciler(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> IdentityReconciler:
    """Wire the reconciler to the configured store."""

    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemyContactUnitOfWork
    config = get_identity_config()
    return IdentityReconciler(
        unit_of_work_factory=unit_of_work_factory,
        max_attempts=config.conflict_attempts,
    )


def identify_contact(
    *,
    email: str | None = None,
    phone: str | None = None,
    reconciler: IdentityReconciler | None = None,
) -> ContactSummary:
    """Reconcile one (email, phone) submission and return the consolidated contact."""

    request = IdentifyRequest(email=email, phone=phone)
    effective = reconciler or build_reconciler()
    log.debug("Identifying contact: email=%s, phone=%s", request.email, request.phone)
    return effective.identify(request)
