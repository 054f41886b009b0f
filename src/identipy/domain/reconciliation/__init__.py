"""Identity reconciliation core.

Flow for one submitted (email, phone) pair:
1) resolve: find touched clusters and compute a ``MergePlan`` (read only)
2) apply: demote losing primaries, re-parent secondaries, add a secondary
3) summarize: project the merged cluster into a ``ContactSummary``

``IdentityReconciler`` runs all three inside one unit of work.
"""

from __future__ import annotations

from .apply import MergeResult, execute_merge_plan
from .engine import IdentityReconciler
from .plan import IdentifyRequest, MergePlan, NewSecondary, NoMatch, Resolution
from .resolve import resolve_cluster
from .summary import ContactSummary, build_contact_summary

__all__ = [
    "ContactSummary",
    "IdentifyRequest",
    "IdentityReconciler",
    "MergePlan",
    "MergeResult",
    "NewSecondary",
    "NoMatch",
    "Resolution",
    "build_contact_summary",
    "execute_merge_plan",
    "resolve_cluster",
]
