"""
Package: reconcile
Description: Reconciliation of failed webhook deliveries.

Fetches deliveries newer than the checkpoint, groups them by guid,
decides which notifications still need a redelivery and requests it.
"""

from .decision import RedeliveryDecision, decide
from .executor import RedeliveryExecutor
from .fetcher import PageCut, cut_page, fetch_deliveries_since
from .grouping import group_by_guid
from .orchestrator import ReconciliationResult, Reconciler

__all__ = [
    "PageCut",
    "ReconciliationResult",
    "Reconciler",
    "RedeliveryDecision",
    "RedeliveryExecutor",
    "cut_page",
    "decide",
    "fetch_deliveries_since",
    "group_by_guid",
]
