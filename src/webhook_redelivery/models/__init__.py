"""
Module: models
Description: Package initialization for Pydantic data models.

This package contains the data models used during reconciliation:
- DeliveryAttempt: One GitHub webhook delivery record
- Webhook: A repository webhook (notification endpoint)
- CheckpointFound / CheckpointAbsent: Outcome of reading the checkpoint
"""

from .checkpoint import CheckpointAbsent, CheckpointFound, CheckpointRead, resolve_threshold
from .delivery import SUCCESS_STATUS, DeliveryAttempt, Webhook

__all__ = [
    "CheckpointAbsent",
    "CheckpointFound",
    "CheckpointRead",
    "DeliveryAttempt",
    "SUCCESS_STATUS",
    "Webhook",
    "resolve_threshold",
]
