"""
Module: decision.py
Description: Decide which notifications need a redelivery.

A notification with any successful attempt is resolved. Otherwise its
first attempt in fetch order, which is the most recent one, is the
attempt to redeliver.
"""

from typing import List, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from webhook_redelivery.models.delivery import DeliveryAttempt
from webhook_redelivery.utils.logger import get_logger

logger = get_logger(__name__)


class RedeliveryDecision(BaseModel):
    """
    Outcome for one logical notification.

    Attributes:
        guid: Logical notification identifier
        attempt: Attempt to redeliver, or None when the notification is resolved
    """

    model_config = ConfigDict(frozen=True)

    guid: str
    attempt: Optional[DeliveryAttempt] = None

    @property
    def needs_redelivery(self) -> bool:
        return self.attempt is not None


def decide_group(guid: str, attempts: Sequence[DeliveryAttempt]) -> RedeliveryDecision:
    """Decide a single group; attempts must be non-empty and newest first."""
    if not attempts:
        raise ValueError(f"group {guid} has no attempts")

    if any(attempt.succeeded for attempt in attempts):
        return RedeliveryDecision(guid=guid)
    return RedeliveryDecision(guid=guid, attempt=attempts[0])


def decide(groups: Mapping[str, Sequence[DeliveryAttempt]]) -> List[RedeliveryDecision]:
    """
    Decide every group independently.

    A resolved group is skipped on its own; the remaining groups are
    still evaluated.

    Args:
        groups: Output of group_by_guid()

    Returns:
        One decision per group, in group order
    """
    decisions = []
    for guid, attempts in groups.items():
        decision = decide_group(guid, attempts)
        if not decision.needs_redelivery:
            logger.debug("Notification already delivered, skipping", guid=guid, attempts=len(attempts))
        decisions.append(decision)
    return decisions
