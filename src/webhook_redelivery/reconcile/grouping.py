"""
Module: grouping.py
Description: Group delivery attempts by logical notification.
"""

from typing import Dict, Iterable, List

from webhook_redelivery.models.delivery import DeliveryAttempt


def group_by_guid(attempts: Iterable[DeliveryAttempt]) -> Dict[str, List[DeliveryAttempt]]:
    """
    Partition attempts by guid, keeping the order they were fetched in.

    Args:
        attempts: Delivery attempts in fetch order

    Returns:
        Mapping of guid to its attempts, in first-seen guid order
    """
    groups: Dict[str, List[DeliveryAttempt]] = {}
    for attempt in attempts:
        groups.setdefault(attempt.guid, []).append(attempt)
    return groups
