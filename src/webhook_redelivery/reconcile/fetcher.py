"""
Module: fetcher.py
Description: Incremental retrieval of webhook deliveries.

Walks the newest-first paginated delivery feed and stops as soon as a
page reaches the threshold, so the number of pages requested depends on
the size of the window rather than on the depth of the history.
"""

from typing import List, NamedTuple, Sequence

from webhook_redelivery.github.client import GitHubClient
from webhook_redelivery.models.delivery import DeliveryAttempt
from webhook_redelivery.utils.logger import get_logger

logger = get_logger(__name__)


class PageCut(NamedTuple):
    """
    How much of a page lies after the threshold.

    Attributes:
        keep: Number of leading records to keep
        exhausted: True when no older page can contain relevant records
    """

    keep: int
    exhausted: bool


def cut_page(page: Sequence[DeliveryAttempt], threshold_ms: int) -> PageCut:
    """
    Decide which prefix of a newest-first page is newer than threshold_ms.

    The boundary is exclusive: a record delivered exactly at the
    threshold is not kept.

    Args:
        page: Delivery attempts ordered newest first
        threshold_ms: Checkpoint in epoch milliseconds

    Returns:
        PageCut(len(page), False) when the whole page is newer,
        otherwise the kept prefix length with exhausted set
    """
    if not page:
        return PageCut(0, True)

    if page[-1].delivered_at_ms > threshold_ms:
        return PageCut(len(page), False)

    keep = 0
    for attempt in page:
        if attempt.delivered_at_ms <= threshold_ms:
            break
        keep += 1
    return PageCut(keep, True)


async def fetch_deliveries_since(
    client: GitHubClient,
    hook_id: int,
    threshold_ms: int,
    per_page: int = 100
) -> List[DeliveryAttempt]:
    """
    Fetch every delivery of a webhook made strictly after threshold_ms.

    Args:
        client: GitHub client for the repository
        hook_id: Webhook identifier
        threshold_ms: Checkpoint in epoch milliseconds
        per_page: Page size requested from GitHub

    Returns:
        Delivery attempts in feed order (newest first)
    """
    deliveries: List[DeliveryAttempt] = []
    pages = 0

    async for page in client.iter_delivery_pages(hook_id, per_page=per_page):
        pages += 1
        keep, exhausted = cut_page(page, threshold_ms)
        deliveries.extend(page[:keep])
        if exhausted:
            break

    logger.debug(
        "Fetched webhook deliveries",
        webhook_id=hook_id,
        threshold_ms=threshold_ms,
        pages=pages,
        deliveries=len(deliveries)
    )
    return deliveries
