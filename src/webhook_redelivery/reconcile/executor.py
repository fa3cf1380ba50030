"""
Module: executor.py
Description: Issue redelivery requests to GitHub.
"""

from webhook_redelivery.github.client import GitHubClient
from webhook_redelivery.models.delivery import DeliveryAttempt
from webhook_redelivery.utils.logger import get_logger

logger = get_logger(__name__)


class RedeliveryExecutor:
    """
    Requests redelivery of individual delivery attempts.

    Failures are not retried; they propagate and abort the run.
    """

    def __init__(self, client: GitHubClient):
        self.client = client

    async def redeliver(self, hook_id: int, attempt: DeliveryAttempt) -> None:
        """
        Ask GitHub to attempt this delivery again.

        Args:
            hook_id: Webhook the attempt belongs to
            attempt: Attempt whose payload should be resent

        Raises:
            TransportError: If GitHub rejects the request
        """
        logger.info(
            f"Redelivering webhook delivery {attempt.id} for webhook {hook_id}",
            webhook_id=hook_id,
            delivery_id=attempt.id,
            guid=attempt.guid,
            status=attempt.status
        )
        await self.client.redeliver_delivery(hook_id, attempt.id)
