"""
Module: orchestrator.py
Description: One reconciliation pass over a repository's webhooks.

Loads the checkpoint, processes every selected webhook in turn and
writes the new checkpoint only after all of them completed. Any error
aborts the pass before the checkpoint is written, so the next run
examines the same window again.

Key Components:
- Reconciler: Runs a pass against injected collaborators
- ReconciliationResult: Summary of a completed pass
- run_reconciliation(): Builds collaborators from Settings and runs a pass

Dependencies: pydantic, httpx (GitHubClient), boto3 (optional backends)
"""

import time
from datetime import timedelta
from typing import Callable, List, Optional

from botocore.exceptions import BotoCoreError
from pydantic import BaseModel, Field

from webhook_redelivery.config.settings import Settings
from webhook_redelivery.github.client import GitHubClient
from webhook_redelivery.models.checkpoint import resolve_threshold
from webhook_redelivery.models.delivery import Webhook
from webhook_redelivery.reconcile.decision import decide
from webhook_redelivery.reconcile.executor import RedeliveryExecutor
from webhook_redelivery.reconcile.fetcher import fetch_deliveries_since
from webhook_redelivery.reconcile.grouping import group_by_guid
from webhook_redelivery.storage.checkpoint import (
    CheckpointStore,
    DynamoDBCheckpointStore,
    GitHubVariableCheckpointStore,
)
from webhook_redelivery.utils.logger import get_logger
from webhook_redelivery.utils.metrics import MetricsClient

logger = get_logger(__name__)


def _epoch_millis() -> int:
    return int(time.time() * 1000)


class RedeliveredDelivery(BaseModel):
    """A redelivery requested during the pass."""

    webhook_id: int
    delivery_id: int
    guid: str


class ReconciliationResult(BaseModel):
    """
    Summary of a completed reconciliation pass.

    Attributes:
        threshold_ms: Deliveries at or before this time were not examined
        checkpoint_ms: Checkpoint written at the end of the pass
        webhooks_processed: Number of webhooks inspected
        deliveries_examined: Deliveries newer than the threshold
        redelivered: Redeliveries requested, in request order
    """

    threshold_ms: int
    checkpoint_ms: int
    webhooks_processed: int = 0
    deliveries_examined: int = 0
    redelivered: List[RedeliveredDelivery] = Field(default_factory=list)


class Reconciler:
    """
    Runs reconciliation passes.

    Example:
        >>> reconciler = Reconciler(client, GitHubVariableCheckpointStore(client), "LAST_REDELIVERY")
        >>> result = await reconciler.run()
    """

    def __init__(
        self,
        client: GitHubClient,
        store: CheckpointStore,
        variable_name: str,
        webhook_id: Optional[int] = None,
        lookback: timedelta = timedelta(hours=24),
        per_page: int = 100,
        metrics: Optional[MetricsClient] = None,
        clock: Callable[[], int] = _epoch_millis
    ):
        """
        Initialize the reconciler.

        Args:
            client: GitHub client for the target repository
            store: Checkpoint store
            variable_name: Name of the checkpoint value
            webhook_id: Only inspect this webhook; all webhooks when None
            lookback: Window examined when no checkpoint exists
            per_page: Deliveries requested per page
            metrics: Optional metrics client for run statistics
            clock: Returns the current time in epoch milliseconds
        """
        if not variable_name:
            raise ValueError("variable_name must be a non-empty string")

        self.client = client
        self.store = store
        self.variable_name = variable_name
        self.webhook_id = webhook_id
        self.lookback = lookback
        self.per_page = per_page
        self.metrics = metrics
        self.clock = clock
        self.executor = RedeliveryExecutor(client)

    async def _select_webhooks(self) -> List[Webhook]:
        if self.webhook_id is not None:
            return [await self.client.get_webhook(self.webhook_id)]
        return await self.client.list_webhooks()

    async def run(self) -> ReconciliationResult:
        """
        Run one reconciliation pass.

        Returns:
            Summary of the pass

        Raises:
            TransportError: If any remote call fails; no checkpoint is written
        """
        started_ms = self.clock()

        previous = await self.store.read(self.variable_name)
        threshold_ms = resolve_threshold(previous, started_ms, self.lookback)

        logger.debug(
            "Loaded checkpoint",
            variable_name=self.variable_name,
            stored=getattr(previous, "value", None),
            threshold_ms=threshold_ms
        )

        result = ReconciliationResult(threshold_ms=threshold_ms, checkpoint_ms=started_ms)

        for webhook in await self._select_webhooks():
            deliveries = await fetch_deliveries_since(
                self.client,
                webhook.id,
                threshold_ms,
                per_page=self.per_page
            )
            result.webhooks_processed += 1
            result.deliveries_examined += len(deliveries)

            for decision in decide(group_by_guid(deliveries)):
                if not decision.needs_redelivery:
                    continue
                await self.executor.redeliver(webhook.id, decision.attempt)
                result.redelivered.append(RedeliveredDelivery(
                    webhook_id=webhook.id,
                    delivery_id=decision.attempt.id,
                    guid=decision.guid
                ))

        await self.store.write(self.variable_name, str(started_ms), previous)

        logger.info(
            "Reconciliation completed",
            webhooks_processed=result.webhooks_processed,
            deliveries_examined=result.deliveries_examined,
            redeliveries=len(result.redelivered),
            checkpoint_ms=started_ms
        )

        if self.metrics is not None:
            self.metrics.put_metric("DeliveriesExamined", result.deliveries_examined)
            self.metrics.put_metric("RedeliveriesRequested", len(result.redelivered))

        return result


def build_store(settings: Settings, client: GitHubClient) -> CheckpointStore:
    """Create the checkpoint store selected by settings."""
    if settings.checkpoint_backend == "dynamodb":
        return DynamoDBCheckpointStore(settings.checkpoint_table_name, region_name=settings.aws_region)
    return GitHubVariableCheckpointStore(client)


def build_metrics(settings: Settings) -> Optional[MetricsClient]:
    """
    Create the metrics client when metrics are enabled.

    A client that cannot be created, for example because no AWS region
    is configured, disables metrics for the run instead of failing it.
    """
    if not settings.metrics_enabled:
        return None

    try:
        return MetricsClient(
            namespace=settings.metrics_namespace,
            region_name=settings.aws_region,
            dimensions={"Repository": settings.repository}
        )
    except BotoCoreError as e:
        logger.warning(
            "Metrics disabled, CloudWatch client unavailable",
            error=str(e),
            error_type=type(e).__name__
        )
        return None


async def run_reconciliation(settings: Settings) -> ReconciliationResult:
    """
    Run one pass with collaborators built from settings.

    Args:
        settings: Validated run settings

    Returns:
        Summary of the pass
    """
    logger.debug(
        "Resolved inputs",
        owner=settings.owner,
        repo=settings.repo,
        webhook_id=settings.webhook_id,
        variable_name=settings.last_redelivery_variable_name
    )

    metrics = build_metrics(settings)

    async with GitHubClient(
        settings.token,
        settings.owner,
        settings.repo,
        base_url=settings.github_api_url,
        api_version=settings.github_api_version,
        timeout_seconds=settings.request_timeout
    ) as client:
        reconciler = Reconciler(
            client,
            build_store(settings, client),
            settings.last_redelivery_variable_name,
            webhook_id=settings.webhook_id,
            lookback=timedelta(hours=settings.lookback_hours),
            per_page=settings.page_size,
            metrics=metrics
        )
        return await reconciler.run()
