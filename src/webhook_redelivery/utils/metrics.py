"""
Module: metrics.py
Description: CloudWatch custom metrics publishing.

Publishes per-run reconciliation statistics to CloudWatch. Publishing
failures are logged and never fail the run.

Key Components:
- MetricsClient: CloudWatch metrics client
- put_metric(): Publish individual metrics

Dependencies: boto3, typing, logger
"""

from typing import Dict, Optional

import boto3

from webhook_redelivery.utils.logger import get_logger

logger = get_logger(__name__)


class MetricsClient:
    """CloudWatch metrics client."""

    def __init__(
        self,
        namespace: str = "WebhookRedelivery",
        region_name: Optional[str] = None,
        dimensions: Optional[Dict[str, str]] = None
    ):
        """
        Initialize metrics client.

        Args:
            namespace: CloudWatch metrics namespace
            region_name: AWS region, defaults to the environment's
            dimensions: Dimensions attached to every metric
        """
        self.namespace = namespace
        self.dimensions = dict(dimensions or {})
        self.cloudwatch = boto3.client("cloudwatch", region_name=region_name)

        logger.info(
            "Metrics client initialized",
            namespace=namespace
        )

    def put_metric(
        self,
        metric_name: str,
        value: float,
        unit: str = "Count",
        dimensions: Optional[Dict[str, str]] = None
    ) -> None:
        """
        Publish a metric to CloudWatch.

        Args:
            metric_name: Name of the metric
            value: Metric value
            unit: Metric unit (Count, Seconds, etc.)
            dimensions: Extra dimensions for this metric only
        """
        merged = {**self.dimensions, **(dimensions or {})}
        try:
            metric_data = {
                "MetricName": metric_name,
                "Value": value,
                "Unit": unit
            }

            if merged:
                metric_data["Dimensions"] = [
                    {"Name": k, "Value": v}
                    for k, v in merged.items()
                ]

            self.cloudwatch.put_metric_data(
                Namespace=self.namespace,
                MetricData=[metric_data]
            )

            logger.debug(
                "Metric published to CloudWatch",
                metric_name=metric_name,
                value=value,
                unit=unit,
                dimensions=merged,
                namespace=self.namespace
            )

        except Exception as e:
            # Metrics are best effort
            logger.warning(
                "Failed to publish metric",
                metric_name=metric_name,
                value=value,
                error=str(e),
                namespace=self.namespace
            )
