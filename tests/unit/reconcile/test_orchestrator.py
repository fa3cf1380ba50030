"""
Module: test_orchestrator.py
Description: Unit tests for reconciliation passes.

Runs the Reconciler against the in-memory GitHub double, covering the
checkpoint protocol, webhook selection, idempotence and aborts.
"""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import NoRegionError

from conftest import FakeGitHubClient, at, make_delivery, millis
from webhook_redelivery.errors import NotFoundError, TransportError
from webhook_redelivery.models.delivery import Webhook
from webhook_redelivery.reconcile.orchestrator import Reconciler, build_metrics
from webhook_redelivery.storage.checkpoint import GitHubVariableCheckpointStore

VARIABLE = "LAST_REDELIVERY"


class Clock:
    """Clock returning queued epoch millisecond values."""

    def __init__(self, *values):
        self.values = list(values)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.values.pop(0)


def _reconciler(client, clock, **kwargs):
    return Reconciler(
        client,
        GitHubVariableCheckpointStore(client),
        VARIABLE,
        clock=clock,
        **kwargs
    )


class TestReconciler:
    """Test cases for Reconciler.run()."""

    @pytest.mark.asyncio
    async def test_resolved_notification_is_not_redelivered(self):
        pages = {1: [[
            make_delivery(2, "a", at(20), status="OK"),
            make_delivery(1, "a", at(10), status="Failed"),
        ]]}
        client = FakeGitHubClient([Webhook(id=1)], pages=pages, variables={VARIABLE: str(millis(at(0)))})

        result = await _reconciler(client, Clock(millis(at(60)))).run()

        assert client.redelivered == []
        assert result.redelivered == []
        assert result.deliveries_examined == 2

    @pytest.mark.asyncio
    async def test_failed_notification_is_redelivered_once(self):
        pages = {1: [[make_delivery(3, "b", at(20), status="Failed")]]}
        client = FakeGitHubClient([Webhook(id=1)], pages=pages, variables={VARIABLE: str(millis(at(0)))})

        result = await _reconciler(client, Clock(millis(at(60)))).run()

        assert client.redelivered == [(1, 3)]
        assert [(r.webhook_id, r.delivery_id, r.guid) for r in result.redelivered] == [(1, 3, "b")]

    @pytest.mark.asyncio
    async def test_newest_attempt_is_redelivered(self):
        pages = {1: [[
            make_delivery(12, "c", at(30), status="Failed"),
            make_delivery(11, "c", at(20), status="Failed"),
        ]]}
        client = FakeGitHubClient([Webhook(id=1)], pages=pages, variables={VARIABLE: str(millis(at(0)))})

        await _reconciler(client, Clock(millis(at(60)))).run()

        assert client.redelivered == [(1, 12)]

    @pytest.mark.asyncio
    async def test_missing_checkpoint_is_created_with_default_window(self):
        now = at(24 * 60 + 30)
        pages = {1: [[
            make_delivery(3, "recent", at(60), status="Failed"),
            make_delivery(2, "edge", at(30), status="Failed"),
            make_delivery(1, "old", at(0), status="Failed"),
        ]]}
        client = FakeGitHubClient([Webhook(id=1)], pages=pages)
        clock = Clock(millis(now))

        result = await _reconciler(client, clock).run()

        assert result.threshold_ms == millis(now - timedelta(hours=24))
        assert client.redelivered == [(1, 3)]
        assert client.created == [(VARIABLE, str(millis(now)))]
        assert client.updated == []
        assert clock.calls == 1

    @pytest.mark.asyncio
    async def test_existing_checkpoint_is_updated(self):
        client = FakeGitHubClient([Webhook(id=1)], variables={VARIABLE: str(millis(at(0)))})

        result = await _reconciler(client, Clock(millis(at(5)))).run()

        assert client.updated == [(VARIABLE, str(millis(at(5))))]
        assert client.created == []
        assert result.checkpoint_ms >= result.threshold_ms

    @pytest.mark.asyncio
    async def test_unparsable_checkpoint_uses_default_window_and_updates(self):
        now = at(24 * 60 + 30)
        pages = {1: [[make_delivery(3, "recent", at(60), status="Failed")]]}
        client = FakeGitHubClient([Webhook(id=1)], pages=pages, variables={VARIABLE: "not-a-number"})

        result = await _reconciler(client, Clock(millis(now))).run()

        assert result.threshold_ms == millis(now - timedelta(hours=24))
        assert client.updated == [(VARIABLE, str(millis(now)))]

    @pytest.mark.asyncio
    async def test_second_run_without_new_attempts_redelivers_nothing(self):
        pages = {1: [[make_delivery(3, "b", at(20), status="Failed")]]}
        client = FakeGitHubClient([Webhook(id=1)], pages=pages, variables={VARIABLE: str(millis(at(0)))})

        await _reconciler(client, Clock(millis(at(60)))).run()
        second = await _reconciler(client, Clock(millis(at(61)))).run()

        assert client.redelivered == [(1, 3)]
        assert second.redelivered == []
        assert second.threshold_ms == millis(at(60))

    @pytest.mark.asyncio
    async def test_processes_every_webhook_when_none_selected(self):
        pages = {
            1: [[make_delivery(10, "x", at(20), status="Failed")]],
            2: [[make_delivery(20, "y", at(20), status="Failed")]],
        }
        client = FakeGitHubClient([Webhook(id=1), Webhook(id=2)], pages=pages, variables={VARIABLE: "1"})

        result = await _reconciler(client, Clock(millis(at(60)))).run()

        assert client.redelivered == [(1, 10), (2, 20)]
        assert result.webhooks_processed == 2

    @pytest.mark.asyncio
    async def test_processes_only_selected_webhook(self):
        pages = {
            1: [[make_delivery(10, "x", at(20), status="Failed")]],
            2: [[make_delivery(20, "y", at(20), status="Failed")]],
        }
        client = FakeGitHubClient([Webhook(id=1), Webhook(id=2)], pages=pages, variables={VARIABLE: "1"})

        result = await _reconciler(client, Clock(millis(at(60))), webhook_id=2).run()

        assert client.redelivered == [(2, 20)]
        assert result.webhooks_processed == 1

    @pytest.mark.asyncio
    async def test_unknown_webhook_aborts_without_checkpoint(self):
        client = FakeGitHubClient([Webhook(id=1)], variables={VARIABLE: "1"})

        with pytest.raises(NotFoundError):
            await _reconciler(client, Clock(millis(at(60))), webhook_id=99).run()

        assert client.variables[VARIABLE] == "1"

    @pytest.mark.asyncio
    async def test_checkpoint_read_failure_aborts_before_any_redelivery(self):
        pages = {1: [[make_delivery(3, "b", at(20), status="Failed")]]}
        client = FakeGitHubClient([Webhook(id=1)], pages=pages)
        client.variable_error = TransportError("Bad credentials", status_code=401)

        with pytest.raises(TransportError, match="Bad credentials"):
            await _reconciler(client, Clock(millis(at(60)))).run()

        assert client.redelivered == []
        assert client.created == []
        assert client.updated == []

    @pytest.mark.asyncio
    async def test_redelivery_failure_leaves_checkpoint_untouched(self):
        pages = {
            1: [[make_delivery(10, "x", at(20), status="Failed")]],
            2: [[make_delivery(20, "y", at(20), status="Failed")]],
        }
        client = FakeGitHubClient([Webhook(id=1), Webhook(id=2)], pages=pages, variables={VARIABLE: "1"})
        client.redelivery_error = TransportError("Validation Failed", status_code=422)

        with pytest.raises(TransportError):
            await _reconciler(client, Clock(millis(at(60)))).run()

        assert client.variables[VARIABLE] == "1"
        assert client.updated == []

    @pytest.mark.asyncio
    async def test_publishes_metrics_after_success(self):
        pages = {1: [[make_delivery(3, "b", at(20), status="Failed")]]}
        client = FakeGitHubClient([Webhook(id=1)], pages=pages, variables={VARIABLE: "1"})
        metrics = MagicMock()

        await _reconciler(client, Clock(millis(at(60))), metrics=metrics).run()

        metrics.put_metric.assert_any_call("DeliveriesExamined", 1)
        metrics.put_metric.assert_any_call("RedeliveriesRequested", 1)

    def test_requires_variable_name(self, fake_github):
        with pytest.raises(ValueError, match="variable_name"):
            Reconciler(fake_github, GitHubVariableCheckpointStore(fake_github), "")


class TestBuildMetrics:
    """Test cases for build_metrics()."""

    def test_disabled_by_default(self, test_settings):
        assert build_metrics(test_settings) is None

    def test_missing_region_disables_metrics(self, test_settings):
        settings = test_settings.model_copy(update={"metrics_enabled": True})

        with patch(
            "webhook_redelivery.reconcile.orchestrator.MetricsClient",
            side_effect=NoRegionError()
        ) as mock_metrics:
            assert build_metrics(settings) is None

        mock_metrics.assert_called_once()

    def test_enabled_metrics_carry_repository_dimension(self, test_settings):
        settings = test_settings.model_copy(update={"metrics_enabled": True, "aws_region": "us-east-1"})

        with patch("webhook_redelivery.reconcile.orchestrator.MetricsClient") as mock_metrics:
            assert build_metrics(settings) is mock_metrics.return_value

        mock_metrics.assert_called_once_with(
            namespace="WebhookRedelivery",
            region_name="us-east-1",
            dimensions={"Repository": "octo-org/hello-world"}
        )
