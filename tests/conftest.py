"""
Module: conftest.py
Description: Shared pytest fixtures for webhook redelivery tests.

Provides settings that ignore the environment, delivery factories,
an in-memory GitHub double for orchestration tests and moto-backed
AWS resources for the DynamoDB checkpoint store.
"""

from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import boto3
import pytest
from moto import mock_aws

from webhook_redelivery.config.settings import Settings
from webhook_redelivery.errors import NotFoundError, TransportError
from webhook_redelivery.models.delivery import DeliveryAttempt, Webhook

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

ENV_INPUTS = [
    "INPUT_TOKEN", "TOKEN", "GITHUB_TOKEN",
    "INPUT_REPOSITORY", "GITHUB_REPOSITORY",
    "INPUT_WEBHOOK_ID", "WEBHOOK_ID",
    "INPUT_LAST_REDELIVERY_VARIABLE_NAME", "LAST_REDELIVERY_VARIABLE_NAME",
    "GITHUB_API_URL", "GITHUB_ACTIONS",
    "CHECKPOINT_BACKEND", "CHECKPOINT_TABLE_NAME", "METRICS_ENABLED", "LOG_LEVEL",
]


def millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def at(minutes: float) -> datetime:
    """Moment `minutes` after BASE_TIME."""
    return BASE_TIME + timedelta(minutes=minutes)


def make_delivery(
    delivery_id: int,
    guid: str,
    delivered_at: datetime,
    status: str = "Invalid HTTP Response: 503"
) -> DeliveryAttempt:
    return DeliveryAttempt(
        id=delivery_id,
        guid=guid,
        delivered_at=delivered_at,
        redelivery=False,
        duration=0.31,
        status=status,
        status_code=200 if status == "OK" else 503,
        event="push",
        action=None,
        installation_id=None,
        repository_id=42
    )


def delivery_json(delivery_id: int, guid: str, delivered_at: str, status: str = "OK") -> dict:
    """Delivery as returned by the GitHub API."""
    return {
        "id": delivery_id,
        "guid": guid,
        "delivered_at": delivered_at,
        "redelivery": False,
        "duration": 0.27,
        "status": status,
        "status_code": 200 if status == "OK" else 502,
        "event": "issues",
        "action": "opened",
        "installation_id": None,
        "repository_id": 42,
    }


class FakeGitHubClient:
    """
    In-memory stand-in for GitHubClient.

    Deliveries are given per webhook as a list of pages, each page
    newest first.
    """

    def __init__(
        self,
        webhooks: List[Webhook],
        pages: Optional[Dict[int, List[List[DeliveryAttempt]]]] = None,
        variables: Optional[Dict[str, str]] = None
    ):
        self.webhooks = webhooks
        self.pages = pages or {}
        self.variables = dict(variables or {})
        self.redelivered: List[tuple] = []
        self.created: List[tuple] = []
        self.updated: List[tuple] = []
        self.pages_requested: Dict[int, int] = defaultdict(int)
        self.redelivery_error: Optional[Exception] = None
        self.variable_error: Optional[Exception] = None

    async def get_webhook(self, hook_id: int) -> Webhook:
        for webhook in self.webhooks:
            if webhook.id == hook_id:
                return webhook
        raise NotFoundError(f"GET /hooks/{hook_id} returned 404: Not Found")

    async def list_webhooks(self) -> List[Webhook]:
        return list(self.webhooks)

    async def iter_delivery_pages(self, hook_id: int, per_page: int = 100):
        for page in self.pages.get(hook_id, []):
            self.pages_requested[hook_id] += 1
            yield list(page)

    async def redeliver_delivery(self, hook_id: int, delivery_id: int) -> None:
        if self.redelivery_error is not None:
            raise self.redelivery_error
        self.redelivered.append((hook_id, delivery_id))

    async def get_variable(self, name: str) -> str:
        if self.variable_error is not None:
            raise self.variable_error
        if name not in self.variables:
            raise NotFoundError(f"GET /actions/variables/{name} returned 404: Not Found")
        return self.variables[name]

    async def create_variable(self, name: str, value: str) -> None:
        if name in self.variables:
            raise TransportError("Already exists", status_code=409)
        self.variables[name] = value
        self.created.append((name, value))

    async def update_variable(self, name: str, value: str) -> None:
        if name not in self.variables:
            raise NotFoundError(f"PATCH /actions/variables/{name} returned 404: Not Found")
        self.variables[name] = value
        self.updated.append((name, value))


@pytest.fixture
def clean_env(monkeypatch):
    """Remove run inputs that the host environment may define."""
    for name in ENV_INPUTS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def test_settings(clean_env):
    """
    Provide test configuration settings.

    Disables .env loading for predictable tests.
    """
    return Settings(
        _env_file=None,
        token="ghp_testtoken",
        repository="octo-org/hello-world",
        last_redelivery_variable_name="LAST_REDELIVERY"
    )


@pytest.fixture
def fake_github():
    """GitHub double with two webhooks and no deliveries."""
    return FakeGitHubClient(webhooks=[Webhook(id=1), Webhook(id=2)])


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake AWS credentials so boto3 never reaches a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def mock_checkpoint_table(aws_credentials):
    """
    Create mock DynamoDB checkpoint table.

    The mock stays active for the whole test.
    """
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
        table = dynamodb.create_table(
            TableName="test-checkpoints",
            KeySchema=[{"AttributeName": "name", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "name", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST"
        )
        yield table
