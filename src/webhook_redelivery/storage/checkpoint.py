"""
Module: checkpoint.py
Description: Checkpoint store clients.

Reads and writes the single named checkpoint value. A missing value is
reported as CheckpointAbsent rather than an error. Writing takes the
earlier read result so that a value that existed is updated in place
and a value that did not is created; both backends reject a create of
an existing value and an update of a missing one.

Key Components:
- CheckpointStore: Interface shared by the backends
- GitHubVariableCheckpointStore: Actions variable via the GitHub API
- DynamoDBCheckpointStore: Conditional writes on a DynamoDB table

Dependencies: boto3, botocore, httpx (through GitHubClient)
"""

from datetime import datetime, timezone
from typing import Optional

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from webhook_redelivery.errors import NotFoundError, TransportError
from webhook_redelivery.github.client import GitHubClient
from webhook_redelivery.models.checkpoint import CheckpointAbsent, CheckpointFound, CheckpointRead
from webhook_redelivery.utils.logger import get_logger

logger = get_logger(__name__)


class CheckpointStore:
    """Interface for checkpoint backends."""

    async def read(self, name: str) -> CheckpointRead:
        raise NotImplementedError

    async def write(self, name: str, value: str, previous: CheckpointRead) -> None:
        raise NotImplementedError


class GitHubVariableCheckpointStore(CheckpointStore):
    """Checkpoint kept in a GitHub Actions repository variable."""

    def __init__(self, client: GitHubClient):
        self.client = client

    async def read(self, name: str) -> CheckpointRead:
        """
        Read the checkpoint variable.

        Args:
            name: Variable name

        Returns:
            CheckpointFound with the stored value, or CheckpointAbsent

        Raises:
            TransportError: On any failure other than the variable missing
        """
        try:
            value = await self.client.get_variable(name)
        except NotFoundError:
            logger.info("Checkpoint variable not found", variable_name=name)
            return CheckpointAbsent()

        return CheckpointFound(value=value)

    async def write(self, name: str, value: str, previous: CheckpointRead) -> None:
        """
        Store a new checkpoint value.

        Args:
            name: Variable name
            value: New checkpoint value
            previous: Result of the read at the start of the pass
        """
        if previous.exists:
            await self.client.update_variable(name, value)
        else:
            await self.client.create_variable(name, value)

        logger.info(
            "Checkpoint variable written",
            variable_name=name,
            value=value,
            created=not previous.exists
        )


class DynamoDBCheckpointStore(CheckpointStore):
    """
    Checkpoint kept as an item of a DynamoDB table.

    The table is keyed by the string attribute "name"; the checkpoint is
    stored in "value".

    Example:
        >>> store = DynamoDBCheckpointStore(table_name="webhook-checkpoints")
        >>> previous = await store.read("LAST_REDELIVERY")
    """

    def __init__(self, table_name: str, region_name: Optional[str] = None):
        """
        Initialize DynamoDB checkpoint store.

        Args:
            table_name: Name of the checkpoint table
            region_name: AWS region, defaults to the environment's

        Raises:
            ValueError: If table_name is empty
        """
        if not table_name or not isinstance(table_name, str):
            raise ValueError("table_name must be a non-empty string")

        self.table_name = table_name
        self.dynamodb = boto3.resource("dynamodb", region_name=region_name)
        self.table = self.dynamodb.Table(table_name)

        logger.info(
            "DynamoDB checkpoint store initialized",
            table_name=table_name
        )

    async def read(self, name: str) -> CheckpointRead:
        try:
            response = self.table.get_item(Key={"name": name})
        except ClientError as e:
            raise _transport_error("read", name, e) from e

        if "Item" not in response:
            logger.info("Checkpoint item not found", variable_name=name, table_name=self.table_name)
            return CheckpointAbsent()

        return CheckpointFound(value=str(response["Item"]["value"]))

    async def write(self, name: str, value: str, previous: CheckpointRead) -> None:
        """Create or update the checkpoint item depending on the earlier read."""
        condition = Attr("name").exists() if previous.exists else Attr("name").not_exists()
        item = {
            "name": name,
            "value": value,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }

        try:
            self.table.put_item(Item=item, ConditionExpression=condition)
        except ClientError as e:
            raise _transport_error("write", name, e) from e

        logger.info(
            "Checkpoint item written",
            variable_name=name,
            value=value,
            created=not previous.exists,
            table_name=self.table_name
        )


def _transport_error(operation: str, name: str, error: ClientError) -> TransportError:
    code = error.response["Error"]["Code"]
    message = error.response["Error"]["Message"]
    logger.error(
        "DynamoDB checkpoint operation failed",
        operation=operation,
        variable_name=name,
        error_code=code,
        error_message=message
    )
    return TransportError(f"Checkpoint {operation} of {name} failed: {code}: {message}")
