"""
Module: storage
Description: Checkpoint persistence for reconciliation runs.

This package contains checkpoint store implementations:
- GitHubVariableCheckpointStore: GitHub Actions repository variable
- DynamoDBCheckpointStore: DynamoDB item, for runs outside GitHub Actions

Both expose the same async read()/write() interface.
"""

from .checkpoint import CheckpointStore, DynamoDBCheckpointStore, GitHubVariableCheckpointStore

__all__ = [
    "CheckpointStore",
    "DynamoDBCheckpointStore",
    "GitHubVariableCheckpointStore",
]
