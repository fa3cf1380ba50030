"""
Module: settings.py
Description: Run configuration using pydantic-settings.

Loads every input from environment variables with validation and
defaults. Inputs accept both the GitHub Actions form (INPUT_<NAME>)
and a plain variable name, and a .env file for local runs.
"""

import re
from typing import Any, Dict, Literal, Optional

from pydantic import AliasChoices, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from webhook_redelivery.errors import ConfigurationError


class Settings(BaseSettings):
    """Reconciliation settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_ignore_empty=True,
        populate_by_name=True,
        extra="ignore"
    )

    # Run inputs. GitHub Actions inputs (INPUT_*) take precedence over plain
    # variables; field names are accepted as keyword arguments.
    token: str = Field(
        ...,
        validation_alias=AliasChoices("INPUT_TOKEN", "TOKEN", "GITHUB_TOKEN"),
        description="GitHub token with webhook and variable access",
        repr=False
    )
    repository: str = Field(
        ...,
        validation_alias=AliasChoices("INPUT_REPOSITORY", "GITHUB_REPOSITORY"),
        description="Target repository as owner/repo"
    )
    webhook_id: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("INPUT_WEBHOOK_ID", "WEBHOOK_ID"),
        description="Single webhook to inspect; all repository webhooks when unset"
    )
    last_redelivery_variable_name: str = Field(
        ...,
        validation_alias=AliasChoices(
            "INPUT_LAST_REDELIVERY_VARIABLE_NAME",
            "LAST_REDELIVERY_VARIABLE_NAME"
        ),
        description="Name of the variable holding the last redelivery checkpoint"
    )

    # GitHub API settings
    github_api_url: str = Field(
        default="https://api.github.com",
        validation_alias=AliasChoices("GITHUB_API_URL"),
        description="Base URL of the GitHub REST API"
    )
    github_api_version: str = Field(default="2022-11-28", description="GitHub REST API version")
    request_timeout: int = Field(
        default=10,
        ge=1,
        le=60,
        description="HTTP timeout in seconds for GitHub API calls"
    )

    # Reconciliation settings
    lookback_hours: int = Field(
        default=24,
        ge=1,
        description="Window examined when no checkpoint has been stored yet"
    )
    page_size: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Deliveries requested per page"
    )

    # Checkpoint storage
    checkpoint_backend: Literal["github", "dynamodb"] = Field(
        default="github",
        description="Where the checkpoint variable is stored"
    )
    checkpoint_table_name: Optional[str] = Field(
        default=None,
        description="DynamoDB table holding checkpoints (dynamodb backend only)"
    )
    aws_region: Optional[str] = Field(default=None, description="AWS region for DynamoDB and CloudWatch")

    # Observability
    log_level: str = Field(default="INFO", description="Logging level")
    metrics_enabled: bool = Field(default=False, description="Publish run metrics to CloudWatch")
    metrics_namespace: str = Field(default="WebhookRedelivery", description="CloudWatch metrics namespace")

    @field_validator("repository")
    @classmethod
    def validate_repository(cls, v: str) -> str:
        """Validate repository is in owner/repo form."""
        if not re.match(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$", v):
            raise ValueError("repository must be in the form owner/repo")
        return v

    @field_validator("webhook_id", mode="before")
    @classmethod
    def blank_webhook_id(cls, v: Any) -> Any:
        """Treat a blank webhook id as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(valid_levels)}")
        return v.upper()

    @model_validator(mode="after")
    def validate_checkpoint_backend(self) -> "Settings":
        """Require a table name when checkpoints live in DynamoDB."""
        if self.checkpoint_backend == "dynamodb" and not self.checkpoint_table_name:
            raise ValueError("checkpoint_table_name is required for the dynamodb backend")
        return self

    @property
    def owner(self) -> str:
        return self.repository.split("/")[0]

    @property
    def repo(self) -> str:
        return self.repository.split("/")[1]


def load_settings(**overrides: Any) -> Settings:
    """
    Load and validate settings, failing fast on missing inputs.

    Args:
        **overrides: Values that take precedence over the environment

    Returns:
        Validated Settings instance

    Raises:
        ConfigurationError: If a required input is missing or invalid
    """
    values: Dict[str, Any] = {
        k: v for k, v in overrides.items() if v is not None or k.startswith("_")
    }
    try:
        return Settings(**values)
    except ValidationError as e:
        problems = []
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"]) or "settings"
            problems.append(f"{location}: {error['msg']}")
        raise ConfigurationError("Invalid configuration: " + "; ".join(problems)) from e
