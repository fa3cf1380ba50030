"""
Module: delivery.py
Description: Webhook and delivery attempt models.

Mirrors the records returned by the GitHub webhook deliveries API.
Delivery attempts are created by GitHub and never modified here; the
models are frozen accordingly.

Key Components:
- DeliveryAttempt: One attempt to deliver one notification to one webhook
- Webhook: A configured repository webhook
- SUCCESS_STATUS: Status GitHub reports for an acknowledged delivery

Dependencies: pydantic, datetime, typing
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SUCCESS_STATUS = "OK"


class DeliveryAttempt(BaseModel):
    """
    A single webhook delivery attempt.

    All attempts of the same underlying notification, including
    redeliveries, share one guid.

    Attributes:
        id: Delivery id, used to request redelivery of this attempt
        guid: Identity shared by the original attempt and its retries
        delivered_at: When GitHub made the attempt
        redelivery: Whether the attempt was itself a redelivery
        duration: Seconds the receiver took to respond
        status: Outcome description ("OK" on success)
        status_code: HTTP status returned by the receiver
        event: Webhook event name
        action: Event action, when the event has one
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int = Field(..., description="Delivery attempt identifier")
    guid: str = Field(..., min_length=1, description="Logical notification identifier")
    delivered_at: datetime = Field(..., description="Delivery timestamp")
    redelivery: bool = Field(default=False)
    duration: Optional[float] = Field(default=None, ge=0)
    status: str = Field(..., description="Delivery outcome")
    status_code: Optional[int] = Field(default=None)
    event: Optional[str] = Field(default=None)
    action: Optional[str] = Field(default=None)
    installation_id: Optional[int] = Field(default=None)
    repository_id: Optional[int] = Field(default=None)

    @field_validator("delivered_at")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        """Interpret naive timestamps as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def delivered_at_ms(self) -> int:
        """Delivery time in milliseconds since the epoch."""
        return int(self.delivered_at.timestamp() * 1000)

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCESS_STATUS


class Webhook(BaseModel):
    """A repository webhook that GitHub delivers notifications to."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    name: str = "web"
    active: bool = True
    events: List[str] = Field(default_factory=list)
