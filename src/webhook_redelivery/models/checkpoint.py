"""
Module: checkpoint.py
Description: Checkpoint read outcome and threshold resolution.

The checkpoint is a millisecond epoch timestamp stored as a decimal
string. Reading it yields either CheckpointFound or CheckpointAbsent;
the same value is handed back when writing, which selects between
creating and updating the stored variable.
"""

from datetime import timedelta
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

from webhook_redelivery.utils.logger import get_logger

logger = get_logger(__name__)


class CheckpointFound(BaseModel):
    """The checkpoint variable exists and holds value."""

    model_config = ConfigDict(frozen=True)

    value: str

    @property
    def exists(self) -> bool:
        return True

    def as_millis(self) -> Optional[int]:
        """Parse the stored value, returning None when it is not a positive integer."""
        try:
            millis = int(self.value.strip())
        except ValueError:
            return None
        return millis if millis > 0 else None


class CheckpointAbsent(BaseModel):
    """No checkpoint has been stored yet."""

    model_config = ConfigDict(frozen=True)

    @property
    def exists(self) -> bool:
        return False


CheckpointRead = Union[CheckpointFound, CheckpointAbsent]


def resolve_threshold(read: CheckpointRead, now_ms: int, lookback: timedelta) -> int:
    """
    Compute the threshold below which deliveries are already reconciled.

    Args:
        read: Result of reading the checkpoint
        now_ms: Start of the current pass in epoch milliseconds
        lookback: Window to examine when there is no usable checkpoint

    Returns:
        Threshold timestamp in epoch milliseconds
    """
    default = now_ms - int(lookback.total_seconds() * 1000)

    if isinstance(read, CheckpointAbsent):
        return default

    millis = read.as_millis()
    if millis is None:
        logger.warning(
            "Stored checkpoint is not a timestamp, using default lookback",
            value=read.value,
            lookback_seconds=lookback.total_seconds()
        )
        return default

    return millis
