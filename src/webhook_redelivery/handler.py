"""
Module: handler.py
Description: Lambda entry point for scheduled reconciliation.

Intended to be triggered by an EventBridge schedule. Settings come
from the function's environment; a failed pass raises so that the
invocation is recorded as failed.
"""

import asyncio
from typing import Any, Dict

from webhook_redelivery.config.settings import load_settings
from webhook_redelivery.reconcile.orchestrator import run_reconciliation
from webhook_redelivery.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for scheduled reconciliation runs.

    Args:
        event: Scheduler event (unused)
        context: Lambda context

    Returns:
        Summary of the completed pass
    """
    try:
        settings = load_settings()
        configure_logging(settings.log_level)
        result = asyncio.run(run_reconciliation(settings))
    except Exception as e:
        logger.error(
            "Reconciliation failed",
            error=str(e),
            error_type=type(e).__name__,
            request_id=getattr(context, "aws_request_id", None)
        )
        raise

    return result.model_dump()
