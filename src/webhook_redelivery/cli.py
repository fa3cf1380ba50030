"""
Module: cli.py
Description: Command-line and GitHub Actions entry point.

Runs a single reconciliation pass and exits non-zero when it fails.
Inside GitHub Actions the failure is also reported as an ::error::
workflow command so it shows up on the run summary.

Usage:
    python -m webhook_redelivery
    python -m webhook_redelivery --repository octo/hello --webhook-id 12345
    python -m webhook_redelivery --variable-name LAST_REDELIVERY --log-level DEBUG
"""

import argparse
import asyncio
import os
import sys
from typing import List, Optional

from webhook_redelivery.config.settings import load_settings
from webhook_redelivery.reconcile.orchestrator import run_reconciliation
from webhook_redelivery.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webhook-redelivery",
        description="Redeliver failed GitHub webhook deliveries since the last run"
    )
    parser.add_argument(
        "--repository",
        help="Target repository as owner/repo (default: INPUT_REPOSITORY or GITHUB_REPOSITORY)"
    )
    parser.add_argument(
        "--webhook-id",
        type=int,
        help="Only inspect this webhook (default: every repository webhook)"
    )
    parser.add_argument(
        "--variable-name",
        dest="variable_name",
        help="Variable holding the last redelivery checkpoint"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level"
    )
    return parser


def escape_workflow_data(message: str) -> str:
    """Escape a message for use in a GitHub Actions workflow command."""
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def report_failure(error: BaseException) -> None:
    """Log a failed run and flag it to GitHub Actions when running there."""
    logger.error(
        "Reconciliation failed",
        error=str(error),
        error_type=type(error).__name__
    )
    if os.environ.get("GITHUB_ACTIONS") == "true":
        sys.stdout.write(f"::error::{escape_workflow_data(str(error))}\n")
        sys.stdout.flush()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run one reconciliation pass.

    Args:
        argv: Command-line arguments, defaults to sys.argv[1:]

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(
            repository=args.repository,
            webhook_id=args.webhook_id,
            last_redelivery_variable_name=args.variable_name,
            log_level=args.log_level
        )
        configure_logging(settings.log_level)
        result = asyncio.run(run_reconciliation(settings))
    except Exception as e:
        report_failure(e)
        return 1

    logger.info("Reconciliation summary", **result.model_dump())
    return 0
