"""Run orchestration: build the client, dispatch on run mode, report failure.

Uses trio for all network calls.
"""

import logging
import os
import sys
from typing import assert_never

from rich.console import Console

from .config import ActionConfig, RunMode
from .github_client import GitHubClient
from .label import run_label_mode
from .repo import RepoInfo
from .report import run_report_mode

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"

logger = logging.getLogger(__name__)


def setup_logging(level: str | None = None, log_file: str | None = None) -> logging.Logger:
    """Log to stderr, and to a file if one is given.

    ``RUNNER_DEBUG=1`` (set when a workflow is re-run with debug logging)
    forces DEBUG.
    """
    if level is None:
        level = os.environ.get("PR_STATUS_LOG_LEVEL", "INFO")
    if os.environ.get("RUNNER_DEBUG") == "1":
        level = "DEBUG"
    log_file = log_file or os.environ.get("PR_STATUS_LOG_FILE")

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="a"))

    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, handlers=handlers, force=True)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logging.getLogger(__name__)


def set_failed(message: str) -> None:
    """Mark the workflow step as failed with an error annotation."""
    # Workflow commands are single-line; newlines must be escaped
    escaped = message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
    print(f"::error::{escaped}", flush=True)


async def main(config: ActionConfig, repo: RepoInfo, console: Console | None = None):
    """Run label or report mode against ``repo``."""
    console = console or Console()
    logger.info(f"Starting {config.run_mode.value} mode for {repo.full_name}")

    async with GitHubClient(config.github_token, repo) as client:
        if config.run_mode is RunMode.LABEL:
            result = await run_label_mode(client, config, console)
        elif config.run_mode is RunMode.REPORT:
            result = await run_report_mode(client, config, console)
        else:
            assert_never(config.run_mode)

        logger.info(f"Finished {config.run_mode.value} mode: {client.request_count} API requests")
    return result
