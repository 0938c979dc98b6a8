"""Main CLI entry point for pr-status."""

import argparse
import logging
import sys
from pathlib import Path

import trio

from ..config import RunMode, load_config
from ..main import main as run_main, set_failed, setup_logging
from ..repo import get_repo

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None):
    """Main CLI entry point for pr-status.

    Inside GitHub Actions every setting comes from the step's ``with:``
    inputs; the flags here override them for local runs.
    """
    parser = argparse.ArgumentParser(
        prog="pr-status",
        description="Label pull requests by review status, or report them to Slack",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="YAML file with input defaults (default: pr-status.yaml if present)",
    )
    parser.add_argument(
        "--run-mode",
        "-m",
        choices=[mode.value for mode in RunMode],
        default=None,
        help="Override the run-mode input",
    )
    parser.add_argument("--pull-number", "-p", type=int, default=None, help="Override the pull-number input")
    parser.add_argument(
        "--required-approvals",
        "-a",
        type=int,
        default=None,
        help="Override the required-approvals input",
    )
    parser.add_argument("--stale-days", type=int, default=None, help="Override the stale-days input")
    parser.add_argument(
        "--concurrency", type=int, default=None, help="Override the concurrency input (report mode)"
    )
    parser.add_argument("--log-file", type=str, default=None, help="Also write logs to this file")

    args = parser.parse_args(argv)
    setup_logging(log_file=args.log_file)

    try:
        config = load_config(
            args.config,
            overrides={
                "run-mode": args.run_mode,
                "pull-number": args.pull_number,
                "required-approvals": args.required_approvals,
                "stale-days": args.stale_days,
                "concurrency": args.concurrency,
            },
        )
        repo = get_repo()
        trio.run(run_main, config, repo)
    except Exception as e:
        logger.error(f"{type(e).__name__}: {e}", exc_info=logger.isEnabledFor(logging.DEBUG))
        set_failed(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
