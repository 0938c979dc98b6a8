"""Pull request enrichment for the report.

GitHub computes ``mergeable`` in the background after a PR is opened or
updated, so the single-PR endpoint is polled until it settles. Build failure
and staleness flags are derived alongside it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta

from .extractors.checks import extract_check_run, extract_commit_status
from .extractors.prs import extract_pr
from .github_client import GitHubClient
from .models import CheckRun, CommitStatus, EnrichedPullRequest, PullRequest
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

FAILED_CHECK_CONCLUSIONS = frozenset({"failure", "cancelled", "timed_out"})
FAILED_STATUS_STATES = frozenset({"failure", "error"})


def is_check_run_failed(check_run: CheckRun) -> bool:
    return check_run.status == "completed" and check_run.conclusion in FAILED_CHECK_CONCLUSIONS


def is_commit_status_failed(status: CommitStatus) -> bool:
    return status.state in FAILED_STATUS_STATES


def is_stale(pr: PullRequest, stale_days: int, now: datetime) -> bool:
    """True if the PR was created more than ``stale_days`` before ``now``."""
    return pr.created_at < now - timedelta(days=stale_days)


class PullRequestEnricher:
    """Resolve mergeability and derive report flags, one PR at a time."""

    def __init__(
        self,
        client: GitHubClient,
        stale_days: int,
        retry_policy: RetryPolicy | None = None,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
    ):
        self.client = client
        self.stale_days = stale_days
        self.retry_policy = retry_policy or RetryPolicy()
        self.now = now

    async def fetch_resolved_pull_request(self, pr_number: int) -> tuple[PullRequest, bool]:
        """Poll until ``mergeable`` is known.

        Returns the last snapshot and whether mergeability was resolved.
        """

        async def fetch() -> PullRequest:
            return extract_pr(await self.client.get_pull_request(pr_number))

        result = await self.retry_policy.poll(fetch, until=lambda pr: pr.mergeable is not None)
        if not result.satisfied:
            logger.warning(
                f"PR #{pr_number}: mergeable state still unknown after {result.attempts} attempts, "
                "assuming no merge conflicts"
            )
        else:
            logger.debug(f"PR #{pr_number}: mergeable={result.value.mergeable} after {result.attempts} attempt(s)")
        return result.value, result.satisfied

    async def has_build_failure(self, pr: PullRequest) -> bool:
        """True if any check run or commit status on the head commit failed."""
        if not pr.head_sha:
            return False

        check_runs = [extract_check_run(data) for data in await self.client.get_check_runs(pr.head_sha)]
        if any(is_check_run_failed(check_run) for check_run in check_runs):
            return True

        statuses = [extract_commit_status(data) for data in await self.client.get_commit_statuses(pr.head_sha)]
        return any(is_commit_status_failed(status) for status in statuses)

    async def enrich(self, pr_number: int) -> EnrichedPullRequest:
        pr, resolved = await self.fetch_resolved_pull_request(pr_number)
        return EnrichedPullRequest(
            **pr.model_dump(),
            has_build_failure=await self.has_build_failure(pr),
            # Unresolved mergeability is reported as "no conflict known"
            has_merge_conflicts=pr.mergeable is False,
            is_stale=is_stale(pr, self.stale_days, self.now()),
            mergeable_resolved=resolved,
        )

    async def enrich_all(self, pull_requests: Iterable[PullRequest]) -> list[EnrichedPullRequest]:
        """Enrich pull requests sequentially, keeping input order."""
        result = []
        for pr in pull_requests:
            result.append(await self.enrich(pr.pr_number))
        return result
