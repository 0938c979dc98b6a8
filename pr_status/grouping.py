"""Bucket pull requests by review status."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TypeVar

import trio

from .github_client import GitHubClient
from .models import PullRequest, ReviewResult, ReviewStatus
from .review import review_pull_request

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=PullRequest)


def empty_buckets() -> dict[ReviewStatus, list]:
    """One bucket per status, in declaration order."""
    return {status: [] for status in ReviewStatus}


async def _classify_worker(
    client: GitHubClient,
    required_approvals: int,
    receive_channel: trio.MemoryReceiveChannel,
    results: list[ReviewResult | None],
) -> None:
    async with receive_channel:
        async for index, pr in receive_channel:
            results[index] = await review_pull_request(client, pr, required_approvals)


async def classify_pull_requests(
    client: GitHubClient,
    pull_requests: Sequence[PullRequest],
    required_approvals: int,
    concurrency: int = 1,
) -> list[ReviewResult]:
    """Classify pull requests, returning results in input order.

    With ``concurrency > 1`` that many workers pull PRs off a channel; results
    are written by input index so ordering does not depend on completion
    order.
    """
    if concurrency <= 1:
        results = []
        for pr in pull_requests:
            results.append(await review_pull_request(client, pr, required_approvals))
        return results

    slots: list[ReviewResult | None] = [None] * len(pull_requests)
    send_channel, receive_channel = trio.open_memory_channel[tuple[int, PullRequest]](0)

    async with trio.open_nursery() as nursery:
        for _ in range(concurrency):
            nursery.start_soon(
                _classify_worker, client, required_approvals, receive_channel.clone(), slots
            )
        # Workers hold clones
        await receive_channel.aclose()

        async with send_channel:
            for index, pr in enumerate(pull_requests):
                await send_channel.send((index, pr))

    return [result for result in slots if result is not None]


async def group_pull_requests_by_status(
    client: GitHubClient,
    pull_requests: Sequence[P],
    required_approvals: int,
    concurrency: int = 1,
) -> dict[ReviewStatus, list[P]]:
    """Map each review status to the pull requests that have it.

    Every status is present as a key. Within a bucket, pull requests keep
    their relative input order.
    """
    results = await classify_pull_requests(client, pull_requests, required_approvals, concurrency)

    buckets: dict[ReviewStatus, list[P]] = empty_buckets()
    for pr, result in zip(pull_requests, results, strict=True):
        buckets[result.status].append(pr)

    counts = ", ".join(f"{status.value}={len(prs)}" for status, prs in buckets.items())
    logger.info(f"Grouped {len(pull_requests)} PR(s): {counts}")
    return buckets
