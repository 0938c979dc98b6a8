"""Label mode: keep a single status label on one pull request."""

from __future__ import annotations

import logging
from typing import assert_never

import httpx
from rich.console import Console

from .config import ActionConfig, LabelNames
from .errors import DeliveryError
from .extractors.prs import extract_pr
from .github_client import GitHubClient
from .models import ReviewResult, ReviewStatus
from .review import review_pull_request

logger = logging.getLogger(__name__)


def labels_for_status(status: ReviewStatus, labels: LabelNames) -> tuple[list[str], list[str]]:
    """Return (labels to add, labels to remove) for a review status."""
    if status is ReviewStatus.DRAFT:
        return [], [labels.pending_review, labels.changes_requested, labels.approved]
    elif status is ReviewStatus.PENDING_REVIEW:
        return [labels.pending_review], [labels.changes_requested, labels.approved]
    elif status is ReviewStatus.CHANGES_REQUESTED:
        return [labels.changes_requested], [labels.pending_review, labels.approved]
    elif status is ReviewStatus.APPROVED:
        return [labels.approved], [labels.pending_review, labels.changes_requested]
    else:
        assert_never(status)


async def update_labels(
    client: GitHubClient,
    pr_number: int,
    labels_to_add: list[str],
    labels_to_remove: list[str],
) -> tuple[list[str], list[str]]:
    """Add missing labels and remove present ones.

    Returns the labels actually added and removed.
    """
    try:
        current = set(await client.get_labels(pr_number))
        added = [label for label in labels_to_add if label not in current]
        removed = [label for label in labels_to_remove if label in current]

        if added:
            await client.add_labels(pr_number, added)
        for label in removed:
            await client.remove_label(pr_number, label)
    except httpx.HTTPError as e:
        raise DeliveryError(f"PR #{pr_number} labels", str(e)) from e

    return added, removed


async def run_label_mode(client: GitHubClient, config: ActionConfig, console: Console) -> ReviewResult:
    """Classify ``config.pull_number`` and update its labels."""
    pr = extract_pr(await client.get_pull_request(config.pull_number))
    result = await review_pull_request(client, pr, config.required_approvals)

    labels_to_add, labels_to_remove = labels_for_status(result.status, config.labels)
    added, removed = await update_labels(client, pr.pr_number, labels_to_add, labels_to_remove)

    logger.info(f"PR #{pr.pr_number}: added labels {added}, removed labels {removed}")
    console.print(f"[bold]PR #{pr.pr_number}[/] is [cyan]{result.status.value}[/]")
    if added:
        console.print(f"  Added: {', '.join(added)}")
    if removed:
        console.print(f"  Removed: {', '.join(removed)}")
    return result
