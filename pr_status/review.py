"""Review status classification.

Turns a pull request's reviews and review threads into a single
``ReviewStatus``:

1. Keep each reviewer's latest decisive review (approve / request changes).
2. Count unresolved review threads started by someone other than the author.
3. Classify with an ordered rule list, first match wins.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from .extractors.reviews import extract_review
from .extractors.threads import extract_review_thread_page
from .github_client import GitHubClient
from .models import (
    DECISIVE_REVIEW_STATES,
    PullRequest,
    Review,
    ReviewDecision,
    ReviewResult,
    ReviewState,
    ReviewStatus,
    UnresolvedComments,
)

logger = logging.getLogger(__name__)


def latest_review_per_user(reviews: Iterable[Review], author_id: int) -> dict[int, Review]:
    """Map each reviewer to their most recent decisive review.

    ``reviews`` must be in chronological order. Non-decisive reviews
    (COMMENTED, DISMISSED, ...) are skipped and never replace an earlier
    decisive review from the same reviewer.
    """
    result: dict[int, Review] = {}
    for review in reviews:
        if review.reviewer_id is None:
            continue
        if review.reviewer_id == author_id:
            continue
        if review.state not in DECISIVE_REVIEW_STATES:
            continue
        result[review.reviewer_id] = review
    return result


def group_reviews_by_state(reviews: Iterable[Review]) -> dict[str, list[Review]]:
    result: dict[str, list[Review]] = defaultdict(list)
    for review in reviews:
        result[review.state].append(review)
    return result


def count_review_decisions(reviews: Iterable[Review], author_id: int) -> tuple[int, int]:
    """Return (approvals, changes requested) from a chronological review list."""
    by_state = group_reviews_by_state(latest_review_per_user(reviews, author_id).values())
    return (
        len(by_state.get(ReviewState.APPROVED.value, [])),
        len(by_state.get(ReviewState.CHANGES_REQUESTED.value, [])),
    )


async def count_unresolved_review_comments(
    client: GitHubClient,
    pr_number: int,
    author_login: str,
) -> UnresolvedComments:
    """Count unresolved review threads not started by the PR author.

    Threads without comments, or whose first comment has no author (deleted
    account), are ignored. A malformed page, a missing cursor or a cursor seen
    before ends pagination; the count so far is kept and the result is
    marked incomplete.
    """
    count = 0
    cursor: str | None = None
    seen_cursors: set[str] = set()
    pages = 0

    while True:
        page = extract_review_thread_page(await client.get_review_threads_page(pr_number, cursor))
        if page is None:
            logger.warning(
                f"PR #{pr_number}: malformed review thread page after {pages} page(s), "
                f"unresolved count may be partial ({count})"
            )
            return UnresolvedComments(count=count, complete=False)
        pages += 1

        for thread in page.threads:
            if thread.first_comment_author is None:
                continue
            if thread.first_comment_author == author_login:
                continue
            if not thread.is_resolved:
                count += 1

        if not page.has_next_page:
            return UnresolvedComments(count=count)

        if not page.end_cursor:
            logger.warning(
                f"PR #{pr_number}: review thread page {pages} has more pages but no cursor, "
                f"unresolved count may be partial ({count})"
            )
            return UnresolvedComments(count=count, complete=False)

        if page.end_cursor in seen_cursors:
            logger.warning(
                f"PR #{pr_number}: review thread cursor {page.end_cursor!r} repeated on page {pages}, "
                f"unresolved count may be partial ({count})"
            )
            return UnresolvedComments(count=count, complete=False)
        seen_cursors.add(page.end_cursor)
        cursor = page.end_cursor


@dataclass(frozen=True)
class ClassificationInput:
    is_draft: bool
    approvals: int
    changes_requested: int
    unresolved_comments: int
    required_approvals: int


ClassificationRule = tuple[Callable[[ClassificationInput], bool], ReviewStatus]

# Evaluated top to bottom, first match wins. An open objection (requested
# changes or an unresolved thread) outranks any number of approvals.
CLASSIFICATION_RULES: list[ClassificationRule] = [
    (lambda c: c.is_draft, ReviewStatus.DRAFT),
    (lambda c: c.changes_requested > 0 or c.unresolved_comments > 0, ReviewStatus.CHANGES_REQUESTED),
    (lambda c: c.approvals >= c.required_approvals, ReviewStatus.APPROVED),
    (lambda c: True, ReviewStatus.PENDING_REVIEW),
]


def classify(
    is_draft: bool,
    approvals: int,
    changes_requested: int,
    unresolved_comments: int,
    required_approvals: int,
) -> ReviewStatus:
    """Classify a pull request from its review counts."""
    inputs = ClassificationInput(
        is_draft=is_draft,
        approvals=approvals,
        changes_requested=changes_requested,
        unresolved_comments=unresolved_comments,
        required_approvals=required_approvals,
    )
    for predicate, status in CLASSIFICATION_RULES:
        if predicate(inputs):
            return status
    raise AssertionError("CLASSIFICATION_RULES must end with a catch-all rule")


async def review_pull_request(
    client: GitHubClient,
    pr: PullRequest,
    required_approvals: int,
) -> ReviewResult:
    """Fetch reviews and threads for a pull request and classify it.

    Drafts are classified without any API calls.
    """
    if pr.draft:
        return ReviewResult(pr_number=pr.pr_number, status=ReviewStatus.DRAFT, decision=None)

    reviews = [extract_review(data) for data in await client.get_pr_reviews(pr.pr_number)]
    approvals, changes_requested = count_review_decisions(reviews, pr.author_id)
    unresolved = await count_unresolved_review_comments(client, pr.pr_number, pr.author_login)

    decision = ReviewDecision(
        approvals=approvals,
        changes_requested=changes_requested,
        unresolved_comments=unresolved.count,
        threads_complete=unresolved.complete,
    )
    status = classify(
        is_draft=pr.draft,
        approvals=decision.approvals,
        changes_requested=decision.changes_requested,
        unresolved_comments=decision.unresolved_comments,
        required_approvals=required_approvals,
    )
    logger.info(
        f"PR #{pr.pr_number}: {status.value} "
        f"(approvals={approvals}/{required_approvals}, changes_requested={changes_requested}, "
        f"unresolved_comments={unresolved.count})"
    )
    return ReviewResult(pr_number=pr.pr_number, status=status, decision=decision)
