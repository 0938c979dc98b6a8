"""Pydantic models for pull request review data."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class ReviewState(str, Enum):
    """Review states reported by the GitHub reviews API."""
    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    COMMENTED = "COMMENTED"
    DISMISSED = "DISMISSED"
    PENDING = "PENDING"


# Only these states count as a reviewer's decision
DECISIVE_REVIEW_STATES = frozenset({ReviewState.APPROVED.value, ReviewState.CHANGES_REQUESTED.value})


class ReviewStatus(str, Enum):
    """Overall review status of a pull request."""
    DRAFT = "draft"
    PENDING_REVIEW = "pending_review"
    CHANGES_REQUESTED = "changes_requested"
    APPROVED = "approved"


class PullRequest(BaseModel):
    """Pull request snapshot."""
    pr_number: int
    title: str
    html_url: str
    author_id: int
    author_login: str
    author_html_url: str
    draft: bool
    mergeable: bool | None  # None while GitHub is still computing it
    created_at: datetime
    head_sha: str


class EnrichedPullRequest(PullRequest):
    """Pull request with the flags shown in the report."""
    has_build_failure: bool
    has_merge_conflicts: bool
    is_stale: bool
    mergeable_resolved: bool


class Review(BaseModel):
    """PR review data."""
    review_id: int
    reviewer_id: int | None
    reviewer_login: str | None
    state: str
    submitted_at: datetime | None


class ReviewThread(BaseModel):
    """Review comment thread, reduced to what the counter needs."""
    is_resolved: bool
    first_comment_author: str | None


class ReviewThreadPage(BaseModel):
    """One page of review threads from the GraphQL API."""
    threads: list[ReviewThread]
    has_next_page: bool
    end_cursor: str | None


class CheckRun(BaseModel):
    """CI check run."""
    name: str
    status: str
    conclusion: str | None


class CommitStatus(BaseModel):
    """Legacy commit status (status API)."""
    context: str
    state: str


class UnresolvedComments(BaseModel):
    """Result of counting unresolved review threads.

    ``complete`` is False when pagination stopped on a malformed page, in
    which case ``count`` only covers the pages read before it.
    """
    count: int
    complete: bool = True


class ReviewDecision(BaseModel):
    """Vote counts a review status is derived from."""
    approvals: int
    changes_requested: int
    unresolved_comments: int
    threads_complete: bool = True


class ReviewResult(BaseModel):
    """Status of a single pull request and the counts behind it.

    ``decision`` is None for drafts, which are classified without fetching
    reviews.
    """
    pr_number: int
    status: ReviewStatus
    decision: ReviewDecision | None
