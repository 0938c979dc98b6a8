"""Pull request data extractor."""

from datetime import datetime

from ..models import PullRequest


def parse_datetime(dt_str: str | None) -> datetime | None:
    """Parse ISO datetime string, returns None if input is empty."""
    if not dt_str:
        return None
    return datetime.fromisoformat(dt_str.replace("Z", "+00:00"))


def parse_datetime_required(dt_str: str) -> datetime:
    """Parse ISO datetime string, raises if input is empty."""
    if not dt_str:
        raise ValueError("datetime string is required")
    return datetime.fromisoformat(dt_str.replace("Z", "+00:00"))


def extract_pr(pr_data: dict) -> PullRequest:
    """Extract PR data from GitHub API response."""
    user = pr_data.get("user") or {}
    head = pr_data.get("head") or {}

    return PullRequest(
        pr_number=pr_data["number"],
        title=pr_data.get("title", ""),
        html_url=pr_data.get("html_url", ""),
        author_id=user.get("id", 0),
        author_login=user.get("login", "unknown"),
        author_html_url=user.get("html_url", ""),
        draft=pr_data.get("draft", False),
        # List endpoints omit `mergeable`; only the single-PR endpoint computes it
        mergeable=pr_data.get("mergeable"),
        created_at=parse_datetime_required(pr_data["created_at"]),
        head_sha=head.get("sha", ""),
    )
