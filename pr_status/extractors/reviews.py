"""PR review data extractor."""

from ..models import Review
from .prs import parse_datetime


def extract_review(review_data: dict) -> Review:
    """Extract review data from GitHub API response.

    Reviews by deleted accounts come back with ``user: null``; the reviewer
    fields are left as None so aggregation can skip them.
    """
    user = review_data.get("user") or {}

    return Review(
        review_id=review_data["id"],
        reviewer_id=user.get("id"),
        reviewer_login=user.get("login"),
        state=review_data.get("state", ""),
        submitted_at=parse_datetime(review_data.get("submitted_at")),
    )
