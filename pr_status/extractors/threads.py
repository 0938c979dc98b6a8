"""Review thread extractor for the GraphQL reviewThreads connection."""

from ..models import ReviewThread, ReviewThreadPage


def extract_review_thread(thread_data: dict) -> ReviewThread:
    """Extract a review thread, keeping only its first comment's author."""
    comments = (thread_data.get("comments") or {}).get("nodes") or []
    first_comment = comments[0] if comments else None
    author = (first_comment or {}).get("author") or {}

    return ReviewThread(
        is_resolved=bool(thread_data.get("isResolved", False)),
        first_comment_author=author.get("login"),
    )


def extract_review_thread_page(data: dict | None) -> ReviewThreadPage | None:
    """Extract one page of threads from a GraphQL ``data`` payload.

    Returns None when the payload lacks the expected
    ``repository.pullRequest.reviewThreads`` structure.
    """
    pull_request = ((data or {}).get("repository") or {}).get("pullRequest") or {}
    connection = pull_request.get("reviewThreads") or {}
    nodes = connection.get("nodes")
    if nodes is None:
        return None

    page_info = connection.get("pageInfo") or {}
    return ReviewThreadPage(
        threads=[extract_review_thread(node) for node in nodes if node],
        has_next_page=bool(page_info.get("hasNextPage", False)),
        end_cursor=page_info.get("endCursor"),
    )
