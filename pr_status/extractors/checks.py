"""CI check run and commit status extractors."""

from ..models import CheckRun, CommitStatus


def extract_check_run(check_data: dict) -> CheckRun:
    """Extract check run data from GitHub API response."""
    return CheckRun(
        name=check_data.get("name", "unknown"),
        status=check_data.get("status", "unknown"),
        conclusion=check_data.get("conclusion"),
    )


def extract_commit_status(status_data: dict) -> CommitStatus:
    """Extract a commit status from the combined status API response."""
    return CommitStatus(
        context=status_data.get("context", "unknown"),
        state=status_data.get("state", "unknown"),
    )
