"""Shared test fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from .factories import REPO, make_pr_data, make_threads_data


@pytest.fixture
def github_client_uninit():
    """Create an uninitialized GitHubClient with a fake token.

    Use this for sync tests that don't need the async context manager.
    """
    from pr_status.github_client import GitHubClient

    return GitHubClient(token="fake-token", repo=REPO)


@pytest.fixture
def mock_client():
    """GitHubClient stand-in whose async methods return empty data."""
    client = MagicMock()
    client.repo = REPO
    client.request_count = 0
    client.get_pull_request = AsyncMock(return_value=make_pr_data())
    client.get_pr_reviews = AsyncMock(return_value=[])
    client.get_review_threads_page = AsyncMock(return_value=make_threads_data([]))
    client.get_check_runs = AsyncMock(return_value=[])
    client.get_commit_statuses = AsyncMock(return_value=[])
    client.get_labels = AsyncMock(return_value=[])
    client.add_labels = AsyncMock()
    client.remove_label = AsyncMock()
    return client
