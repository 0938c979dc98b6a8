"""Tests for grouping pull requests by review status."""

import pytest
import trio

from pr_status.extractors.prs import extract_pr
from pr_status.grouping import classify_pull_requests, empty_buckets, group_pull_requests_by_status
from pr_status.models import ReviewStatus

from .factories import make_pr_data, make_review_data, make_thread, make_threads_data

# PR number -> reviews that give it a known status with required_approvals=1
REVIEWS_BY_PR = {
    1: [make_review_data(1, 2, "APPROVED")],
    2: [],
    3: [make_review_data(2, 3, "CHANGES_REQUESTED")],
    4: [make_review_data(3, 2, "APPROVED")],
    5: [],
    6: [make_review_data(4, 4, "APPROVED")],
}


def make_prs(*numbers, **overrides):
    return [extract_pr(make_pr_data(number=n, **overrides)) for n in numbers]


@pytest.fixture
def review_client(mock_client):
    async def get_pr_reviews(pr_number):
        # Finish in reverse order under concurrency
        await trio.sleep(1 / pr_number)
        return REVIEWS_BY_PR[pr_number]

    mock_client.get_pr_reviews.side_effect = get_pr_reviews
    return mock_client


class TestGroupPullRequestsByStatus:
    def test_empty_buckets_cover_every_status(self):
        assert list(empty_buckets()) == list(ReviewStatus)

    @pytest.mark.trio
    async def test_buckets_preserve_input_order(self, review_client, autojump_clock):
        prs = make_prs(1, 2, 3, 4, 5, 6)
        groups = await group_pull_requests_by_status(review_client, prs, required_approvals=1)

        assert [pr.pr_number for pr in groups[ReviewStatus.APPROVED]] == [1, 4, 6]
        assert [pr.pr_number for pr in groups[ReviewStatus.PENDING_REVIEW]] == [2, 5]
        assert [pr.pr_number for pr in groups[ReviewStatus.CHANGES_REQUESTED]] == [3]
        assert groups[ReviewStatus.DRAFT] == []

    @pytest.mark.trio
    async def test_concurrent_grouping_matches_sequential(self, review_client, autojump_clock):
        prs = make_prs(1, 2, 3, 4, 5, 6)
        sequential = await group_pull_requests_by_status(review_client, prs, 1)
        concurrent = await group_pull_requests_by_status(review_client, prs, 1, concurrency=3)
        assert concurrent == sequential

    @pytest.mark.trio
    async def test_concurrent_results_in_input_order(self, review_client, autojump_clock):
        prs = make_prs(1, 2, 3, 4, 5, 6)
        results = await classify_pull_requests(review_client, prs, 1, concurrency=6)
        assert [result.pr_number for result in results] == [1, 2, 3, 4, 5, 6]

    @pytest.mark.trio
    async def test_drafts_grouped_without_fetching(self, mock_client):
        prs = make_prs(7, 8, draft=True)
        groups = await group_pull_requests_by_status(mock_client, prs, 1)
        assert [pr.pr_number for pr in groups[ReviewStatus.DRAFT]] == [7, 8]
        mock_client.get_pr_reviews.assert_not_called()

    @pytest.mark.trio
    async def test_unresolved_thread_moves_pr_to_changes_requested(self, review_client, autojump_clock):
        async def threads_page(pr_number, cursor):
            threads = [make_thread("reviewer")] if pr_number == 1 else []
            return make_threads_data(threads)

        review_client.get_review_threads_page.side_effect = threads_page
        groups = await group_pull_requests_by_status(review_client, make_prs(1, 4), 1)
        assert [pr.pr_number for pr in groups[ReviewStatus.CHANGES_REQUESTED]] == [1]
        assert [pr.pr_number for pr in groups[ReviewStatus.APPROVED]] == [4]

    @pytest.mark.trio
    async def test_empty_input(self, mock_client):
        groups = await group_pull_requests_by_status(mock_client, [], 1)
        assert groups == empty_buckets()
