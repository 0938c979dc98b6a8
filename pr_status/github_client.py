"""GitHub API client with rate limiting and retry logic.

Uses httpx.AsyncClient with trio. Covers the REST and GraphQL calls the
review classifier, the labeler and the report need.
"""

import logging
import time
from collections.abc import AsyncGenerator
from typing import Any
from urllib.parse import quote

import httpx
import trio

from .config import PER_PAGE, REVIEW_THREADS_PAGE_SIZE
from .repo import RepoInfo

logger = logging.getLogger(__name__)


REVIEW_THREADS_QUERY = """
query($owner: String!, $repo: String!, $pull_number: Int!, $page_size: Int!, $cursor: String) {
  repository(owner: $owner, name: $repo) {
    pullRequest(number: $pull_number) {
      reviewThreads(first: $page_size, after: $cursor) {
        nodes {
          id
          isResolved
          comments(first: 1) {
            nodes {
              author {
                login
              }
            }
          }
        }
        pageInfo {
          hasNextPage
          endCursor
        }
      }
    }
  }
}
"""


class GitHubClient:
    """Async GitHub REST and GraphQL client with automatic rate limit handling."""

    BASE_URL = "https://api.github.com"

    def __init__(self, token: str, repo: RepoInfo):
        """Initialize the client.

        Args:
            token: Token used for bearer auth (the action's github-token input)
            repo: Repository all repo-scoped calls are made against
        """
        if not token:
            raise ValueError("GitHub auth required. Set the github-token input or GITHUB_TOKEN")

        self.token = token
        self.repo = repo
        self.client: httpx.AsyncClient | None = None
        self._request_count = 0
        self._rate_limit_remaining = 5000
        self._rate_limit_reset = 0

    async def __aenter__(self):
        self.client = httpx.AsyncClient(
            base_url=self.BASE_URL,
            headers={
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=30.0,
            http2=True,
        )
        return self

    async def __aexit__(self, *args):
        if self.client:
            await self.client.aclose()

    @property
    def request_count(self) -> int:
        return self._request_count

    @property
    def rate_limit_remaining(self) -> int:
        return self._rate_limit_remaining

    @property
    def rate_limit_reset(self) -> int:
        return self._rate_limit_reset

    def _track_rate_limit(self, response: httpx.Response) -> None:
        remaining = response.headers.get("X-RateLimit-Remaining")
        reset = response.headers.get("X-RateLimit-Reset")
        if remaining is not None:
            self._rate_limit_remaining = int(remaining)
        if reset is not None:
            self._rate_limit_reset = int(reset)

    async def _handle_rate_limit(self, response: httpx.Response) -> bool:
        """Handle rate limiting. Returns True if request should be retried."""
        if response.status_code == 403:
            remaining = int(response.headers.get("X-RateLimit-Remaining", 1))
            if remaining == 0:
                reset_time = int(response.headers.get("X-RateLimit-Reset", 0))
                wait_seconds = max(reset_time - time.time(), 60)
                logger.warning(f"Rate limited (primary). Waiting {wait_seconds:.0f}s until reset...")
                await trio.sleep(wait_seconds + 1)
                return True

            # Secondary limits can come back as 403 with Retry-After
            if "Retry-After" in response.headers:
                retry_after = int(response.headers["Retry-After"])
                logger.warning(f"Rate limited (secondary). Waiting {retry_after}s...")
                await trio.sleep(retry_after)
                return True

        if response.status_code == 429:
            retry_after = int(response.headers.get("Retry-After", 60))
            logger.warning(f"Rate limited (secondary). Waiting {retry_after}s...")
            await trio.sleep(retry_after)
            return True

        return False

    async def _request(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        json: Any = None,
        headers: dict | None = None,
        max_retries: int = 3,
    ) -> httpx.Response:
        """Make request with automatic rate limit handling."""
        if not self.client:
            raise RuntimeError("Client not initialized. Use async context manager.")

        request_headers = {"Authorization": f"Bearer {self.token}"}
        if headers:
            request_headers.update(headers)

        for attempt in range(max_retries):
            response = await self.client.request(
                method, path, params=params, json=json, headers=request_headers
            )
            self._request_count += 1
            self._track_rate_limit(response)

            if await self._handle_rate_limit(response):
                continue

            if response.status_code >= 500:
                wait = 2**attempt
                logger.warning(f"Server error {response.status_code}. Retrying in {wait}s...")
                await trio.sleep(wait)
                continue

            response.raise_for_status()
            return response

        raise RuntimeError(f"Max retries exceeded for {method} {path}")

    async def get(self, path: str, params: dict | None = None, headers: dict | None = None) -> Any:
        """GET request returning JSON."""
        response = await self._request("GET", path, params=params, headers=headers)
        return response.json()

    async def post(self, path: str, json: Any) -> Any:
        """POST request returning JSON."""
        response = await self._request("POST", path, json=json)
        return response.json()

    async def delete(self, path: str) -> None:
        await self._request("DELETE", path)

    async def paginate(
        self,
        path: str,
        params: dict | None = None,
        headers: dict | None = None,
    ) -> AsyncGenerator[Any]:
        """Paginate through results, yielding each item."""
        params = params.copy() if params else {}
        params["per_page"] = PER_PAGE
        page = 1

        while True:
            params["page"] = page
            response = await self._request("GET", path, params=params, headers=headers)
            items = response.json()

            if not items:
                break

            for item in items:
                yield item

            if len(items) < PER_PAGE:
                break

            page += 1

    async def paginate_all(
        self,
        path: str,
        params: dict | None = None,
        headers: dict | None = None,
    ) -> list[dict]:
        """Paginate through all results, returning a list."""
        results = []
        async for item in self.paginate(path, params, headers):
            results.append(item)
        return results

    async def graphql(self, query: str, variables: dict | None = None) -> dict | None:
        """Run a GraphQL query and return its ``data`` member.

        GraphQL reports most failures with HTTP 200 and an ``errors`` list.
        Those are logged and whatever ``data`` came back (possibly None) is
        returned so callers can decide how to treat a partial response.
        """
        body = await self.post("/graphql", json={"query": query, "variables": variables or {}})
        errors = body.get("errors")
        if errors:
            messages = "; ".join(str(e.get("message", e)) for e in errors)
            logger.warning(f"GraphQL errors: {messages}")
        return body.get("data")

    async def get_pull_request(self, pr_number: int) -> dict:
        """Get a single PR. Only this endpoint computes `mergeable`."""
        return await self.get(f"{self.repo.api_path}/pulls/{pr_number}")

    async def get_open_pull_requests(self) -> AsyncGenerator[dict]:
        """Get open pull requests, oldest first."""
        path = f"{self.repo.api_path}/pulls"
        params = {"state": "open", "sort": "created", "direction": "asc"}
        async for pr in self.paginate(path, params):
            yield pr

    async def get_pr_reviews(self, pr_number: int) -> list[dict]:
        """Get all reviews for a PR, oldest first."""
        return await self.paginate_all(f"{self.repo.api_path}/pulls/{pr_number}/reviews")

    async def get_review_threads_page(self, pr_number: int, cursor: str | None = None) -> dict | None:
        """Get one page of review threads for a PR."""
        variables = {
            "owner": self.repo.owner,
            "repo": self.repo.name,
            "pull_number": pr_number,
            "page_size": REVIEW_THREADS_PAGE_SIZE,
            "cursor": cursor,
        }
        return await self.graphql(REVIEW_THREADS_QUERY, variables)

    async def get_check_runs(self, ref: str) -> list[dict]:
        """Get check runs for a commit ref."""
        path = f"{self.repo.api_path}/commits/{ref}/check-runs"
        response = await self.get(path, params={"per_page": PER_PAGE})
        return response.get("check_runs", [])

    async def get_commit_statuses(self, ref: str) -> list[dict]:
        """Get the latest status per context for a commit ref."""
        path = f"{self.repo.api_path}/commits/{ref}/status"
        response = await self.get(path, params={"per_page": PER_PAGE})
        return response.get("statuses", [])

    async def get_labels(self, pr_number: int) -> list[str]:
        """Get the names of labels currently on a PR."""
        labels = await self.paginate_all(f"{self.repo.api_path}/issues/{pr_number}/labels")
        return [label["name"] for label in labels]

    async def add_labels(self, pr_number: int, labels: list[str]) -> None:
        await self.post(f"{self.repo.api_path}/issues/{pr_number}/labels", json={"labels": labels})

    async def remove_label(self, pr_number: int, label: str) -> None:
        await self.delete(f"{self.repo.api_path}/issues/{pr_number}/labels/{quote(label, safe='')}")
