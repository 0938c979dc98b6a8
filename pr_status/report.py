"""Report mode: post a summary of open pull requests to Slack.

Open PRs are listed oldest first, drafts are dropped, each PR is enriched
with build / conflict / staleness flags, and the PRs are grouped by review
status into a Block Kit message.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx
from rich.console import Console
from rich.table import Table

from .config import ActionConfig
from .enrich import PullRequestEnricher
from .errors import DeliveryError
from .extractors.prs import extract_pr
from .github_client import GitHubClient
from .grouping import group_pull_requests_by_status
from .models import EnrichedPullRequest, PullRequest, ReviewStatus

logger = logging.getLogger(__name__)

SLACK_API_URL = "https://slack.com/api"

BUILD_FAILURE_EMOJI = "rotating_light"
MERGE_CONFLICT_EMOJI = "crossed_swords"
STALE_EMOJI = "ice_cube"

# Sections shown in the report, in order. Drafts are filtered out beforehand.
REPORT_SECTIONS = [
    (ReviewStatus.PENDING_REVIEW, "eyes", "Pending review"),
    (ReviewStatus.CHANGES_REQUESTED, "pencil2", "Changes requested"),
    (ReviewStatus.APPROVED, "white_check_mark", "Approved"),
]


@dataclass
class SlackMessage:
    text: str
    blocks: list[dict[str, Any]]


def markdown_section(text: str) -> dict:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def emoji_element(name: str) -> dict:
    return {"type": "emoji", "name": name}


def text_element(text: str, bold: bool = False) -> dict:
    element: dict[str, Any] = {"type": "text", "text": text}
    if bold:
        element["style"] = {"bold": True}
    return element


def pull_request_flags(pr: EnrichedPullRequest) -> list[str]:
    """Emoji names for the flags set on a PR, in legend order."""
    flags = []
    if pr.has_build_failure:
        flags.append(BUILD_FAILURE_EMOJI)
    if pr.has_merge_conflicts:
        flags.append(MERGE_CONFLICT_EMOJI)
    if pr.is_stale:
        flags.append(STALE_EMOJI)
    return flags


def pull_request_item(pr: EnrichedPullRequest) -> dict:
    return {
        "type": "rich_text_section",
        "elements": [
            {"type": "link", "url": pr.html_url, "text": f"{pr.title} (#{pr.pr_number})"},
            text_element(" by "),
            {"type": "link", "url": pr.author_html_url, "text": f"@{pr.author_login}"},
            text_element(" "),
            *(emoji_element(name) for name in pull_request_flags(pr)),
        ],
    }


def pull_request_section(emoji: str, title: str, prs: list[EnrichedPullRequest]) -> dict:
    if prs:
        items = [pull_request_item(pr) for pr in prs]
    else:
        items = [{"type": "rich_text_section", "elements": [text_element("None")]}]

    return {
        "type": "rich_text",
        "elements": [
            {
                "type": "rich_text_section",
                "elements": [emoji_element(emoji), text_element(" "), text_element(f"{title} ({len(prs)})", bold=True)],
            },
            {"type": "rich_text_list", "style": "bullet", "indent": 0, "elements": items},
        ],
    }


def legend_block(stale_days: int) -> dict:
    entries = [
        (BUILD_FAILURE_EMOJI, " = Build failure"),
        (MERGE_CONFLICT_EMOJI, " = Merge conflicts"),
        (STALE_EMOJI, f" = Stale PR (> {stale_days} days)"),
    ]
    return {
        "type": "rich_text",
        "elements": [
            {"type": "rich_text_section", "elements": [text_element("Legend:", bold=True)]},
            *(
                {"type": "rich_text_section", "elements": [emoji_element(name), text_element(label)]}
                for name, label in entries
            ),
        ],
    }


def build_slack_message(
    pull_requests: list[EnrichedPullRequest],
    groups: dict[ReviewStatus, list[EnrichedPullRequest]],
    stale_days: int,
) -> SlackMessage:
    """Build the Block Kit summary message."""
    spacer = markdown_section(" ")
    blocks = [
        markdown_section(":loudspeaker: *Pull Request Summary* :loudspeaker:"),
        markdown_section(f"*Total open PRs*: {len(pull_requests)}"),
        spacer,
    ]
    for status, emoji, title in REPORT_SECTIONS:
        blocks.append(pull_request_section(emoji, title, groups.get(status, [])))
        blocks.append(spacer)
    blocks.append(legend_block(stale_days))
    blocks.append(spacer)

    return SlackMessage(text="Pull Request Summary", blocks=blocks)


class SlackClient:
    """Minimal Slack Web API client for chat.postMessage."""

    def __init__(self, token: str, base_url: str = SLACK_API_URL):
        self.token = token
        self.base_url = base_url

    async def post_message(self, channel: str, message: SlackMessage) -> dict:
        """Post a message. Slack reports failures as ``ok: false`` with HTTP 200."""
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=30.0) as client:
                response = await client.post(
                    "/chat.postMessage",
                    headers={"Authorization": f"Bearer {self.token}"},
                    json={
                        "channel": channel,
                        "text": message.text,
                        "blocks": message.blocks,
                        "unfurl_links": False,
                        "unfurl_media": False,
                    },
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise DeliveryError(f"Slack channel {channel}", str(e)) from e

        if not isinstance(data, dict):
            raise DeliveryError(f"Slack channel {channel}", "unexpected response body")
        if not data.get("ok"):
            raise DeliveryError(f"Slack channel {channel}", data.get("error", "unknown error"))
        return data


def filter_draft_pull_requests(pull_requests: list[PullRequest]) -> list[PullRequest]:
    return [pr for pr in pull_requests if not pr.draft]


def build_summary_table(groups: dict[ReviewStatus, list[EnrichedPullRequest]]) -> Table:
    table = Table(title="Open Pull Requests", expand=True)
    table.add_column("Status", style="cyan")
    table.add_column("PR", style="green")
    table.add_column("Author")
    table.add_column("Flags", style="red")

    for status, _, title in REPORT_SECTIONS:
        for pr in groups.get(status, []):
            flags = " ".join(f":{name}:" for name in pull_request_flags(pr))
            table.add_row(title, f"#{pr.pr_number} {pr.title}", pr.author_login, flags)
    return table


async def run_report_mode(
    client: GitHubClient,
    config: ActionConfig,
    console: Console,
    enricher: PullRequestEnricher | None = None,
    slack: SlackClient | None = None,
) -> dict[ReviewStatus, list[EnrichedPullRequest]]:
    """Classify all open PRs and post the summary to Slack."""
    enricher = enricher or PullRequestEnricher(client, config.stale_days)
    slack = slack or SlackClient(config.slack_token)

    pull_requests = [extract_pr(data) async for data in client.get_open_pull_requests()]
    pull_requests = filter_draft_pull_requests(pull_requests)
    logger.info(f"Found {len(pull_requests)} open non-draft PR(s) in {client.repo.full_name}")

    enriched = await enricher.enrich_all(pull_requests)
    groups = await group_pull_requests_by_status(
        client, enriched, config.required_approvals, concurrency=config.concurrency
    )

    message = build_slack_message(enriched, groups, config.stale_days)
    await slack.post_message(config.slack_channel, message)
    logger.info(f"Sent report to Slack channel {config.slack_channel}")

    console.print(build_summary_table(groups))
    console.print(f"[green]Sent summary of {len(enriched)} PR(s) to {config.slack_channel}[/]")
    return groups
