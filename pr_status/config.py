"""Configuration for pr-status runs.

Inputs arrive as GitHub Actions ``INPUT_<NAME>`` environment variables. An
optional pr-status.yaml file supplies defaults for any of them, and CLI flags
override both. The result is validated once into an ``ActionConfig`` that is
passed explicitly into the run functions.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, model_validator

from .errors import ConfigurationError

load_dotenv()

# API paging
PER_PAGE = 100  # Max items per REST page
REVIEW_THREADS_PAGE_SIZE = 100  # Max threads per GraphQL page

# GitHub computes `mergeable` asynchronously, so it is polled
PULL_REQUEST_FETCH_MAX_ATTEMPTS = 10
PULL_REQUEST_FETCH_DELAY = 0.5  # seconds between attempts

# Input defaults
DEFAULT_REQUIRED_APPROVALS = 1
DEFAULT_STALE_DAYS = 7
DEFAULT_CONCURRENCY = 1  # PRs classified at once in report mode
DEFAULT_PENDING_REVIEW_LABEL = "pending review"
DEFAULT_CHANGES_REQUESTED_LABEL = "changes requested"
DEFAULT_APPROVED_LABEL = "approved"

CONFIG_FILE_CANDIDATES = ["pr-status.yaml", ".pr-status.yaml", "pr-status.yml", ".pr-status.yml"]

INPUT_NAMES = [
    "github-token",
    "run-mode",
    "required-approvals",
    "pull-number",
    "pending-review-label",
    "changes-requested-label",
    "approved-label",
    "slack-token",
    "slack-channel",
    "stale-days",
    "concurrency",
]


class RunMode(str, Enum):
    LABEL = "label"
    REPORT = "report"


class LabelNames(BaseModel):
    """Label applied for each non-draft review status."""

    pending_review: str
    changes_requested: str
    approved: str

    def all(self) -> list[str]:
        return [self.pending_review, self.changes_requested, self.approved]


class ActionConfig(BaseModel):
    """Validated inputs for a single run."""

    github_token: str = Field(min_length=1, repr=False)
    run_mode: RunMode
    required_approvals: int = Field(default=DEFAULT_REQUIRED_APPROVALS, ge=0)

    # Label mode
    pull_number: int | None = Field(default=None, gt=0)
    pending_review_label: str = DEFAULT_PENDING_REVIEW_LABEL
    changes_requested_label: str = DEFAULT_CHANGES_REQUESTED_LABEL
    approved_label: str = DEFAULT_APPROVED_LABEL

    # Report mode
    slack_token: str | None = Field(default=None, repr=False)
    slack_channel: str | None = None
    stale_days: int = Field(default=DEFAULT_STALE_DAYS, ge=0)
    concurrency: int = Field(default=DEFAULT_CONCURRENCY, ge=1)

    @model_validator(mode="after")
    def _check_mode_inputs(self) -> ActionConfig:
        if self.run_mode is RunMode.LABEL:
            required = {"pull-number": self.pull_number}
        else:
            required = {"slack-token": self.slack_token, "slack-channel": self.slack_channel}

        missing = [name for name, value in required.items() if value is None]
        if missing:
            raise ValueError(
                f"missing required input(s) for {self.run_mode.value} mode: {', '.join(missing)}"
            )
        return self

    @property
    def labels(self) -> LabelNames:
        return LabelNames(
            pending_review=self.pending_review_label,
            changes_requested=self.changes_requested_label,
            approved=self.approved_label,
        )

    @classmethod
    def from_inputs(cls, inputs: Mapping[str, Any]) -> ActionConfig:
        """Validate a mapping of action input names (``run-mode`` style) to values.

        Empty strings count as unset, matching how the runner passes inputs
        that were not given.
        """
        data = {
            name.replace("-", "_"): value
            for name, value in inputs.items()
            if value is not None and value != ""
        }
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(_format_validation_error(e)) from e


def _format_validation_error(error: ValidationError) -> str:
    """Render pydantic errors using action input names."""
    messages = []
    for detail in error.errors():
        msg = detail["msg"].removeprefix("Value error, ")
        if detail["loc"]:
            name = str(detail["loc"][0]).replace("_", "-")
            messages.append(f"{name}: {msg}")
        else:
            messages.append(msg)
    return "Invalid configuration: " + "; ".join(messages)


def read_action_inputs(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Read action inputs from ``INPUT_*`` environment variables.

    The runner upper-cases input names and keeps hyphens
    (``INPUT_RUN-MODE``); the underscore spelling is accepted too.
    """
    environ = os.environ if environ is None else environ
    inputs = {}
    for name in INPUT_NAMES:
        for key in (f"INPUT_{name.upper()}", f"INPUT_{name.upper().replace('-', '_')}"):
            value = environ.get(key, "").strip()
            if value:
                inputs[name] = value
                break
    return inputs


def load_file_defaults(path: Path | str | None = None) -> dict[str, Any]:
    """Load input defaults from a YAML file, or return nothing if none exists."""
    if path is None:
        for candidate in CONFIG_FILE_CANDIDATES:
            if Path(candidate).exists():
                path = candidate
                break
        else:
            return {}
    elif not Path(path).exists():
        raise ConfigurationError(f"Config file not found: {path}")

    with open(path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Could not parse {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping of input names to values")

    unknown = sorted(set(data) - set(INPUT_NAMES))
    if unknown:
        raise ConfigurationError(f"Unknown input(s) in {path}: {', '.join(unknown)}")
    return data


def load_config(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ActionConfig:
    """Build the run configuration.

    Priority (highest first):
    1. ``overrides`` (CLI flags)
    2. Action inputs (``INPUT_*`` env vars)
    3. pr-status.yaml defaults
    4. ``GITHUB_TOKEN`` env var, for the token only
    """
    environ = os.environ if environ is None else environ

    inputs: dict[str, Any] = {}
    if environ.get("GITHUB_TOKEN"):
        inputs["github-token"] = environ["GITHUB_TOKEN"]
    inputs.update(load_file_defaults(path))
    inputs.update(read_action_inputs(environ))
    if overrides:
        inputs.update({name: value for name, value in overrides.items() if value is not None})

    return ActionConfig.from_inputs(inputs)
