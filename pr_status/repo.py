"""Repository detection.

Inside GitHub Actions the repository comes from ``GITHUB_REPOSITORY``. Local
runs fall back to REPO_OWNER/REPO_NAME or the git remote.
"""

from __future__ import annotations

import os
import re
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class RepoInfo:
    """Repository information."""

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def api_path(self) -> str:
        """REST path prefix for this repository."""
        return f"/repos/{self.owner}/{self.name}"


def parse_git_remote_url(url: str) -> RepoInfo | None:
    """Parse owner/repo from git remote URL.

    Supports:
    - git@github.com:owner/repo.git
    - https://github.com/owner/repo.git
    - https://github.com/owner/repo
    - ssh://git@github.com/owner/repo.git
    """
    # SSH format: git@github.com:owner/repo.git
    ssh_match = re.match(r"git@[\w.-]+:([^/]+)/([^/]+?)(?:\.git)?$", url)
    if ssh_match:
        return RepoInfo(owner=ssh_match.group(1), name=ssh_match.group(2))

    # HTTPS format: https://github.com/owner/repo.git
    https_match = re.match(r"https?://[\w.-]+/([^/]+)/([^/]+?)(?:\.git)?$", url)
    if https_match:
        return RepoInfo(owner=https_match.group(1), name=https_match.group(2))

    # SSH with ssh:// prefix
    ssh_url_match = re.match(r"ssh://git@[\w.-]+/([^/]+)/([^/]+?)(?:\.git)?$", url)
    if ssh_url_match:
        return RepoInfo(owner=ssh_url_match.group(1), name=ssh_url_match.group(2))

    return None


def parse_full_name(full_name: str) -> RepoInfo | None:
    """Parse ``owner/name`` as found in GITHUB_REPOSITORY."""
    owner, sep, name = full_name.strip().partition("/")
    if not sep or not owner or not name or "/" in name:
        return None
    return RepoInfo(owner=owner, name=name)


def get_git_remote_url(remote: str = "origin") -> str | None:
    """Get the URL of a git remote."""
    try:
        result = subprocess.run(
            ["git", "remote", "get-url", remote],
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()
    except (subprocess.CalledProcessError, FileNotFoundError):
        return None


def detect_repo_from_git() -> RepoInfo | None:
    """Detect repo from git remote in current directory."""
    url = get_git_remote_url("origin")
    if url:
        return parse_git_remote_url(url)
    return None


def get_repo_from_env(environ: Mapping[str, str] | None = None) -> RepoInfo | None:
    """Get repo from GITHUB_REPOSITORY, or REPO_OWNER and REPO_NAME."""
    environ = os.environ if environ is None else environ

    full_name = environ.get("GITHUB_REPOSITORY")
    if full_name:
        repo = parse_full_name(full_name)
        if repo:
            return repo

    owner = environ.get("REPO_OWNER")
    name = environ.get("REPO_NAME")
    if owner and name:
        return RepoInfo(owner=owner, name=name)
    return None


def get_repo(environ: Mapping[str, str] | None = None) -> RepoInfo:
    """Get repo info with fallback chain.

    Priority:
    1. GITHUB_REPOSITORY (set by the Actions runner)
    2. REPO_OWNER and REPO_NAME
    3. Git remote detection

    Raises ValueError if repo cannot be determined.
    """
    repo = get_repo_from_env(environ)
    if repo:
        return repo

    repo = detect_repo_from_git()
    if repo:
        return repo

    raise ValueError(
        "Could not determine repository. Either:\n"
        "  1. Run inside GitHub Actions (GITHUB_REPOSITORY), or\n"
        "  2. Set REPO_OWNER and REPO_NAME env vars, or\n"
        "  3. Run from a git repo with a GitHub remote"
    )
