"""GitHub REST API v3 provider and pull request event loading."""

import json
import os
import re
import subprocess
from pathlib import Path

import httpx

from prlink.models import GitHubUser, PullRequestEvent, PullRequestUpdate
from prlink.providers.base import RepoHostProvider
from prlink.settings import PrlinkSettings

BASE_URL = "https://api.github.com"

_REMOTE_RE = re.compile(r"github\.com[:/](?P<owner>[^/]+)/(?P<repo>[^/]+?)(?:\.git)?$")


def _repo_from_git_remote() -> str | None:
    """Return owner/repo parsed from the origin remote, or None if it is not on GitHub."""
    result = subprocess.run(["git", "remote", "get-url", "origin"], capture_output=True, text=True)
    if result.returncode != 0:
        return None
    match = _REMOTE_RE.search(result.stdout.strip())
    if not match:
        return None
    return f"{match['owner']}/{match['repo']}"


def event_from_node(node: dict) -> PullRequestEvent:
    """Build a PullRequestEvent from a pull_request object (event payload or REST response)."""
    user = node.get("user") or {}
    return PullRequestEvent(
        number=node["number"],
        title=node.get("title") or "",
        body=node.get("body"),
        head_branch=node["head"]["ref"],
        merged=bool(node.get("merged")),
        html_url=node["html_url"],
        author_login=user.get("login"),
        payload=node,
    )


def load_event(path: Path) -> PullRequestEvent:
    """Read the Actions event payload at path (GITHUB_EVENT_PATH)."""
    try:
        payload = json.loads(path.read_text())
    except (OSError, ValueError) as exc:
        raise RuntimeError(f"Cannot read event payload {path}: {exc}") from exc
    node = payload.get("pull_request")
    if not node:
        raise RuntimeError("Only pull request events are supported")
    return event_from_node(node)


class GitHubProvider(RepoHostProvider):
    def __init__(self, settings: PrlinkSettings) -> None:
        self._token = self._resolve_token(settings)
        self._repo = self._resolve_repo(settings)
        self._headers = {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _resolve_token(self, settings: PrlinkSettings) -> str:
        if settings.github_auth == "gh-cli":
            result = subprocess.run(
                ["gh", "auth", "token"],
                capture_output=True,
                text=True,
            )
            if result.returncode != 0:
                raise RuntimeError("gh auth token failed. Run: gh auth login")
            return result.stdout.strip()
        if settings.github_token:
            return settings.github_token.get_secret_value()
        raise RuntimeError("No GitHub credentials. Set PRLINK_GITHUB_TOKEN.")

    def _resolve_repo(self, settings: PrlinkSettings) -> str:
        repo = settings.github_repo or os.environ.get("GITHUB_REPOSITORY") or _repo_from_git_remote()
        if not repo:
            raise RuntimeError(
                "Cannot determine the repository. Set PRLINK_GITHUB_REPO or run inside a GitHub checkout."
            )
        return repo

    def _check(self, response: httpx.Response) -> dict:
        if response.status_code == 401:
            raise RuntimeError("GitHub API returned 401. Check PRLINK_GITHUB_TOKEN.")
        response.raise_for_status()
        return response.json()

    def _get(self, path: str) -> dict:
        return self._check(httpx.get(f"{BASE_URL}{path}", headers=self._headers, timeout=30))

    def _patch(self, path: str, body: dict) -> dict:
        return self._check(httpx.patch(f"{BASE_URL}{path}", headers=self._headers, json=body, timeout=30))

    def fetch_pull_request(self, number: int) -> PullRequestEvent:
        return event_from_node(self._get(f"/repos/{self._repo}/pulls/{number}"))

    def update_pull_request(self, number: int, update: PullRequestUpdate) -> None:
        body = update.model_dump(exclude_none=True)
        if not body:
            return
        self._patch(f"/repos/{self._repo}/pulls/{number}", body)

    def fetch_user(self, login: str) -> GitHubUser:
        node = self._get(f"/users/{login}")
        return GitHubUser(login=node["login"], name=node.get("name"))
