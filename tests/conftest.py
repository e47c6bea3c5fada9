"""Shared test fixtures."""

import os

import pytest

from prlink.models import PullRequestEvent


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep PRLINK_* variables from the developer's shell out of the tests."""
    for name in list(os.environ):
        if name.startswith("PRLINK_") or name in ("GITHUB_REPOSITORY", "GITHUB_EVENT_PATH", "GITHUB_ACTOR"):
            monkeypatch.delenv(name)


@pytest.fixture
def event() -> PullRequestEvent:
    return PullRequestEvent(
        number=7,
        title="Fix login bug AB-42",
        body="Original description.",
        head_branch="feature/login",
        html_url="https://github.com/acme/web/pull/7",
        author_login="jdoe",
        payload={"number": 7},
    )


@pytest.fixture
def pr_node() -> dict:
    """pull_request object as GitHub sends it in events and REST responses."""
    return {
        "number": 7,
        "title": "Fix login bug AB-42",
        "body": "Original description.",
        "head": {"ref": "feature/login"},
        "merged": False,
        "html_url": "https://github.com/acme/web/pull/7",
        "user": {"login": "jdoe"},
    }
