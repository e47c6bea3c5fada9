"""Shared pydantic models — the contract between providers, the orchestrator and main.py."""

from typing import Literal

from pydantic import BaseModel, ConfigDict


class PullRequestEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: int
    title: str
    body: str | None = None
    head_branch: str
    merged: bool = False
    html_url: str
    author_login: str | None = None
    payload: dict = {}  # raw pull_request object, forwarded to the webhook


class PullRequestUpdate(BaseModel):
    """Fields left as None are not sent, so the remote PR keeps them."""

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    body: str | None = None


class ResolvedKey(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str  # AB-123
    source: Literal["title", "branch"]


class Resolution(BaseModel):
    """Ticket state threaded from key resolution through creation into the shared tail."""

    model_config = ConfigDict(frozen=True)

    key: str | None = None
    in_title: bool = False
    summary: str | None = None
    created: bool = False


class GitHubUser(BaseModel):
    model_config = ConfigDict(frozen=True)

    login: str
    name: str | None = None


class CreatedIssue(BaseModel):
    """Returned by create_issue — minimal, just what the caller needs."""

    model_config = ConfigDict(frozen=True)

    key: str
    url: str


class Sprint(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str


class BestEffort(BaseModel):
    """Result of a lookup whose failure must not stop the run."""

    model_config = ConfigDict(frozen=True)

    value: str | None = None
    diagnostic: str | None = None


class Outcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["skipped", "completed", "failed"]
    message: str

    @property
    def exit_code(self) -> int:
        return 1 if self.status == "failed" else 0

    @classmethod
    def skipped(cls, message: str) -> "Outcome":
        return cls(status="skipped", message=message)

    @classmethod
    def completed(cls, message: str) -> "Outcome":
        return cls(status="completed", message=message)

    @classmethod
    def failed(cls, message: str) -> "Outcome":
        return cls(status="failed", message=message)
