"""Abstract base classes for the tracker, repo host and webhook collaborators."""

from abc import ABC, abstractmethod

from prlink.models import CreatedIssue, GitHubUser, PullRequestEvent, PullRequestUpdate, Sprint


class TrackerProvider(ABC):
    @abstractmethod
    def get_issue_summary(self, key: str) -> str | None: ...

    @abstractmethod
    def get_version_id_by_prefix(self, prefix: str, project: str | None = None) -> str: ...

    @abstractmethod
    def set_fix_version(self, key: str, version_id: str) -> None: ...

    @abstractmethod
    def post_comment(self, key: str, body: dict) -> None: ...

    @abstractmethod
    def create_issue(self, summary: str, assignee_id: str | None = None) -> CreatedIssue: ...

    @abstractmethod
    def get_user_id_by_fuzzy_name(self, name: str) -> str: ...

    @abstractmethod
    def was_created_by_me(self, key: str) -> bool: ...

    @abstractmethod
    def transition_issue(self, key: str, transition_name: str) -> None: ...

    @abstractmethod
    def assign_issue(self, key: str, account_id: str) -> None: ...

    @abstractmethod
    def get_issue_reporter_id(self, key: str) -> str: ...

    @abstractmethod
    def get_active_sprint(self, board_id: int) -> Sprint: ...

    @abstractmethod
    def move_issues_to_sprint(self, keys: list[str], sprint_id: int) -> None: ...


class RepoHostProvider(ABC):
    @abstractmethod
    def fetch_pull_request(self, number: int) -> PullRequestEvent: ...

    @abstractmethod
    def update_pull_request(self, number: int, update: PullRequestUpdate) -> None: ...

    @abstractmethod
    def fetch_user(self, login: str) -> GitHubUser: ...


class Notifier(ABC):
    @abstractmethod
    def notify(self, url: str, payload: dict) -> None: ...
