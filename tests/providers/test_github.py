"""Tests for GitHubProvider and event loading using pytest-httpx."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from pytest_httpx import HTTPXMock

from prlink.models import GitHubUser, PullRequestUpdate
from prlink.providers.github import BASE_URL, GitHubProvider, _repo_from_git_remote, event_from_node, load_event
from prlink.settings import PrlinkSettings


def _settings(**kwargs) -> PrlinkSettings:
    defaults = {"github_token": "ghp_test", "github_auth": "token", "github_repo": "acme/web"}
    defaults.update(kwargs)
    return PrlinkSettings(**defaults)  # type: ignore[arg-type]


class TestResolveToken:
    def test_manual_token(self) -> None:
        provider = GitHubProvider(_settings(github_token="ghp_mytoken"))
        assert provider._token == "ghp_mytoken"

    def test_ghcli_token(self) -> None:
        mock_result = MagicMock(returncode=0, stdout="ghp_from_cli\n")
        with patch("subprocess.run", return_value=mock_result):
            provider = GitHubProvider(_settings(github_token=None, github_auth="gh-cli"))
        assert provider._token == "ghp_from_cli"

    def test_ghcli_not_authenticated_raises(self) -> None:
        mock_result = MagicMock(returncode=1)
        with patch("subprocess.run", return_value=mock_result):
            with pytest.raises(RuntimeError, match="gh auth token failed"):
                GitHubProvider(_settings(github_token=None, github_auth="gh-cli"))

    def test_no_credentials_raises(self) -> None:
        with pytest.raises(RuntimeError, match="No GitHub credentials"):
            GitHubProvider(_settings(github_token=None))


class TestResolveRepo:
    def test_from_settings(self) -> None:
        assert GitHubProvider(_settings())._repo == "acme/web"

    def test_from_actions_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_REPOSITORY", "acme/api")
        assert GitHubProvider(_settings(github_repo=None))._repo == "acme/api"

    def test_from_git_remote(self) -> None:
        git_remote = MagicMock(returncode=0, stdout="git@github.com:acme/cli.git\n")
        with patch("subprocess.run", return_value=git_remote):
            assert GitHubProvider(_settings(github_repo=None))._repo == "acme/cli"

    def test_unknown_repo_raises(self) -> None:
        no_remote = MagicMock(returncode=128, stdout="")
        with patch("subprocess.run", return_value=no_remote):
            with pytest.raises(RuntimeError, match="Cannot determine the repository"):
                GitHubProvider(_settings(github_repo=None))


class TestRepoFromGitRemote:
    def test_https_github_url(self) -> None:
        m = MagicMock(returncode=0, stdout="https://github.com/acme/web.git\n")
        with patch("subprocess.run", return_value=m):
            assert _repo_from_git_remote() == "acme/web"

    def test_ssh_github_url(self) -> None:
        m = MagicMock(returncode=0, stdout="git@github.com:acme/web.git\n")
        with patch("subprocess.run", return_value=m):
            assert _repo_from_git_remote() == "acme/web"

    def test_non_github_remote_returns_none(self) -> None:
        m = MagicMock(returncode=0, stdout="https://gitlab.com/acme/web.git\n")
        with patch("subprocess.run", return_value=m):
            assert _repo_from_git_remote() is None

    def test_no_remote_returns_none(self) -> None:
        m = MagicMock(returncode=128, stdout="")
        with patch("subprocess.run", return_value=m):
            assert _repo_from_git_remote() is None


class TestEvents:
    def test_event_from_node(self, pr_node: dict) -> None:
        event = event_from_node(pr_node)
        assert event.number == 7
        assert event.head_branch == "feature/login"
        assert event.author_login == "jdoe"
        assert event.merged is False
        assert event.payload == pr_node

    def test_null_title_and_body(self, pr_node: dict) -> None:
        event = event_from_node({**pr_node, "title": None, "body": None})
        assert event.title == ""
        assert event.body is None

    def test_load_event(self, tmp_path: Path, pr_node: dict) -> None:
        path = tmp_path / "event.json"
        path.write_text(json.dumps({"action": "closed", "pull_request": {**pr_node, "merged": True}}))
        event = load_event(path)
        assert event.merged is True
        assert event.title == "Fix login bug AB-42"

    def test_non_pull_request_event_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "event.json"
        path.write_text(json.dumps({"ref": "refs/heads/main"}))
        with pytest.raises(RuntimeError, match="Only pull request events"):
            load_event(path)

    def test_missing_event_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(RuntimeError, match="Cannot read event payload"):
            load_event(tmp_path / "missing.json")

    def test_invalid_json_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "event.json"
        path.write_text("{not json")
        with pytest.raises(RuntimeError, match="Cannot read event payload"):
            load_event(path)


class TestPullRequests:
    def test_fetch_pull_request(self, httpx_mock: HTTPXMock, pr_node: dict) -> None:
        httpx_mock.add_response(url=f"{BASE_URL}/repos/acme/web/pulls/7", json={**pr_node, "title": "Renamed AB-9"})
        event = GitHubProvider(_settings()).fetch_pull_request(7)
        assert event.title == "Renamed AB-9"

    def test_update_sends_only_set_fields(self, httpx_mock: HTTPXMock, pr_node: dict) -> None:
        httpx_mock.add_response(method="PATCH", url=f"{BASE_URL}/repos/acme/web/pulls/7", json=pr_node)
        GitHubProvider(_settings()).update_pull_request(7, PullRequestUpdate(body="new body"))
        request = httpx_mock.get_request()
        assert request is not None
        assert json.loads(request.content) == {"body": "new body"}
        assert request.headers["Authorization"] == "Bearer ghp_test"

    def test_update_title_and_body(self, httpx_mock: HTTPXMock, pr_node: dict) -> None:
        httpx_mock.add_response(method="PATCH", url=f"{BASE_URL}/repos/acme/web/pulls/7", json=pr_node)
        GitHubProvider(_settings()).update_pull_request(7, PullRequestUpdate(title="T [AB-1]", body="B"))
        request = httpx_mock.get_request()
        assert request is not None
        assert json.loads(request.content) == {"title": "T [AB-1]", "body": "B"}

    def test_empty_update_sends_nothing(self, httpx_mock: HTTPXMock) -> None:
        GitHubProvider(_settings()).update_pull_request(7, PullRequestUpdate())
        assert httpx_mock.get_requests() == []

    def test_401_raises_with_message(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(
            url=f"{BASE_URL}/repos/acme/web/pulls/7",
            status_code=401,
            json={"message": "Bad credentials"},
        )
        with pytest.raises(RuntimeError, match="401"):
            GitHubProvider(_settings()).fetch_pull_request(7)


class TestFetchUser:
    def test_returns_user(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=f"{BASE_URL}/users/jdoe", json={"login": "jdoe", "name": "Jane Doe"})
        assert GitHubUser(login="jdoe", name="Jane Doe") == GitHubProvider(_settings()).fetch_user("jdoe")

    def test_user_without_name(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=f"{BASE_URL}/users/jdoe", json={"login": "jdoe", "name": None})
        assert GitHubProvider(_settings()).fetch_user("jdoe").name is None
