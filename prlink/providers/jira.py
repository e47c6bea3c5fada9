"""Jira Cloud REST API v3 (and Agile 1.0) provider."""

import httpx

from prlink.models import CreatedIssue, Sprint
from prlink.providers.base import TrackerProvider
from prlink.settings import PrlinkSettings

API = "/rest/api/3"
AGILE_API = "/rest/agile/1.0"


class JiraProvider(TrackerProvider):
    def __init__(self, settings: PrlinkSettings) -> None:
        if not settings.tracker_host:
            raise RuntimeError("tracker_host is required")
        self.host = settings.tracker_host.rstrip("/")
        self._auth = (
            (settings.tracker_email, settings.tracker_token.get_secret_value())
            if settings.tracker_email and settings.tracker_token
            else None
        )
        self._project = settings.project_key
        self._issue_type = settings.issue_type
        self._component = settings.component
        self._fix_version = settings.fix_version

    def _request(self, method: str, path: str, params: dict | None = None, body: dict | None = None) -> dict | list:
        response = httpx.request(
            method,
            f"{self.host}{path}",
            params=params,
            json=body,
            auth=self._auth,
            headers={"Accept": "application/json"},
            timeout=30,
        )
        if response.status_code == 401:
            raise RuntimeError("Jira API returned 401. Check tracker_email and tracker_token.")
        response.raise_for_status()
        # 204 No Content for PUT/POST actions that return nothing
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise RuntimeError(f"Jira returned a non-JSON response for {path}") from exc

    def _issue_fields(self, key: str, fields: str) -> dict:
        node = self._request("GET", f"{API}/issue/{key}", params={"fields": fields})
        return node.get("fields") or {}  # type: ignore[union-attr]

    def get_issue_summary(self, key: str) -> str | None:
        return self._issue_fields(key, "summary").get("summary")

    def get_version_id_by_prefix(self, prefix: str, project: str | None = None) -> str:
        project = project or self._project
        if not project:
            raise RuntimeError("project_key is required to look up versions")
        versions = self._request("GET", f"{API}/project/{project}/versions")
        for version in versions:  # type: ignore[union-attr]
            if version["name"].startswith(prefix):
                return str(version["id"])
        raise RuntimeError(f"No version starting with '{prefix}' in project {project}")

    def set_fix_version(self, key: str, version_id: str) -> None:
        self._request(
            "PUT",
            f"{API}/issue/{key}",
            body={"update": {"fixVersions": [{"add": {"id": version_id}}]}},
        )

    def post_comment(self, key: str, body: dict) -> None:
        self._request("POST", f"{API}/issue/{key}/comment", body={"body": body})

    def create_issue(self, summary: str, assignee_id: str | None = None) -> CreatedIssue:
        if not self._project or not self._issue_type:
            raise RuntimeError("project_key and issue_type are required to create an issue")
        fields: dict = {
            "project": {"key": self._project},
            "summary": summary,
            "issuetype": {"name": self._issue_type},
        }
        if assignee_id:
            fields["assignee"] = {"id": assignee_id}
        if self._component:
            fields["components"] = [{"name": self._component}]
        if self._fix_version:
            fields["fixVersions"] = [{"id": self.get_version_id_by_prefix(self._fix_version)}]
        node = self._request("POST", f"{API}/issue", body={"fields": fields})
        key = node["key"]  # type: ignore[call-overload]
        return CreatedIssue(key=key, url=f"{self.host}/browse/{key}")

    def get_user_id_by_fuzzy_name(self, name: str) -> str:
        users = self._request("GET", f"{API}/user/search", params={"query": name})
        if not users:
            raise RuntimeError(f"No Jira user matches '{name}'")
        account_id = users[0].get("accountId")  # type: ignore[index]
        if not account_id:
            raise RuntimeError(f"Jira user matching '{name}' has no accountId")
        return account_id

    def _my_account_id(self) -> str:
        return self._request("GET", f"{API}/myself")["accountId"]  # type: ignore[call-overload]

    def was_created_by_me(self, key: str) -> bool:
        creator = self._issue_fields(key, "creator").get("creator") or {}
        return creator.get("accountId") == self._my_account_id()

    def transition_issue(self, key: str, transition_name: str) -> None:
        data = self._request("GET", f"{API}/issue/{key}/transitions")
        transitions = data.get("transitions", [])  # type: ignore[union-attr]
        for t in transitions:
            if t["name"].lower() == transition_name.lower():
                self._request("POST", f"{API}/issue/{key}/transitions", body={"transition": {"id": t["id"]}})
                return
        available = ", ".join(t["name"] for t in transitions) or "(none)"
        raise RuntimeError(f"Transition '{transition_name}' not available for {key}. Available: {available}")

    def assign_issue(self, key: str, account_id: str) -> None:
        self._request("PUT", f"{API}/issue/{key}/assignee", body={"accountId": account_id})

    def get_issue_reporter_id(self, key: str) -> str:
        reporter = self._issue_fields(key, "reporter").get("reporter")
        if not reporter:
            raise RuntimeError(f"Issue {key} has no reporter")
        return reporter["accountId"]

    def get_active_sprint(self, board_id: int) -> Sprint:
        data = self._request("GET", f"{AGILE_API}/board/{board_id}/sprint", params={"state": "active"})
        values = data.get("values", [])  # type: ignore[union-attr]
        if not values:
            raise RuntimeError(f"Board {board_id} has no active sprint")
        return Sprint(id=values[0]["id"], name=values[0]["name"])

    def move_issues_to_sprint(self, keys: list[str], sprint_id: int) -> None:
        self._request("POST", f"{AGILE_API}/sprint/{sprint_id}/issue", body={"issues": keys})
