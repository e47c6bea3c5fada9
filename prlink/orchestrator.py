"""Reconcile one pull request event with its Jira ticket.

`reconcile` picks exactly one mode, in this order:

1. webhook relay      (webhook_url set)
2. append description (is_only_append_description)
3. create issue       (is_create_issue), then the shared tail
4. full sync          (default), the shared tail

Every path returns an Outcome instead of exiting. Collaborator failures on
required calls propagate to the caller.
"""

from collections.abc import Callable

import httpx
from rich import print as rprint
from rich.markup import escape

from prlink.models import BestEffort, Outcome, PullRequestEvent, PullRequestUpdate, Resolution
from prlink.providers.base import Notifier, RepoHostProvider, TrackerProvider
from prlink.rules import choose_transition, compose_title, format_link, insert_link, resolve_key
from prlink.settings import PrlinkSettings

NO_KEY = "No Jira issue detected in PR title/branch"


def linked_pr_comment(url: str) -> dict:
    """Atlassian document rendering the PR as a smart card."""
    return {
        "type": "doc",
        "version": 1,
        "content": [{"type": "blockCard", "attrs": {"url": url}}],
    }


def best_effort(lookup: Callable[[str], str | None], arg: str) -> BestEffort:
    try:
        return BestEffort(value=lookup(arg))
    except (httpx.HTTPError, RuntimeError) as exc:
        return BestEffort(diagnostic=str(exc))


def _warn(result: BestEffort, what: str) -> None:
    if result.diagnostic:
        rprint(f"[yellow]Warning:[/yellow] {escape(what)}: {escape(result.diagnostic)}")


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def _latest_title(event: PullRequestEvent, repo: RepoHostProvider) -> str:
    # The title may have been edited after the event fired.
    return repo.fetch_pull_request(event.number).title or event.title


def _resolve(title: str, event: PullRequestEvent, settings: PrlinkSettings, tracker: TrackerProvider) -> Resolution:
    resolved = resolve_key(title, event.head_branch)
    if resolved is None:
        return Resolution()
    rprint(f"[dim]Detected Jira issue in PR {resolved.source}: {resolved.key}[/dim]")
    resolution = Resolution(key=resolved.key, in_title=resolved.source == "title")
    if settings.has_tracker_credentials:
        summary = best_effort(tracker.get_issue_summary, resolved.key)
        _warn(summary, f"could not fetch summary of {resolved.key}")
        resolution = resolution.model_copy(update={"summary": summary.value})
    return resolution


def _link(resolution: Resolution, settings: PrlinkSettings) -> str:
    return format_link(resolution.key, settings.tracker_host or "", resolution.summary)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------


def _relay_webhook(
    event: PullRequestEvent,
    title: str,
    resolution: Resolution,
    settings: PrlinkSettings,
    tracker: TrackerProvider,
    repo: RepoHostProvider,
    notifier: Notifier,
) -> Outcome:
    key = resolution.key
    if not key:
        rprint(f"[dim]{NO_KEY}[/dim]")
        return Outcome.skipped(NO_KEY)

    add_fix_version = event.merged and settings.is_add_fix_version_on_merge
    if add_fix_version and not settings.fix_version:
        return Outcome.failed("Adding a fix version on merge needs fix_version")

    notifier.notify(settings.webhook_url, {"issues": [key], "pr": event.payload})  # type: ignore[arg-type]
    rprint("[dim]Webhook complete[/dim]")

    if event.merged:
        if add_fix_version:
            project = settings.project_key or key.split("-", 1)[0]
            version_id = tracker.get_version_id_by_prefix(settings.fix_version, project)  # type: ignore[arg-type]
            tracker.set_fix_version(key, version_id)
            rprint(f"[dim]Fix version {escape(settings.fix_version or '')} added to {key}[/dim]")
        return Outcome.completed(f"Webhook notified for merged PR ({key})")

    update = PullRequestUpdate(
        title=compose_title(title, key, resolution.in_title),
        body=insert_link(event.body, _link(resolution, settings)),
    )
    repo.update_pull_request(event.number, update)

    if settings.has_tracker_credentials:
        tracker.post_comment(key, linked_pr_comment(event.html_url))

    return Outcome.completed(f"Webhook notified and PR linked to {key}")


def _append_description(
    event: PullRequestEvent,
    resolution: Resolution,
    settings: PrlinkSettings,
    repo: RepoHostProvider,
) -> Outcome:
    if not resolution.key:
        rprint(f"[dim]{NO_KEY}[/dim]")
        return Outcome.skipped(NO_KEY)
    body = insert_link(event.body, _link(resolution, settings), settings.append_after_pattern)
    repo.update_pull_request(event.number, PullRequestUpdate(body=body))
    rprint("[dim]Update PR description complete[/dim]")
    return Outcome.completed(f"PR description linked to {resolution.key}")


def _create_issue(
    title: str,
    actor: str,
    settings: PrlinkSettings,
    tracker: TrackerProvider,
    repo: RepoHostProvider,
) -> Resolution:
    user = repo.fetch_user(actor)
    assignee = best_effort(tracker.get_user_id_by_fuzzy_name, user.name or user.login)
    _warn(assignee, f"no Jira user for {actor}, creating the issue unassigned")

    created = tracker.create_issue(title, assignee.value)
    rprint(f"[green]✓[/green] Created [bold]{escape(created.key)}[/bold] {escape(created.url)}")

    if settings.board_id:
        sprint = tracker.get_active_sprint(settings.board_id)
        tracker.move_issues_to_sprint([created.key], sprint.id)
        rprint(f"[dim]Moved {escape(created.key)} to sprint {escape(sprint.name)}[/dim]")

    return Resolution(key=created.key, in_title=False, summary=title, created=True)


def _sync_ticket(
    event: PullRequestEvent,
    title: str,
    resolution: Resolution,
    settings: PrlinkSettings,
    tracker: TrackerProvider,
    repo: RepoHostProvider,
) -> Outcome:
    key = resolution.key
    if not key:
        rprint(f"[dim]{NO_KEY}[/dim]")
        return Outcome.skipped(NO_KEY)

    transition = settings.transition_name
    if settings.other_assignee_transition_name:
        transition = choose_transition(
            settings.transition_name,
            settings.other_assignee_transition_name,
            tracker.was_created_by_me(key),
        )
    if transition:
        tracker.transition_issue(key, transition)
        rprint(f"[dim]{key} moved through '{escape(transition)}'[/dim]")

    if settings.is_only_transition:
        return Outcome.completed(f"Transition of {key} complete")

    if settings.is_assign_to_reporter:
        tracker.assign_issue(key, tracker.get_issue_reporter_id(key))

    tracker.post_comment(key, linked_pr_comment(event.html_url))

    key_in_title = resolution.in_title and not resolution.created
    update = PullRequestUpdate(
        title=compose_title(title, key, key_in_title),
        body=insert_link(event.body, _link(resolution, settings)),
    )
    repo.update_pull_request(event.number, update)
    return Outcome.completed(f"PR linked to {key}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def reconcile(
    event: PullRequestEvent,
    settings: PrlinkSettings,
    *,
    tracker: TrackerProvider,
    repo: RepoHostProvider,
    notifier: Notifier,
    actor: str | None = None,
) -> Outcome:
    title = _latest_title(event, repo)
    resolution = _resolve(title, event, settings, tracker)

    if settings.webhook_url:
        return _relay_webhook(event, title, resolution, settings, tracker, repo, notifier)

    if settings.is_only_append_description:
        return _append_description(event, resolution, settings, repo)

    if settings.is_create_issue:
        missing = [name for name in ("project_key", "issue_type") if not getattr(settings, name)]
        if missing:
            return Outcome.failed(f"Creating an issue needs {' and '.join(missing)}")
        if resolution.key:
            rprint(f"[dim]Jira issue {resolution.key} already linked in PR title/branch[/dim]")
            return Outcome.skipped(f"Issue {resolution.key} already exists")
        rprint(f"[dim]{NO_KEY}[/dim]")
        login = actor or event.author_login
        if not login:
            return Outcome.failed("Creating an issue needs the triggering actor's login")
        resolution = _create_issue(title, login, settings, tracker, repo)

    return _sync_ticket(event, title, resolution, settings, tracker, repo)
