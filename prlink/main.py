"""prlink CLI — all commands."""

from pathlib import Path
from typing import Annotated

import httpx
import typer
from rich import print as rprint
from rich.markup import escape
from rich.table import Table

from prlink.orchestrator import reconcile
from prlink.providers.github import GitHubProvider, load_event
from prlink.providers.jira import JiraProvider
from prlink.providers.webhook import WebhookNotifier
from prlink.rules import resolve_key
from prlink.settings import get_settings

app = typer.Typer(help="prlink: keep pull requests and Jira tickets in sync", no_args_is_help=True)

ConfigOpt = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="TOML defaults file (default: .github/prlink.toml)"),
]

_OUTCOME_STYLE = {"completed": "[green]✓[/green]", "skipped": "[dim]–[/dim]", "failed": "[red]✗[/red]"}


@app.command("run")
def run(
    event_path: Annotated[
        Path,
        typer.Option("--event", "-e", envvar="GITHUB_EVENT_PATH", help="Pull request event payload (JSON)"),
    ],
    actor: Annotated[
        str | None,
        typer.Option("--actor", envvar="GITHUB_ACTOR", help="Login of the user who triggered the run"),
    ] = None,
    config: ConfigOpt = None,
) -> None:
    """Reconcile a pull request event with its Jira ticket."""
    settings = get_settings(config)

    try:
        event = load_event(event_path)
        outcome = reconcile(
            event,
            settings,
            tracker=JiraProvider(settings),
            repo=GitHubProvider(settings),
            notifier=WebhookNotifier(),
            actor=actor,
        )
    except (httpx.HTTPError, RuntimeError) as exc:
        rprint(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1)

    rprint(f"{_OUTCOME_STYLE[outcome.status]} {escape(outcome.message)}")
    raise typer.Exit(outcome.exit_code)


@app.command("resolve-key")
def resolve_key_cmd(
    title: Annotated[str, typer.Argument(help="Pull request title")],
    branch: Annotated[str, typer.Argument(help="Head branch name")] = "",
) -> None:
    """Print the Jira key found in a title or branch (no trailing newline)."""
    resolved = resolve_key(title, branch)
    if resolved is None:
        raise typer.Exit(1)
    # No trailing newline — designed for shell substitution: $(prlink resolve-key "$TITLE" "$BRANCH")
    typer.echo(resolved.key, nl=False)


@app.command("config-show")
def config_show(config: ConfigOpt = None) -> None:
    """Show resolved configuration (masks credentials)."""
    settings = get_settings(config)

    def mask(val: str | None) -> str:
        if val is None:
            return "[dim](not set)[/dim]"
        if len(val) <= 5:
            return "***"
        return f"...{val[-5:]}"

    def show(val: object) -> str:
        return "[dim](not set)[/dim]" if val is None else escape(str(val))

    table = Table(title="prlink Configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    for name, value in settings.model_dump().items():
        if name in ("github_token", "tracker_token"):
            secret = getattr(settings, name)
            table.add_row(name, mask(secret.get_secret_value() if secret else None))
        else:
            table.add_row(name, show(value))

    rprint(table)
