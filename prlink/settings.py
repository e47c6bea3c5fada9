"""Settings resolution: environment over an optional TOML defaults file."""

import re
from functools import lru_cache
from pathlib import Path
from typing import Literal

import tomlkit
import typer
from pydantic import SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

CONFIG_PATH = Path(".github") / "prlink.toml"


class PrlinkSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PRLINK_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,  # Actions exports unset inputs as ""
        extra="ignore",
    )

    # GitHub
    github_token: SecretStr | None = None
    github_auth: Literal["token", "gh-cli"] = "token"
    github_repo: str | None = None  # owner/repo, defaults to GITHUB_REPOSITORY

    # Webhook relay
    webhook_url: str | None = None

    # Jira
    tracker_host: str | None = None  # https://acme.atlassian.net
    tracker_email: str | None = None
    tracker_token: SecretStr | None = None
    project_key: str | None = None
    fix_version: str | None = None  # version name prefix
    component: str | None = None
    issue_type: str | None = None
    board_id: int | None = None

    # Workflow
    transition_name: str | None = None
    other_assignee_transition_name: str | None = None
    append_after_pattern: str | None = None
    is_only_transition: bool = False
    is_create_issue: bool = False
    is_only_append_description: bool = False
    is_assign_to_reporter: bool = False
    is_add_fix_version_on_merge: bool = False

    @field_validator("append_after_pattern")
    @classmethod
    def _compiles(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                re.compile(value)
            except re.error as exc:
                raise ValueError(f"invalid regular expression: {exc}") from exc
        return value

    @property
    def has_tracker_credentials(self) -> bool:
        return bool(self.tracker_email and self.tracker_token)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Init kwargs carry the TOML defaults, so env vars and .env must outrank them.
        return env_settings, dotenv_settings, init_settings, file_secret_settings


@lru_cache(maxsize=4)
def _load_toml(path: Path) -> tomlkit.TOMLDocument:
    """Load the TOML defaults file, returning an empty document if missing."""
    if not path.exists():
        return tomlkit.document()
    return tomlkit.load(path.open())


def get_settings(config_path: Path | None = None) -> PrlinkSettings:
    """Return fully populated settings or exit 1 with a message.

    Precedence (highest to lowest):
    1. PRLINK_* environment variables
    2. PRLINK_* entries in .env in cwd
    3. Keys in the TOML file (--config, default .github/prlink.toml)
    """
    path = config_path or CONFIG_PATH
    defaults = {k: v for k, v in _load_toml(path).unwrap().items() if not isinstance(v, dict)}

    try:
        settings = PrlinkSettings(**defaults)
    except ValidationError as exc:
        typer.echo(f"Invalid configuration: {exc}")
        raise typer.Exit(1)

    if not settings.tracker_host:
        typer.echo(f"Missing Jira host. Set PRLINK_TRACKER_HOST or tracker_host in {path}")
        raise typer.Exit(1)
    if settings.github_auth == "token" and not settings.github_token:
        typer.echo(
            f"Missing GitHub credentials. Set PRLINK_GITHUB_TOKEN or github_token in {path}, "
            'or set github_auth = "gh-cli" to use the gh CLI.'
        )
        raise typer.Exit(1)

    return settings
