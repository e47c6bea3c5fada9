"""Pure text rules: ticket key resolution, link insertion, title and transition choice."""

import re

from prlink.models import ResolvedKey

# A key must follow a non-letter so "XAB-1" inside a longer word never matches.
KEY_PATTERN = re.compile(r"[^A-Za-z]([A-Z]+-\d+)")


# ---------------------------------------------------------------------------
# Key resolution
# ---------------------------------------------------------------------------


def find_key(text: str | None) -> str | None:
    """Return the first ticket key in text, or None."""
    if not text:
        return None
    match = KEY_PATTERN.search(text)
    return match.group(1) if match else None


def resolve_key(title: str | None, branch: str | None) -> ResolvedKey | None:
    """Resolve the ticket key from the PR title, falling back to the branch name.

    The branch is never consulted when the title matches. A miss means the PR
    has no linked ticket; it is not an error.
    """
    key = find_key(title)
    if key:
        return ResolvedKey(key=key, source="title")
    key = find_key(branch)
    if key:
        return ResolvedKey(key=key, source="branch")
    return None


# ---------------------------------------------------------------------------
# Description editing
# ---------------------------------------------------------------------------


def format_link(key: str, host: str, summary: str | None = None) -> str:
    """Markdown link to the ticket: [AB-1: Summary](https://host/browse/AB-1)."""
    label = f"{key}: {summary}" if summary else key
    return f"[{label}]({host.rstrip('/')}/browse/{key})"


def insert_link(body: str | None, link: str, after_pattern: str | None = None) -> str:
    """Insert link into body without touching the surrounding text.

    Without an anchor (or when the anchor does not match) the link goes on its
    own line at the very top. Otherwise it is appended inline, after a single
    space, right after the end of the first anchor match.
    """
    body = body or ""
    match = re.search(after_pattern, body) if after_pattern else None
    if match is None:
        return f"{link}\n{body}"
    end = match.end()
    return f"{body[:end]} {link}{body[end:]}"


# ---------------------------------------------------------------------------
# Title and transition
# ---------------------------------------------------------------------------


def compose_title(title: str, key: str, key_in_title: bool) -> str | None:
    """Return the new PR title, or None when it should stay as it is."""
    if key_in_title:
        return None
    return f"{title} [{key}]"


def choose_transition(
    configured: str | None,
    other_assignee: str | None,
    created_by_me: bool,
) -> str | None:
    # Tickets opened by someone else move through their own transition.
    if other_assignee and not created_by_me:
        return other_assignee
    return configured
