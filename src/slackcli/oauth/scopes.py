"""Scope presets for the Slack authorize request.

Users may pass ``all`` in place of a scope list to request every common
bot/user scope the CLI knows how to use. Admin scopes are never part of
the preset.
"""

from __future__ import annotations

from collections.abc import Iterable

ALL_PRESET = "all"

_ALL_SCOPES: tuple[str, ...] = (
    "channels:history",
    "channels:read",
    "channels:write",
    "chat:write",
    "conversations.connect:read",
    "conversations.connect:write",
    "dnd:read",
    "dnd:write",
    "emoji:read",
    "files:read",
    "files:write",
    "groups:history",
    "groups:read",
    "groups:write",
    "im:history",
    "im:read",
    "im:write",
    "mpim:history",
    "mpim:read",
    "mpim:write",
    "pins:read",
    "pins:write",
    "reactions:read",
    "reactions:write",
    "reminders:read",
    "reminders:write",
    "search:read",
    "stars:read",
    "stars:write",
    "team:read",
    "usergroups:read",
    "usergroups:write",
    "users.profile:read",
    "users.profile:write",
    "users:read",
)


def all_scopes() -> list[str]:
    """Return the ``all`` preset, sorted alphabetically."""
    return sorted(_ALL_SCOPES)


def expand_scopes(scopes: Iterable[str]) -> list[str]:
    """Expand presets and normalise a user-supplied scope list.

    Each entry is stripped; blank entries are dropped. ``all`` (any case)
    expands to :func:`all_scopes`. Other scopes keep their case. The
    result is de-duplicated and sorted.

    Example::

        >>> expand_scopes([" chat:write", "users:read", "chat:write"])
        ['chat:write', 'users:read']
    """
    expanded: set[str] = set()
    for raw in scopes:
        scope = raw.strip()
        if not scope:
            continue
        if scope.lower() == ALL_PRESET:
            expanded.update(_ALL_SCOPES)
        else:
            expanded.add(scope)
    return sorted(expanded)


def split_scopes(value: str | None) -> list[str]:
    """Split a comma-separated ``--scopes`` option value and expand it."""
    if not value:
        return []
    return expand_scopes(value.split(","))
