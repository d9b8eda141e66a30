"""Environment-driven configuration for slackcli.

This module resolves everything the login flow reads from outside the
command line:

* **Data directory** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.slackcli/`` on macOS and Windows. Holds crash logs only; tokens
  are never written to disk. See :func:`get_data_dir`.
* **Callback port** -- :func:`resolve_callback_port` reads
  ``SLACK_OAUTH_PORT`` and falls back to :data:`DEFAULT_OAUTH_PORT`.
* **Credential resolution** -- :func:`resolve_credential` reads the client
  secret from env vars, files, or an interactive prompt.
"""

from __future__ import annotations

import getpass
import os
import platform
import sys
from pathlib import Path

from slackcli.exceptions import ConfigError

_APP_NAME = "slackcli"

DEFAULT_OAUTH_PORT = 8765
"""Callback port used when ``SLACK_OAUTH_PORT`` is unset."""

PORT_ENV_VAR = "SLACK_OAUTH_PORT"
CLIENT_ID_ENV_VAR = "SLACK_CLIENT_ID"
CLIENT_SECRET_ENV_VAR = "SLACK_CLIENT_SECRET"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/slackcli/`` (default ``~/.local/share/slackcli/``).
    On macOS/Windows: ``~/.slackcli/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Callback port ---


def resolve_callback_port() -> int:
    """Return the local callback port for the OAuth redirect.

    Reads ``SLACK_OAUTH_PORT`` when set. The value is stripped of
    surrounding whitespace and must be an integer in ``1..65535``.

    Returns:
        The configured port, or :data:`DEFAULT_OAUTH_PORT` when unset.

    Raises:
        ConfigError: If the variable is set but empty, not an integer, or
            out of range.
    """
    raw = os.environ.get(PORT_ENV_VAR)
    if raw is None:
        return DEFAULT_OAUTH_PORT

    value = raw.strip()
    if not value:
        raise ConfigError(
            f"{PORT_ENV_VAR} is set but empty; unset it to use the default "
            f"port {DEFAULT_OAUTH_PORT}"
        )
    # int() would accept "+80" and "8_0"; only plain digits are ports.
    if not (value.isascii() and value.isdigit()) or int(value) > 65535:
        raise ConfigError(f"{PORT_ENV_VAR}={value!r} is not a valid port number")
    port = int(value)
    if port == 0:
        raise ConfigError(f"{PORT_ENV_VAR}: port must be between 1 and 65535")
    return port


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts user interactively (requires a TTY)

    Args:
        source: The source descriptor string.

    Returns:
        The resolved credential string.

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for client secret: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Slack client secret: ")

    raise ConfigError(f"Unknown credential source format: {source}")
