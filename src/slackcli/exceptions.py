"""Exception hierarchy for slackcli.

All exceptions inherit from :class:`SlackCliError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`slackcli.exit_codes`.
The top-level error handler in :func:`slackcli.app.main` catches
``SlackCliError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    SlackCliError               (exit 1)
    +-- ConfigError             (exit 2)
    +-- OAuthError              (exit 3)
    |   +-- NetworkError        (exit 6)
    |   +-- HttpError           (exit 5)
    |   +-- ParseError          (exit 7)
    |   +-- SlackError          (exit 3)
    |   |   +-- ProviderDeniedError
    |   +-- StateMismatchError  (exit 8)
    |   +-- ServerError         (exit 1)
    |   |   +-- CallbackError
    |   +-- CallbackTimeoutError (exit 9)
    +-- TunnelError             (exit 10)
        +-- TunnelStartError
        +-- TunnelTimeoutError  (exit 9)
        +-- TunnelStopError

None of these are retried automatically. The caller decides whether to
restart the whole login attempt.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from slackcli.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PARSE_ERROR,
    EXIT_PROCESS_ERROR,
    EXIT_SECURITY_VIOLATION,
    EXIT_SERVER_ERROR,
    EXIT_TIMEOUT,
)

if TYPE_CHECKING:
    from slackcli.tunnel.manager import TunnelHandle


class SlackCliError(Exception):
    """Base exception for all slackcli errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`slackcli.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(SlackCliError):
    """Raised for missing or invalid OAuth configuration or port settings.

    Always raised before any network I/O takes place.
    """

    exit_code = EXIT_INVALID_USAGE


class OAuthError(SlackCliError):
    """Base class for failures during the authorization handshake."""

    exit_code = EXIT_AUTH_FAILURE


class NetworkError(OAuthError):
    """Raised when the token endpoint cannot be reached at the transport level.

    Safe to retry the whole flow from scratch.
    """

    exit_code = EXIT_CONNECTION_ERROR


class HttpError(OAuthError):
    """Raised when the token endpoint returns a non-2xx status.

    Attributes:
        status_code: The HTTP status code.
        body: The raw response body, preserved for diagnostics.
    """

    exit_code = EXIT_SERVER_ERROR

    def __init__(self, status_code: int, body: str):
        super().__init__(f"HTTP error {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class ParseError(OAuthError):
    """Raised when a provider response (or a URL template) cannot be parsed."""

    exit_code = EXIT_PARSE_ERROR


class SlackError(OAuthError):
    """Raised when Slack itself reports an error (``ok: false``).

    Attributes:
        error_code: Slack's error string, e.g. ``invalid_code``.
    """

    def __init__(self, error_code: str):
        super().__init__(f"Slack API error: {error_code}")
        self.error_code = error_code


class ProviderDeniedError(SlackError):
    """Raised when the redirect carries ``?error=...`` (e.g. ``access_denied``)."""


class StateMismatchError(OAuthError):
    """Raised when the callback ``state`` differs from the one we issued.

    This is the CSRF defence of the flow. It is never downgraded to a
    warning and never retried.

    Attributes:
        expected: The state generated for this login attempt.
        actual: The state found in the redirect.
    """

    exit_code = EXIT_SECURITY_VIOLATION

    def __init__(self, expected: str, actual: str):
        super().__init__(f"State mismatch: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class ServerError(OAuthError):
    """Raised when the local callback listener cannot bind, accept or respond."""

    exit_code = EXIT_GENERIC_FAILURE


class CallbackError(ServerError):
    """Raised when the redirect request lacks both ``code``/``state`` and ``error``."""


class CallbackTimeoutError(OAuthError):
    """Raised when no redirect reaches the callback listener in time.

    Attributes:
        timeout: The configured bound, in seconds.
    """

    exit_code = EXIT_TIMEOUT

    def __init__(self, timeout: float):
        super().__init__(f"Timeout after {timeout:g} seconds waiting for callback")
        self.timeout = timeout


class TunnelError(SlackCliError):
    """Base class for tunnel helper process failures."""

    exit_code = EXIT_PROCESS_ERROR


class TunnelStartError(TunnelError):
    """Raised when the tunnel helper cannot be spawned."""


class TunnelTimeoutError(TunnelError):
    """Raised when the helper does not announce a public URL in time.

    The helper process is left running; :attr:`handle` owns it so the
    caller can stop it or keep it.

    Attributes:
        timeout: The configured bound, in seconds.
        handle: The still-running :class:`~slackcli.tunnel.manager.TunnelHandle`.
    """

    exit_code = EXIT_TIMEOUT

    def __init__(self, message: str, timeout: float, handle: Any = None):
        super().__init__(message)
        self.timeout = timeout
        self.handle: TunnelHandle | None = handle


class TunnelStopError(TunnelError):
    """Raised when the tunnel helper could not be killed cleanly."""
