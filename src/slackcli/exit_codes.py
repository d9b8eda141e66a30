"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~slackcli.exceptions.SlackCliError` subclass.
Shell wrappers can inspect the exit code to tell a declined consent from
a CSRF rejection without parsing stderr.

Example::

    $ slackcli auth login --client-id 123.456 --scopes chat:write
    $ echo $?
    8   # EXIT_SECURITY_VIOLATION -- the redirect carried a foreign state
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""Invalid arguments, or missing/invalid OAuth or port configuration."""

EXIT_AUTH_FAILURE = 3
"""Slack rejected the login (declined consent, invalid or expired code)."""

EXIT_SERVER_ERROR = 5
"""The token endpoint answered with a non-2xx HTTP status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_PARSE_ERROR = 7
"""The token endpoint returned a body that could not be parsed."""

EXIT_SECURITY_VIOLATION = 8
"""The callback ``state`` did not match -- possible CSRF attempt."""

EXIT_TIMEOUT = 9
"""No redirect arrived in time, or the tunnel never announced its URL."""

EXIT_PROCESS_ERROR = 10
"""The tunnel helper process failed to start or could not be stopped."""
