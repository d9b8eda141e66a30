"""Tests for the exception hierarchy and exit-code mapping."""

from __future__ import annotations

import pytest

from slackcli import exit_codes
from slackcli.exceptions import (
    CallbackError,
    CallbackTimeoutError,
    ConfigError,
    HttpError,
    NetworkError,
    OAuthError,
    ParseError,
    ProviderDeniedError,
    ServerError,
    SlackCliError,
    SlackError,
    StateMismatchError,
    TunnelError,
    TunnelStartError,
    TunnelStopError,
    TunnelTimeoutError,
)


@pytest.mark.parametrize("exc, code", [
    (ConfigError("x"), exit_codes.EXIT_INVALID_USAGE),
    (NetworkError("x"), exit_codes.EXIT_CONNECTION_ERROR),
    (HttpError(502, "bad gateway"), exit_codes.EXIT_SERVER_ERROR),
    (ParseError("x"), exit_codes.EXIT_PARSE_ERROR),
    (SlackError("invalid_code"), exit_codes.EXIT_AUTH_FAILURE),
    (ProviderDeniedError("access_denied"), exit_codes.EXIT_AUTH_FAILURE),
    (StateMismatchError("a", "b"), exit_codes.EXIT_SECURITY_VIOLATION),
    (ServerError("x"), exit_codes.EXIT_GENERIC_FAILURE),
    (CallbackError("x"), exit_codes.EXIT_GENERIC_FAILURE),
    (CallbackTimeoutError(300), exit_codes.EXIT_TIMEOUT),
    (TunnelStartError("x"), exit_codes.EXIT_PROCESS_ERROR),
    (TunnelStopError("x"), exit_codes.EXIT_PROCESS_ERROR),
    (TunnelTimeoutError("x", 30), exit_codes.EXIT_TIMEOUT),
])
def test_exit_codes(exc: SlackCliError, code: int) -> None:
    assert exc.exit_code == code


def test_hierarchy() -> None:
    assert issubclass(ProviderDeniedError, SlackError)
    assert issubclass(CallbackError, ServerError)
    for cls in (NetworkError, HttpError, ParseError, SlackError, StateMismatchError,
                ServerError, CallbackTimeoutError):
        assert issubclass(cls, OAuthError)
    for cls in (TunnelStartError, TunnelTimeoutError, TunnelStopError):
        assert issubclass(cls, TunnelError)


def test_exit_code_override() -> None:
    assert SlackCliError("x", exit_code=42).exit_code == 42


def test_messages() -> None:
    assert str(HttpError(500, "oops")) == "HTTP error 500: oops"
    assert str(SlackError("invalid_code")) == "Slack API error: invalid_code"
    assert str(StateMismatchError("a", "b")) == "State mismatch: expected a, got b"
    assert str(CallbackTimeoutError(1.5)) == "Timeout after 1.5 seconds waiting for callback"
