"""One-shot local HTTP listener for the OAuth redirect.

:class:`CallbackServer` binds ``127.0.0.1:<port>``, waits for the browser
to follow Slack's redirect, validates ``state`` and hands back the
authorization code. It serves exactly one meaningful request and then
closes its socket, so later connections are refused.

The listener speaks just enough HTTP/1.1 for a browser: it reads one
chunk, looks only at the request line, always answers with a small HTML
page and ``Connection: close``. Requests that carry no query string
(``/favicon.ico`` probes, empty keep-alive connections) are answered with
404 and do not end the wait. A connection that stays silent longer than
the per-connection read timeout (a browser preconnect) is dropped the
same way.

Everything runs against a single monotonic deadline: every blocking
socket call gets the time still remaining, and expiry raises
:class:`~slackcli.exceptions.CallbackTimeoutError`.
"""

from __future__ import annotations

import html
import logging
import socket
import time
from typing import Optional, Union
from urllib.parse import unquote_plus

from slackcli.exceptions import (
    CallbackError,
    CallbackTimeoutError,
    OAuthError,
    ProviderDeniedError,
    ServerError,
    StateMismatchError,
)
from slackcli.models import CallbackResult
from slackcli.slot import ResultSlot

logger = logging.getLogger(__name__)

LISTEN_HOST = "127.0.0.1"
READ_SIZE = 4096
CONNECTION_READ_TIMEOUT = 5.0
"""Seconds a single connection may stay silent before it is dropped."""

_SUCCESS_PAGE = (
    "<html><head><title>Authentication Successful</title></head>"
    "<body><h1>&#10003; Authentication Successful</h1>"
    "<p>You can close this window and return to the CLI.</p></body></html>"
)
_FAILURE_PAGE = (
    "<html><head><title>Authentication Failed</title></head>"
    "<body><h1>&#10007; Authentication Failed</h1>"
    "<p>{message}</p></body></html>"
)
_NOT_FOUND_PAGE = (
    "<html><head><title>Not Found</title></head>"
    "<body><p>Waiting for the OAuth callback.</p></body></html>"
)
_REASONS = {200: "OK", 400: "Bad Request", 404: "Not Found"}

Outcome = Union[CallbackResult, OAuthError]


def parse_query_string(query: str) -> dict[str, str]:
    """Decode ``a=1&b=x+y`` into a dict.

    ``+`` becomes a space and ``%XX`` escapes are decoded. Pairs without
    ``=`` are ignored; for repeated keys the last value wins.
    """
    params: dict[str, str] = {}
    for pair in query.split("&"):
        if "=" not in pair:
            continue
        key, value = pair.split("=", 1)
        params[unquote_plus(key)] = unquote_plus(value)
    return params


def _request_target(data: bytes) -> Optional[str]:
    """Return the target of the HTTP request line, e.g. ``/callback?code=x``."""
    line = data.split(b"\r\n", 1)[0].split(b"\n", 1)[0]
    parts = line.decode("utf-8", errors="replace").split()
    if len(parts) < 2:
        return None
    return parts[1]


def _http_response(status: int, body: str) -> bytes:
    payload = body.encode("utf-8")
    head = (
        f"HTTP/1.1 {status} {_REASONS[status]}\r\n"
        "Content-Type: text/html; charset=utf-8\r\n"
        f"Content-Length: {len(payload)}\r\n"
        "Connection: close\r\n"
        "\r\n"
    )
    return head.encode("ascii") + payload


def validate_callback(params: dict[str, str], expected_state: str) -> CallbackResult:
    """Turn redirect parameters into a :class:`CallbackResult` or raise.

    ``code`` + ``state`` take precedence over ``error``. The state is
    compared with plain string equality.

    Raises:
        StateMismatchError: ``state`` differs from *expected_state*.
        ProviderDeniedError: The redirect carried ``error`` instead of a code.
        CallbackError: Neither a code/state pair nor an error is present.
    """
    code = params.get("code")
    state = params.get("state")
    if code is not None and state is not None:
        if state != expected_state:
            raise StateMismatchError(expected_state, state)
        return CallbackResult(code=code, state=state)
    if "error" in params:
        raise ProviderDeniedError(params["error"])
    raise CallbackError("Missing required parameters")


def _failure_message(exc: OAuthError) -> str:
    if isinstance(exc, StateMismatchError):
        return "State mismatch - possible CSRF attack"
    if isinstance(exc, ProviderDeniedError):
        return f"OAuth error: {exc.error_code}"
    return str(exc)


class CallbackServer:
    """Single-use listener for one OAuth redirect.

    Example::

        with CallbackServer(0) as server:
            redirect_uri = f"http://127.0.0.1:{server.port}/callback"
            ...
            result = server.serve(expected_state=state, timeout=300)

    Args:
        port: TCP port on ``127.0.0.1``; ``0`` picks a free port.
        read_timeout: Seconds to wait for a request on one connection.
            Idle connections (browser preconnects) are dropped after this
            and the listener goes back to accepting.
    """

    def __init__(self, port: int = 0, read_timeout: float = CONNECTION_READ_TIMEOUT) -> None:
        self._requested_port = port
        self._read_timeout = read_timeout
        self._sock: Optional[socket.socket] = None
        self._outcome: ResultSlot[Outcome] = ResultSlot()

    def bind(self) -> None:
        """Bind and start listening. Safe to call more than once.

        Raises:
            ServerError: If the port cannot be bound.
        """
        if self._sock is not None:
            return
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((LISTEN_HOST, self._requested_port))
            sock.listen(1)
        except OSError as exc:
            sock.close()
            raise ServerError(
                f"Failed to bind to port {self._requested_port}: {exc}"
            ) from exc
        self._sock = sock
        logger.debug("Callback listener bound to %s:%d", LISTEN_HOST, self.port)

    @property
    def port(self) -> int:
        """The port actually bound (differs from the requested one for ``0``)."""
        if self._sock is None:
            return self._requested_port
        return self._sock.getsockname()[1]

    @property
    def is_closed(self) -> bool:
        return self._sock is None

    def close(self) -> None:
        """Close the listening socket. Idempotent."""
        if self._sock is not None:
            self._sock.close()
            self._sock = None
            logger.debug("Callback listener closed")

    def serve(self, expected_state: str, timeout: float) -> CallbackResult:
        """Wait for the redirect and validate it.

        The listening socket is closed before this method returns or
        raises.

        Args:
            expected_state: The CSRF state issued for this attempt.
            timeout: Upper bound in seconds for the whole wait.

        Returns:
            The validated authorization code and state.

        Raises:
            CallbackTimeoutError: No usable request arrived in time.
            StateMismatchError: The redirect carried a foreign state.
            ProviderDeniedError: The user declined or Slack reported an error.
            CallbackError: The redirect had neither code/state nor error.
            ServerError: The socket could not be bound or accepted on.
        """
        self.bind()
        deadline = time.monotonic() + timeout
        try:
            while not self._outcome.is_filled:
                self._handle_one(expected_state, deadline, timeout)
        finally:
            self.close()

        outcome = self._outcome.value
        if isinstance(outcome, OAuthError):
            raise outcome
        if outcome is None:
            raise ServerError("Callback listener stopped without a result")
        return outcome

    def _remaining(self, deadline: float, timeout: float) -> float:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise CallbackTimeoutError(timeout)
        return remaining

    def _handle_one(self, expected_state: str, deadline: float, timeout: float) -> None:
        sock = self._sock
        if sock is None:
            raise ServerError("Callback listener is not bound")
        sock.settimeout(self._remaining(deadline, timeout))
        try:
            conn, addr = sock.accept()
        except TimeoutError:
            raise CallbackTimeoutError(timeout) from None
        except OSError as exc:
            raise ServerError(f"Failed to accept connection: {exc}") from exc

        with conn:
            logger.debug("Callback connection from %s:%d", *addr[:2])
            conn.settimeout(min(self._remaining(deadline, timeout), self._read_timeout))
            try:
                data = conn.recv(READ_SIZE)
            except TimeoutError:
                if time.monotonic() >= deadline:
                    raise CallbackTimeoutError(timeout) from None
                logger.debug("Dropping idle callback connection")
                return
            except OSError as exc:
                logger.debug("Dropping callback connection: %s", exc)
                return

            if not data:
                return
            target = _request_target(data)
            if target is None or "?" not in target:
                logger.debug("Ignoring request without query: %r", target)
                self._send(conn, 404, _NOT_FOUND_PAGE)
                return

            params = parse_query_string(target.split("?", 1)[1])
            try:
                result = validate_callback(params, expected_state)
            except OAuthError as exc:
                self._outcome.offer(exc)
                page = _FAILURE_PAGE.format(message=html.escape(_failure_message(exc)))
                self._send(conn, 400, page)
            else:
                self._outcome.offer(result)
                self._send(conn, 200, _SUCCESS_PAGE)

    @staticmethod
    def _send(conn: socket.socket, status: int, body: str) -> None:
        try:
            conn.sendall(_http_response(status, body))
        except OSError as exc:
            # The browser may already have gone away; the outcome stands.
            logger.debug("Failed to write callback response: %s", exc)

    def __enter__(self) -> CallbackServer:
        self.bind()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def run_callback_server(
    port: int, expected_state: str, timeout: float = 300
) -> CallbackResult:
    """Bind ``127.0.0.1:port``, wait for one redirect and return its code.

    See :meth:`CallbackServer.serve` for the error contract.
    """
    with CallbackServer(port) as server:
        return server.serve(expected_state, timeout)
