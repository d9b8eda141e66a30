"""Tests for the one-shot OAuth callback listener.

Requests are sent over real loopback sockets from a helper thread while
the listener runs in the test thread.
"""

from __future__ import annotations

import socket
import threading
import time
from http.client import HTTPConnection

import pytest

from slackcli.exceptions import (
    CallbackError,
    CallbackTimeoutError,
    ProviderDeniedError,
    ServerError,
    StateMismatchError,
)
from slackcli.exit_codes import EXIT_SECURITY_VIOLATION, EXIT_TIMEOUT
from slackcli.models import CallbackResult
from slackcli.oauth.server import (
    CallbackServer,
    parse_query_string,
    run_callback_server,
    validate_callback,
)


def _get(port: int, path: str) -> tuple[int, str]:
    """Send a GET to the local listener and return (status, body)."""
    conn = HTTPConnection("127.0.0.1", port, timeout=5)
    try:
        conn.request("GET", path)
        response = conn.getresponse()
        return response.status, response.read().decode("utf-8")
    finally:
        conn.close()


def _send_in_background(port: int, *paths: str, delay: float = 0.1) -> tuple[threading.Thread, list]:
    """Fire requests at *port* one after another from a daemon thread."""
    responses: list[tuple[int, str]] = []

    def _run() -> None:
        time.sleep(delay)
        for path in paths:
            responses.append(_get(port, path))

    thread = threading.Thread(target=_run, daemon=True)
    thread.start()
    return thread, responses


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


class TestParseQueryString:
    def test_basic_pairs(self) -> None:
        assert parse_query_string("code=abc&state=xyz") == {"code": "abc", "state": "xyz"}

    def test_percent_and_plus_decoding(self) -> None:
        assert parse_query_string("msg=hello+world%21&u=a%2Fb") == {
            "msg": "hello world!",
            "u": "a/b",
        }

    def test_pairs_without_equals_are_ignored(self) -> None:
        assert parse_query_string("flag&code=1&") == {"code": "1"}

    def test_empty_value_is_kept(self) -> None:
        assert parse_query_string("code=&state=s") == {"code": "", "state": "s"}


class TestValidateCallback:
    def test_matching_state(self) -> None:
        assert validate_callback({"code": "c", "state": "s"}, "s") == CallbackResult("c", "s")

    def test_mismatched_state(self) -> None:
        with pytest.raises(StateMismatchError) as exc_info:
            validate_callback({"code": "c", "state": "evil"}, "good")
        assert exc_info.value.expected == "good"
        assert exc_info.value.actual == "evil"
        assert exc_info.value.exit_code == EXIT_SECURITY_VIOLATION

    def test_code_and_state_take_precedence_over_error(self) -> None:
        params = {"code": "c", "state": "s", "error": "access_denied"}
        assert validate_callback(params, "s").code == "c"

    def test_error_param(self) -> None:
        with pytest.raises(ProviderDeniedError) as exc_info:
            validate_callback({"error": "access_denied", "state": "s"}, "s")
        assert exc_info.value.error_code == "access_denied"

    def test_missing_everything(self) -> None:
        with pytest.raises(CallbackError, match="Missing required parameters"):
            validate_callback({"foo": "bar"}, "s")

    def test_code_without_state_is_missing(self) -> None:
        with pytest.raises(CallbackError):
            validate_callback({"code": "c"}, "s")


# ---------------------------------------------------------------------------
# Listener over real sockets
# ---------------------------------------------------------------------------


class TestCallbackServer:
    def test_success(self) -> None:
        with CallbackServer(0) as server:
            thread, responses = _send_in_background(
                server.port, "/callback?code=the-code&state=s3cret"
            )
            result = server.serve("s3cret", timeout=5)
        thread.join(5)

        assert result == CallbackResult(code="the-code", state="s3cret")
        status, body = responses[0]
        assert status == 200
        assert "Authentication Successful" in body

    def test_port_zero_binds_ephemeral_port(self) -> None:
        with CallbackServer(0) as server:
            assert server.port > 0

    def test_state_mismatch(self) -> None:
        with CallbackServer(0) as server:
            thread, responses = _send_in_background(
                server.port, "/callback?code=c&state=attacker"
            )
            with pytest.raises(StateMismatchError) as exc_info:
                server.serve("expected", timeout=5)
        thread.join(5)

        assert exc_info.value.expected == "expected"
        assert exc_info.value.actual == "attacker"
        status, body = responses[0]
        assert status == 400
        assert "possible CSRF attack" in body

    def test_provider_error(self) -> None:
        with CallbackServer(0) as server:
            thread, responses = _send_in_background(
                server.port, "/callback?error=access_denied&state=s"
            )
            with pytest.raises(ProviderDeniedError) as exc_info:
                server.serve("s", timeout=5)
        thread.join(5)

        assert exc_info.value.error_code == "access_denied"
        status, body = responses[0]
        assert status == 400
        assert "OAuth error: access_denied" in body

    def test_error_message_is_html_escaped(self) -> None:
        with CallbackServer(0) as server:
            thread, responses = _send_in_background(
                server.port, "/callback?error=%3Cscript%3E"
            )
            with pytest.raises(ProviderDeniedError):
                server.serve("s", timeout=5)
        thread.join(5)

        body = responses[0][1]
        assert "<script>" not in body
        assert "&lt;script&gt;" in body

    def test_missing_parameters_is_terminal(self) -> None:
        with CallbackServer(0) as server:
            thread, responses = _send_in_background(server.port, "/callback?foo=bar")
            with pytest.raises(CallbackError, match="Missing required parameters"):
                server.serve("s", timeout=5)
        thread.join(5)

        status, body = responses[0]
        assert status == 400
        assert "Missing required parameters" in body

    def test_request_without_query_does_not_end_the_wait(self) -> None:
        with CallbackServer(0) as server:
            thread, responses = _send_in_background(
                server.port, "/favicon.ico", "/callback?code=c&state=s"
            )
            result = server.serve("s", timeout=5)
        thread.join(5)

        assert result.code == "c"
        assert [status for status, _ in responses] == [404, 200]

    def test_empty_connection_does_not_end_the_wait(self) -> None:
        with CallbackServer(0) as server:
            port = server.port

            def _run() -> None:
                time.sleep(0.1)
                with socket.create_connection(("127.0.0.1", port), timeout=5):
                    pass
                _get(port, "/callback?code=after-empty&state=s")

            thread = threading.Thread(target=_run, daemon=True)
            thread.start()
            result = server.serve("s", timeout=5)
        thread.join(5)

        assert result.code == "after-empty"

    def test_idle_preconnect_does_not_block_redirect(self) -> None:
        with CallbackServer(0, read_timeout=0.5) as server:
            port = server.port
            idle = socket.create_connection(("127.0.0.1", port), timeout=5)
            try:
                thread, responses = _send_in_background(port, "/callback?code=X&state=S")
                start = time.monotonic()
                result = server.serve("S", timeout=5)
                elapsed = time.monotonic() - start
            finally:
                idle.close()
        thread.join(5)

        assert result.code == "X"
        assert [status for status, _ in responses] == [200]
        assert elapsed < 4

    def test_idle_connection_until_deadline_times_out(self) -> None:
        with CallbackServer(0, read_timeout=5) as server:
            idle = socket.create_connection(("127.0.0.1", server.port), timeout=5)
            try:
                with pytest.raises(CallbackTimeoutError):
                    server.serve("S", timeout=0.5)
            finally:
                idle.close()

    def test_handling_without_bind_raises_server_error(self) -> None:
        server = CallbackServer(0)
        with pytest.raises(ServerError, match="not bound"):
            server._handle_one("s", time.monotonic() + 1, 1)

    def test_timeout(self) -> None:
        server = CallbackServer(0)
        start = time.monotonic()
        with pytest.raises(CallbackTimeoutError) as exc_info:
            server.serve("s", timeout=1)
        elapsed = time.monotonic() - start

        assert elapsed < 2
        assert exc_info.value.timeout == 1
        assert exc_info.value.exit_code == EXIT_TIMEOUT
        assert "Timeout after 1 seconds" in str(exc_info.value)
        assert server.is_closed

    def test_socket_closed_after_result(self) -> None:
        with CallbackServer(0) as server:
            port = server.port
            thread, _ = _send_in_background(port, "/callback?code=c&state=s")
            server.serve("s", timeout=5)
        thread.join(5)

        assert server.is_closed
        with pytest.raises(ConnectionRefusedError):
            socket.create_connection(("127.0.0.1", port), timeout=2)

    def test_bind_failure_raises_server_error(self) -> None:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", 0))
            blocker.listen(1)
            port = blocker.getsockname()[1]

            with pytest.raises(ServerError, match=f"Failed to bind to port {port}"):
                CallbackServer(port).bind()


class TestRunCallbackServer:
    def test_end_to_end(self, free_port: int) -> None:
        thread, responses = _send_in_background(
            free_port, "/callback?code=abc123&state=XYZ", delay=0.3
        )
        result = run_callback_server(free_port, "XYZ", timeout=5)
        thread.join(5)

        assert result.code == "abc123"
        assert result.state == "XYZ"
        assert responses[0][0] == 200
