"""End-to-end login orchestration.

:func:`perform_login` drives one complete authorization attempt::

    validate config -> PKCE + state -> authorize URL -> bind listener
    -> open browser -> wait for redirect -> exchange code -> LoginResult

:func:`login_with_tunnel` first starts a cloudflared/ngrok tunnel so the
redirect URI can be a public HTTPS hostname, and guarantees the helper
is stopped on every exit path via :func:`tunnel_session`.

Nothing here retries. Every failure propagates as a
:class:`~slackcli.exceptions.SlackCliError` subclass and the caller may
start a fresh attempt.
"""

from __future__ import annotations

import logging
import webbrowser
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional

import httpx

from slackcli import output
from slackcli.config import resolve_callback_port
from slackcli.exceptions import ConfigError, SlackError, TunnelStopError, TunnelTimeoutError
from slackcli.models import LoginResult, OAuthConfig, OAuthResponse
from slackcli.oauth.authorize import AUTHORIZE_URL, build_authorization_url
from slackcli.oauth.exchange import exchange_code
from slackcli.oauth.pkce import generate_pkce, generate_state
from slackcli.oauth.server import CallbackServer
from slackcli.tunnel import DEFAULT_URL_TIMEOUT, TunnelHandle, TunnelProvider, start_tunnel

logger = logging.getLogger(__name__)

DEFAULT_CALLBACK_TIMEOUT = 300.0
"""Seconds to wait for the browser redirect."""


def _open_browser(url: str) -> None:
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as exc:
        output.warning(f"Could not open a browser: {exc}")
        return
    if not opened:
        output.warning("Could not open a browser; open the URL above manually.")


def extract_login_result(response: OAuthResponse, redirect_uri: str) -> LoginResult:
    """Pull team, user and tokens out of a successful token response.

    Raises:
        SlackError: If the team or authorizing user is missing, or the
            response carries neither a bot nor a user token.
    """
    if response.team is None:
        raise SlackError("Missing team information")
    if response.authed_user is None:
        raise SlackError("Missing user information")

    bot_token = response.access_token or None
    user_token = response.authed_user.access_token or None
    if bot_token is None and user_token is None:
        raise SlackError("No access tokens received")

    return LoginResult(
        team_id=response.team.id,
        team_name=response.team.name,
        user_id=response.authed_user.id,
        bot_token=bot_token,
        user_token=user_token,
        scope=response.scope,
        user_scope=response.authed_user.scope,
        redirect_uri=redirect_uri,
    )


def perform_login(
    config: OAuthConfig,
    *,
    port: Optional[int] = None,
    timeout: float = DEFAULT_CALLBACK_TIMEOUT,
    base_url: Optional[str] = None,
    authorize_url: str = AUTHORIZE_URL,
    open_browser: bool = True,
    client: Optional[httpx.Client] = None,
) -> LoginResult:
    """Run one complete Authorization Code + PKCE login.

    The authorize URL is always printed to stderr so the user can open it
    manually (e.g. over SSH). The listener is bound before the browser is
    opened, so a fast redirect cannot arrive before anyone is listening.

    Args:
        config: App parameters. ``redirect_uri`` must point at the
            listener (directly or through a tunnel).
        port: Local callback port; ``None`` reads ``SLACK_OAUTH_PORT``.
        timeout: Seconds to wait for the redirect.
        base_url: Slack API base for the token exchange.
        authorize_url: Slack authorize endpoint.
        open_browser: Whether to launch the system browser.
        client: Optional HTTP client for the token exchange.

    Returns:
        The workspace, user and tokens obtained.
    """
    config.ensure_valid()
    if port is None:
        port = resolve_callback_port()

    pkce = generate_pkce()
    state = generate_state()
    url = build_authorization_url(config, pkce.challenge, state, base_url=authorize_url)

    with CallbackServer(port) as server:
        output.info("Open this URL in your browser to authorize slackcli:")
        output.info(url)
        output.debug(f"Listening for OAuth callback on http://127.0.0.1:{server.port}")
        if open_browser:
            _open_browser(url)
        output.progress("Waiting for authorization...")
        callback = server.serve(state, timeout)

    logger.debug("Received authorization code; exchanging for tokens")
    response = exchange_code(config, callback.code, pkce.verifier, base_url=base_url, client=client)
    return extract_login_result(response, config.redirect_uri)


def _stop_quietly(handle: TunnelHandle) -> None:
    try:
        handle.stop()
    except TunnelStopError as exc:
        output.warning(str(exc))


@contextmanager
def tunnel_session(
    provider: TunnelProvider,
    executable: Optional[str],
    port: int,
    timeout: float = DEFAULT_URL_TIMEOUT,
) -> Iterator[TunnelHandle]:
    """Start a tunnel to the local callback port and stop it on exit.

    A tunnel that timed out waiting for its URL is stopped before the
    :class:`~slackcli.exceptions.TunnelTimeoutError` propagates. A failure
    to stop is reported as a warning and does not mask the body's outcome.
    """
    output.info(f"Starting {provider.name} tunnel...")
    try:
        handle = start_tunnel(provider, executable, provider.local_target(port), timeout)
    except TunnelTimeoutError as exc:
        if exc.handle is not None:
            _stop_quietly(exc.handle)
        raise
    try:
        yield handle
    finally:
        _stop_quietly(handle)


def login_with_tunnel(
    config: OAuthConfig,
    provider: TunnelProvider,
    *,
    executable: Optional[str] = None,
    port: Optional[int] = None,
    tunnel_timeout: float = DEFAULT_URL_TIMEOUT,
    timeout: float = DEFAULT_CALLBACK_TIMEOUT,
    base_url: Optional[str] = None,
    authorize_url: str = AUTHORIZE_URL,
    open_browser: bool = True,
    client: Optional[httpx.Client] = None,
) -> LoginResult:
    """Run :func:`perform_login` behind a public tunnel.

    ``config.redirect_uri`` is replaced with ``<public_url>/callback``.
    That URL must be registered as a redirect URL of the Slack app.
    """
    errors = [e for e in config.validation_errors() if not e.startswith("redirect_uri")]
    if errors:
        raise ConfigError("Invalid OAuth configuration: " + "; ".join(errors))
    if port is None:
        port = resolve_callback_port()

    with tunnel_session(provider, executable, port, tunnel_timeout) as handle:
        redirect_uri = f"{handle.public_url}/callback"
        output.success(f"Tunnel is up: {handle.public_url}")
        output.suggest(f"Make sure {redirect_uri} is a redirect URL of your Slack app")
        tunneled = config.model_copy(update={"redirect_uri": redirect_uri})
        return perform_login(
            tunneled,
            port=port,
            timeout=timeout,
            base_url=base_url,
            authorize_url=authorize_url,
            open_browser=open_browser,
            client=client,
        )
