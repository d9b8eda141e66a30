"""Auth commands -- run the Slack OAuth login.

Provides the ``slackcli auth`` sub-command group:

* ``auth login`` runs the full Authorization Code + PKCE flow (optionally
  behind a cloudflared/ngrok tunnel) and writes the resulting tokens to
  stdout as JSON. Nothing is persisted.
* ``auth url`` prints the authorize URL only, for inspecting scopes or
  pasting into a browser by hand.

Typical workflow::

    export SLACK_CLIENT_ID=123.456 SLACK_CLIENT_SECRET=...
    slackcli auth login --scopes chat:write,users:read > login.json
    slackcli auth login --scopes all --tunnel cloudflared
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

import typer

from slackcli.config import CLIENT_ID_ENV_VAR, CLIENT_SECRET_ENV_VAR
from slackcli.exceptions import ConfigError, SlackCliError
from slackcli.models import OAuthConfig
from slackcli.oauth.scopes import split_scopes
from slackcli.output import debug, format_response, print_data, report_error, success


auth_app = typer.Typer(no_args_is_help=True)


class TunnelChoice(str, Enum):
    cloudflared = "cloudflared"
    ngrok = "ngrok"


def _default_redirect_uri(port: int) -> str:
    return f"http://localhost:{port}/callback"


def _build_config(
    client_id: str,
    client_secret: str,
    scopes: str,
    user_scopes: Optional[str],
    redirect_uri: str,
) -> OAuthConfig:
    return OAuthConfig(
        client_id=client_id,
        client_secret=client_secret,
        redirect_uri=redirect_uri,
        scopes=split_scopes(scopes),
        user_scopes=split_scopes(user_scopes),
    )


@auth_app.command("login")
def auth_login(
    client_id: str = typer.Option(
        ..., "--client-id", envvar=CLIENT_ID_ENV_VAR, help="Slack app client ID."
    ),
    client_secret_source: str = typer.Option(
        f"env:{CLIENT_SECRET_ENV_VAR}",
        "--client-secret-source",
        help="Where to read the client secret: env:VAR, file:/path, or prompt.",
    ),
    scopes: str = typer.Option(
        ..., "--scopes", "-s", help="Comma-separated bot scopes, or 'all'."
    ),
    user_scopes: Optional[str] = typer.Option(
        None, "--user-scopes", help="Comma-separated user scopes, or 'all'."
    ),
    redirect_uri: Optional[str] = typer.Option(
        None,
        "--redirect-uri",
        help="Redirect URI registered with the app (default: http://localhost:<port>/callback).",
    ),
    port: Optional[int] = typer.Option(
        None, "--port", help="Local callback port (default: $SLACK_OAUTH_PORT or 8765)."
    ),
    tunnel: Optional[TunnelChoice] = typer.Option(
        None, "--tunnel", help="Expose the callback through a public tunnel."
    ),
    tunnel_executable: Optional[str] = typer.Option(
        None, "--tunnel-executable", help="Path to the tunnel binary."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Slack API base URL for the token exchange."
    ),
    timeout: float = typer.Option(
        300.0, "--timeout", min=1, help="Seconds to wait for the browser redirect."
    ),
    no_browser: bool = typer.Option(
        False, "--no-browser", help="Print the URL without opening a browser."
    ),
) -> None:
    """Log in to a Slack workspace and print the tokens as JSON.

    The client secret is never accepted on the command line; use
    ``--client-secret-source`` to point at an environment variable, a
    file, or an interactive prompt.

    Example::

        slackcli auth login --client-id 123.456 --scopes chat:write
    """
    from slackcli.config import resolve_callback_port, resolve_credential
    from slackcli.oauth.flow import login_with_tunnel, perform_login
    from slackcli.tunnel import PROVIDERS

    try:
        if port is not None and not 1 <= port <= 65535:
            raise ConfigError(f"--port {port}: port must be between 1 and 65535")
        callback_port = port if port is not None else resolve_callback_port()
        client_secret = resolve_credential(client_secret_source)
        config = _build_config(
            client_id,
            client_secret,
            scopes,
            user_scopes,
            redirect_uri or _default_redirect_uri(callback_port),
        )

        if tunnel is not None:
            result = login_with_tunnel(
                config,
                PROVIDERS[tunnel.value],
                executable=tunnel_executable,
                port=callback_port,
                timeout=timeout,
                base_url=base_url,
                open_browser=not no_browser,
            )
        else:
            result = perform_login(
                config,
                port=callback_port,
                timeout=timeout,
                base_url=base_url,
                open_browser=not no_browser,
            )
    except SlackCliError as exc:
        report_error(exc)
        raise typer.Exit(code=exc.exit_code) from None

    success(f"Logged in to {result.team_name or result.team_id} as {result.user_id}")
    format_response(result.model_dump(mode="json"))


@auth_app.command("url")
def auth_url(
    client_id: str = typer.Option(
        ..., "--client-id", envvar=CLIENT_ID_ENV_VAR, help="Slack app client ID."
    ),
    scopes: str = typer.Option(
        ..., "--scopes", "-s", help="Comma-separated bot scopes, or 'all'."
    ),
    user_scopes: Optional[str] = typer.Option(
        None, "--user-scopes", help="Comma-separated user scopes, or 'all'."
    ),
    redirect_uri: Optional[str] = typer.Option(
        None, "--redirect-uri", help="Redirect URI registered with the app."
    ),
    port: Optional[int] = typer.Option(
        None, "--port", help="Port used for the default redirect URI."
    ),
) -> None:
    """Print the authorize URL for a fresh PKCE pair and state.

    The verifier and state are shown with ``--verbose`` only; without
    them the code cannot be exchanged, so this is for inspection.
    """
    from slackcli.config import resolve_callback_port
    from slackcli.oauth.authorize import build_authorization_url
    from slackcli.oauth.pkce import generate_pkce, generate_state

    try:
        callback_port = port if port is not None else resolve_callback_port()
        config = _build_config(
            client_id,
            "",
            scopes,
            user_scopes,
            redirect_uri or _default_redirect_uri(callback_port),
        )
        errors = [e for e in config.validation_errors() if not e.startswith("client_secret")]
        if errors:
            raise ConfigError("Invalid OAuth configuration: " + "; ".join(errors))

        pkce = generate_pkce()
        state = generate_state()
        url = build_authorization_url(config, pkce.challenge, state)
    except SlackCliError as exc:
        report_error(exc)
        raise typer.Exit(code=exc.exit_code) from None

    debug(f"code_verifier: {pkce.verifier}")
    debug(f"state: {state}")
    print_data(url)
