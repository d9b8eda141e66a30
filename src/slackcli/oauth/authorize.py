"""Authorization URL construction for Slack's OAuth v2 endpoint."""

from __future__ import annotations

from urllib.parse import urlencode, urlparse

from slackcli.exceptions import ParseError
from slackcli.models import OAuthConfig

AUTHORIZE_URL = "https://slack.com/oauth/v2/authorize"

CODE_CHALLENGE_METHOD = "S256"


def build_authorization_url(
    config: OAuthConfig,
    challenge: str,
    state: str,
    base_url: str = AUTHORIZE_URL,
) -> str:
    """Compose the URL the user opens to grant access.

    Parameters are emitted in a fixed order: ``client_id``, ``scope``,
    ``user_scope`` (only when user scopes are configured),
    ``redirect_uri``, ``code_challenge``, ``code_challenge_method`` and
    ``state``. Slack expects scopes comma-separated. Every value is
    percent-encoded.

    Args:
        config: App parameters.
        challenge: The S256 PKCE challenge.
        state: The CSRF state for this attempt.
        base_url: Authorize endpoint; overridable for tests and proxies.

    Returns:
        The full authorization URL.

    Raises:
        ParseError: If *base_url* has no scheme or host.
    """
    parsed = urlparse(base_url)
    if not parsed.scheme or not parsed.netloc:
        raise ParseError(f"Invalid authorization base URL: {base_url!r}")

    params: list[tuple[str, str]] = [
        ("client_id", config.client_id),
        ("scope", ",".join(config.scopes)),
    ]
    if config.user_scopes:
        params.append(("user_scope", ",".join(config.user_scopes)))
    params += [
        ("redirect_uri", config.redirect_uri),
        ("code_challenge", challenge),
        ("code_challenge_method", CODE_CHALLENGE_METHOD),
        ("state", state),
    ]

    separator = "&" if parsed.query else "?"
    return f"{base_url}{separator}{urlencode(params)}"
