"""Authorization-code-for-token exchange against ``oauth.v2.access``.

Slack answers almost every request with HTTP 200 and reports failures
in the body as ``{"ok": false, "error": "..."}``; both layers are
checked here and mapped onto the :mod:`slackcli.exceptions` hierarchy.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from slackcli.exceptions import HttpError, NetworkError, ParseError, SlackError
from slackcli.models import OAuthConfig, OAuthResponse

logger = logging.getLogger(__name__)

SLACK_API_BASE_URL = "https://slack.com/api"
TOKEN_ENDPOINT = "oauth.v2.access"
REQUEST_TIMEOUT = 30.0


def token_url(base_url: Optional[str] = None) -> str:
    """Return the ``oauth.v2.access`` URL under *base_url*."""
    base = (base_url or SLACK_API_BASE_URL).rstrip("/")
    return f"{base}/{TOKEN_ENDPOINT}"


def exchange_code(
    config: OAuthConfig,
    code: str,
    verifier: str,
    base_url: Optional[str] = None,
    client: Optional[httpx.Client] = None,
) -> OAuthResponse:
    """Trade an authorization code for tokens.

    Posts ``client_id``, ``client_secret``, ``code``, ``redirect_uri`` and
    ``code_verifier`` form-encoded. The ``redirect_uri`` must be the same
    one used in the authorize URL.

    Args:
        config: App parameters.
        code: Authorization code from the callback.
        verifier: The PKCE verifier whose challenge was sent at authorize time.
        base_url: Slack API base; defaults to ``https://slack.com/api``.
        client: Optional pre-configured client (tests inject a mock transport).

    Returns:
        The parsed response with ``ok=True``.

    Raises:
        NetworkError: Transport failure (DNS, refused connection, timeout) or
            a malformed *base_url*.
        HttpError: Non-2xx status; the raw body is kept on the exception.
        ParseError: 2xx body that is not a JSON object of the expected shape.
        SlackError: ``ok`` is false.
    """
    url = token_url(base_url)
    data = {
        "client_id": config.client_id,
        "client_secret": config.client_secret,
        "code": code,
        "redirect_uri": config.redirect_uri,
        "code_verifier": verifier,
    }
    headers = {"Accept": "application/json"}

    logger.debug("POST %s", url)
    try:
        if client is not None:
            response = client.post(url, data=data, headers=headers)
        else:
            response = httpx.post(
                url, data=data, headers=headers, timeout=REQUEST_TIMEOUT
            )
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise NetworkError(f"Token exchange failed: {exc}") from exc

    if not response.is_success:
        raise HttpError(response.status_code, response.text)

    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ParseError(f"Token response is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ParseError("Token response is not a JSON object")

    try:
        parsed = OAuthResponse.model_validate(payload)
    except ValidationError as exc:
        raise ParseError(f"Unexpected token response shape: {exc}") from exc

    if not parsed.ok:
        raise SlackError(parsed.error or "unknown")
    return parsed
