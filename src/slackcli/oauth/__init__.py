"""Slack OAuth v2 Authorization Code + PKCE building blocks.

Leaves first:

* :mod:`~slackcli.oauth.pkce` -- verifier, challenge and CSRF state.
* :mod:`~slackcli.oauth.scopes` -- the ``all`` preset and scope normalisation.
* :mod:`~slackcli.oauth.authorize` -- authorize URL construction.
* :mod:`~slackcli.oauth.server` -- the one-shot local callback listener.
* :mod:`~slackcli.oauth.exchange` -- ``oauth.v2.access`` code exchange.
* :mod:`~slackcli.oauth.flow` -- the login orchestrator tying them together.
"""

from slackcli.oauth.authorize import AUTHORIZE_URL, build_authorization_url
from slackcli.oauth.exchange import exchange_code
from slackcli.oauth.flow import login_with_tunnel, perform_login, tunnel_session
from slackcli.oauth.pkce import compute_code_challenge, generate_pkce, generate_state
from slackcli.oauth.scopes import all_scopes, expand_scopes
from slackcli.oauth.server import CallbackServer, run_callback_server

__all__ = [
    "AUTHORIZE_URL",
    "CallbackServer",
    "all_scopes",
    "build_authorization_url",
    "compute_code_challenge",
    "exchange_code",
    "expand_scopes",
    "generate_pkce",
    "generate_state",
    "login_with_tunnel",
    "perform_login",
    "run_callback_server",
    "tunnel_session",
]
