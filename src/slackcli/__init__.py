"""slackcli -- Slack OAuth 2.0 login (Authorization Code + PKCE) for the command line.

This package obtains Slack access tokens for a CLI that has no public
endpoint of its own. It opens the Slack authorize page in the user's
browser, receives the redirect on a short-lived local listener (or through
a cloudflared/ngrok tunnel), validates the CSRF state, and exchanges the
code plus PKCE verifier for tokens.

Typical workflow::

    slackcli auth login --client-id 123.456 --scopes chat:write > login.json

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models and value types shared across the package.
    config: Environment-driven settings (callback port, credential sources).
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    oauth: PKCE, authorize URL, callback listener, token exchange, login flow.
    tunnel: Public tunnel helper process management.
"""

__version__ = "0.1.0"
