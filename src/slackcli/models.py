"""Data shapes shared across the slackcli OAuth modules.

Every other module imports from here rather than defining its own models.
The models fall into two groups:

**Login inputs and intermediate values** -- created fresh for every login
attempt and never persisted:
    :class:`OAuthConfig`, :class:`PkcePair`, :class:`CallbackResult`.

**Slack responses and outcomes** -- parsed from ``oauth.v2.access`` and
handed back to the caller:
    :class:`TeamInfo`, :class:`AuthedUser`, :class:`OAuthResponse`, and
    :class:`LoginResult`.

Pydantic models ignore unknown keys so that new fields in Slack's response
do not break parsing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from slackcli.exceptions import ConfigError


# --- Login inputs ---


class OAuthConfig(BaseModel):
    """Static parameters of one Slack app for the authorization flow.

    All four required fields must be non-empty before any network I/O;
    call :meth:`ensure_valid` to fail closed with a :class:`ConfigError`
    naming the offending field.

    Example::

        OAuthConfig(
            client_id="123.456",
            client_secret="s3cr3t",
            redirect_uri="http://localhost:8765/callback",
            scopes=["chat:write", "users:read"],
        )
    """

    model_config = ConfigDict(extra="forbid")

    client_id: str = Field(description="Slack app client ID")
    client_secret: str = Field(description="Slack app client secret")
    redirect_uri: str = Field(
        description="Redirect URI registered with the Slack app"
    )
    scopes: list[str] = Field(
        default_factory=list, description="Bot scopes requested at authorize time"
    )
    user_scopes: list[str] = Field(
        default_factory=list,
        description="User scopes; sent as user_scope only when non-empty",
    )

    def validation_errors(self) -> list[str]:
        """Return one message per empty required field, in declaration order."""
        errors: list[str] = []
        for field in ("client_id", "client_secret", "redirect_uri"):
            if not getattr(self, field).strip():
                errors.append(f"{field} must not be empty")
        if not [s for s in self.scopes if s.strip()]:
            errors.append("scopes must contain at least one scope")
        return errors

    def ensure_valid(self) -> None:
        """Raise :class:`ConfigError` if :meth:`validation_errors` is non-empty."""
        errors = self.validation_errors()
        if errors:
            raise ConfigError("Invalid OAuth configuration: " + "; ".join(errors))


@dataclass(frozen=True)
class PkcePair:
    """PKCE verifier and its S256 challenge.

    ``challenge`` is always ``compute_code_challenge(verifier)``.
    """

    verifier: str
    challenge: str


@dataclass(frozen=True)
class CallbackResult:
    """Authorization code and state extracted from a validated redirect."""

    code: str
    state: str


# --- Slack responses ---


class TeamInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: Optional[str] = None


class AuthedUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    scope: Optional[str] = None
    access_token: Optional[str] = None
    token_type: Optional[str] = None


class OAuthResponse(BaseModel):
    """Body of ``oauth.v2.access``.

    On success ``access_token`` is the bot token and
    ``authed_user.access_token`` the user token (when user scopes were
    granted). On failure only ``ok=False`` and ``error`` are meaningful.
    """

    model_config = ConfigDict(extra="ignore")

    ok: bool
    access_token: Optional[str] = None
    token_type: Optional[str] = None
    scope: Optional[str] = None
    bot_user_id: Optional[str] = None
    app_id: Optional[str] = None
    team: Optional[TeamInfo] = None
    authed_user: Optional[AuthedUser] = None
    error: Optional[str] = None


class LoginResult(BaseModel):
    """Identity and tokens obtained by one completed login.

    At least one of ``bot_token`` / ``user_token`` is set.
    """

    team_id: str = Field(description="Slack workspace ID (T...)")
    team_name: Optional[str] = Field(default=None, description="Workspace name")
    user_id: str = Field(description="ID of the user who authorized the app")
    bot_token: Optional[str] = Field(default=None, description="xoxb- token")
    user_token: Optional[str] = Field(default=None, description="xoxp- token")
    scope: Optional[str] = Field(default=None, description="Granted bot scopes")
    user_scope: Optional[str] = Field(
        default=None, description="Granted user scopes"
    )
    redirect_uri: str = Field(description="Redirect URI used for this login")
