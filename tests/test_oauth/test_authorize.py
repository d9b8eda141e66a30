"""Tests for authorization URL construction."""

from __future__ import annotations

from urllib.parse import parse_qsl, urlparse

import pytest

from slackcli.exceptions import ParseError
from slackcli.models import OAuthConfig
from slackcli.oauth.authorize import AUTHORIZE_URL, build_authorization_url


def _query(url: str) -> list[tuple[str, str]]:
    return parse_qsl(urlparse(url).query)


class TestBuildAuthorizationUrl:
    def test_exact_encoding(self, oauth_config: OAuthConfig) -> None:
        url = build_authorization_url(oauth_config, "CHALLENGE", "STATE")
        assert url == (
            "https://slack.com/oauth/v2/authorize"
            "?client_id=123.456"
            "&scope=chat%3Awrite%2Cusers%3Aread"
            "&redirect_uri=http%3A%2F%2Flocalhost%3A8765%2Fcallback"
            "&code_challenge=CHALLENGE"
            "&code_challenge_method=S256"
            "&state=STATE"
        )

    def test_parameter_order(self, oauth_config: OAuthConfig) -> None:
        keys = [k for k, _ in _query(build_authorization_url(oauth_config, "c", "s"))]
        assert keys == [
            "client_id",
            "scope",
            "redirect_uri",
            "code_challenge",
            "code_challenge_method",
            "state",
        ]

    def test_values_round_trip(self, oauth_config: OAuthConfig) -> None:
        params = dict(_query(build_authorization_url(oauth_config, "chal", "st8")))
        assert params["scope"] == "chat:write,users:read"
        assert params["redirect_uri"] == "http://localhost:8765/callback"
        assert params["code_challenge"] == "chal"
        assert params["code_challenge_method"] == "S256"
        assert params["state"] == "st8"

    def test_user_scope_only_when_configured(self, oauth_config: OAuthConfig) -> None:
        assert "user_scope=" not in build_authorization_url(oauth_config, "c", "s")

        with_user = oauth_config.model_copy(update={"user_scopes": ["search:read", "users:read"]})
        query = _query(build_authorization_url(with_user, "c", "s"))
        assert [k for k, _ in query][:4] == ["client_id", "scope", "user_scope", "redirect_uri"]
        assert dict(query)["user_scope"] == "search:read,users:read"

    def test_custom_base_url(self, oauth_config: OAuthConfig) -> None:
        url = build_authorization_url(oauth_config, "c", "s", base_url="http://127.0.0.1:9/authorize")
        assert url.startswith("http://127.0.0.1:9/authorize?client_id=")

    def test_default_base_url(self) -> None:
        assert AUTHORIZE_URL == "https://slack.com/oauth/v2/authorize"

    @pytest.mark.parametrize("base_url", ["", "not a url", "/oauth/v2/authorize"])
    def test_invalid_base_url_raises_parse_error(
        self, oauth_config: OAuthConfig, base_url: str
    ) -> None:
        with pytest.raises(ParseError):
            build_authorization_url(oauth_config, "c", "s", base_url=base_url)
