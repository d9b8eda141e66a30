"""Public tunnel helpers (cloudflared, ngrok) for the OAuth redirect."""

from slackcli.tunnel.manager import DEFAULT_URL_TIMEOUT, TunnelHandle, start_tunnel
from slackcli.tunnel.providers import (
    CLOUDFLARED,
    NGROK,
    PROVIDERS,
    TunnelProvider,
    extract_public_url,
)

__all__ = [
    "CLOUDFLARED",
    "DEFAULT_URL_TIMEOUT",
    "NGROK",
    "PROVIDERS",
    "TunnelHandle",
    "TunnelProvider",
    "extract_public_url",
    "start_tunnel",
]
