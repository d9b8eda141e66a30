"""Tunnel helper presets.

A :class:`TunnelProvider` describes everything provider-specific about a
tunnel helper: which executable to run, how to build its argument list,
how to address the local callback server, and which regex finds the
public URL in its log output. Adding a provider means adding a preset,
not a new code path.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class TunnelProvider:
    """Static description of a tunnel helper.

    Attributes:
        name: Display name used in messages.
        executable: Default executable looked up on ``PATH``.
        args_template: Arguments; ``{target}`` is replaced by the local target.
        target_template: Local target; ``{port}`` is replaced by the port.
        url_pattern: Regex matching the announced public HTTPS URL.
    """

    name: str
    executable: str
    args_template: tuple[str, ...]
    target_template: str
    url_pattern: str
    _regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_regex", re.compile(self.url_pattern))

    def args(self, local_target: str) -> list[str]:
        return [arg.format(target=local_target) for arg in self.args_template]

    def local_target(self, port: int) -> str:
        return self.target_template.format(port=port)

    def extract_url(self, line: str) -> Optional[str]:
        """Return the first public URL in *line*, or ``None``."""
        match = self._regex.search(line)
        return match.group(0) if match else None


# The matched host must end at the suffix, so look-alikes such as
# ``x.trycloudflare.com.evil.net`` are rejected.
_HOST_END = r"(?![A-Za-z0-9-]|\.[A-Za-z0-9])"

CLOUDFLARED = TunnelProvider(
    name="cloudflared",
    executable="cloudflared",
    args_template=("tunnel", "--url", "{target}"),
    target_template="http://localhost:{port}",
    url_pattern=r"https://[a-zA-Z0-9-]+\.trycloudflare\.com" + _HOST_END,
)

NGROK = TunnelProvider(
    name="ngrok",
    executable="ngrok",
    args_template=("http", "{target}"),
    target_template="{port}",
    url_pattern=r"https://[a-zA-Z0-9-]+\.ngrok-free\.app" + _HOST_END,
)

PROVIDERS: dict[str, TunnelProvider] = {p.name: p for p in (CLOUDFLARED, NGROK)}


def extract_public_url(line: str, provider: TunnelProvider = CLOUDFLARED) -> Optional[str]:
    """Module-level shorthand for :meth:`TunnelProvider.extract_url`."""
    return provider.extract_url(line)
