"""PKCE verifier/challenge and CSRF state generation (:rfc:`7636`).

Both values come from :mod:`secrets` over the 62-character alphanumeric
alphabet, which is a subset of the RFC's unreserved characters. The
verifier and the state are drawn independently for every login attempt.
"""

from __future__ import annotations

import base64
import hashlib
import secrets
import string

from slackcli.models import PkcePair

_ALPHABET = string.ascii_letters + string.digits

VERIFIER_LENGTH = 128
STATE_LENGTH = 32


def _random_string(length: int) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def compute_code_challenge(verifier: str) -> str:
    """Return the S256 challenge: unpadded base64url of ``SHA-256(verifier)``.

    Always 43 characters long.
    """
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def generate_pkce() -> PkcePair:
    """Generate a fresh 128-character verifier and its S256 challenge."""
    verifier = _random_string(VERIFIER_LENGTH)
    return PkcePair(verifier=verifier, challenge=compute_code_challenge(verifier))


def generate_state() -> str:
    """Generate a 32-character CSRF state token."""
    return _random_string(STATE_LENGTH)
