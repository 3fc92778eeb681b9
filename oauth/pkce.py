"""PKCE (RFC 7636) helpers, S256 method only."""

import base64
import hashlib
import hmac
import secrets

CODE_CHALLENGE_METHOD = "S256"
VERIFIER_BYTES = 32


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


def generate_code_verifier() -> str:
    """43 characters of URL-safe base64 built from 32 random bytes."""
    return _b64url(secrets.token_bytes(VERIFIER_BYTES))


def code_challenge(verifier: str) -> str:
    return _b64url(hashlib.sha256(verifier.encode()).digest())


def verify_code_challenge(verifier: str, challenge: str) -> bool:
    if not verifier or not challenge:
        return False
    return hmac.compare_digest(code_challenge(verifier), challenge)
