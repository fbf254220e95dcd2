"""PKCE (Proof Key for Code Exchange) helpers and grant code generation."""

import base64
import hashlib
import hmac
import secrets

# RFC 3986 unreserved characters
CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-._~"
AUTH_CODE_LENGTH = 32
SUPPORTED_METHOD = "S256"


class UnsupportedMethodError(ValueError):
    """Raised for any code_challenge_method other than S256."""


def generate_random_string(length: int) -> str:
    """Generate a cryptographically secure random string.

    Args:
        length: Number of characters to generate

    Returns:
        String of `length` characters drawn uniformly from CODE_ALPHABET
    """
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def generate_auth_code() -> str:
    """Generate an OAuth authorization code."""
    return generate_random_string(AUTH_CODE_LENGTH)


def compute_pkce_challenge(code_verifier: str) -> str:
    """Derive the S256 code_challenge for a code_verifier."""
    return base64.urlsafe_b64encode(
        hashlib.sha256(code_verifier.encode("utf-8")).digest()
    ).rstrip(b"=").decode("utf-8")


def verify_pkce_challenge(code_verifier: str, code_challenge: str, method: str = SUPPORTED_METHOD) -> bool:
    """Check a code_verifier against the challenge stored with a grant.

    Args:
        code_verifier: Verifier presented at the token endpoint
        code_challenge: Challenge presented at the authorization endpoint
        method: Challenge method recorded with the grant

    Returns:
        True if base64url(sha256(code_verifier)) equals code_challenge

    Raises:
        UnsupportedMethodError: If method is not S256
    """
    if method != SUPPORTED_METHOD:
        raise UnsupportedMethodError(f"Only {SUPPORTED_METHOD} code challenge method is supported")

    computed_challenge = compute_pkce_challenge(code_verifier)
    return hmac.compare_digest(computed_challenge.encode("utf-8"), code_challenge.encode("utf-8"))
