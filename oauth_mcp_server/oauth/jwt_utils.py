"""JWT utilities for HS256 access token signing and verification."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

ALGORITHM = "HS256"


class TokenError(Exception):
    """Base class for access token verification failures."""


class MalformedTokenError(TokenError):
    """Token is not a decodable three-segment JWT with the required claims."""


class InvalidSignatureError(TokenError):
    """HMAC signature does not match the header and claims."""


class TokenExpiredError(TokenError):
    """The exp claim is not strictly in the future."""


def sign_token(claims: Dict[str, Any], secret: str) -> str:
    """Sign claims as an HS256 JWT.

    Args:
        claims: JSON-serializable claim set
        secret: Raw HMAC key

    Returns:
        Encoded JWT (header.claims.signature)
    """
    return jwt.encode(claims, secret, algorithm=ALGORITHM, headers={"typ": "JWT"})


def verify_token(token: str, secret: str) -> Dict[str, Any]:
    """Verify signature and expiry of an HS256 JWT and return its claims.

    Issuer and audience are not checked here; see TokenVerifier.

    Args:
        token: Encoded JWT
        secret: Raw HMAC key

    Returns:
        Decoded claims

    Raises:
        MalformedTokenError: If the token is structurally invalid or lacks exp
        InvalidSignatureError: If the signature does not verify with secret
        TokenExpiredError: If the token has expired
    """
    if not isinstance(token, str) or token.count(".") != 2:
        raise MalformedTokenError("Invalid JWT format")

    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            options={"require": ["exp"], "verify_aud": False},
        )
    except jwt.InvalidSignatureError as e:
        raise InvalidSignatureError("Invalid JWT signature") from e
    except jwt.ExpiredSignatureError as e:
        raise TokenExpiredError("JWT token expired") from e
    except jwt.InvalidTokenError as e:
        raise MalformedTokenError(f"Invalid JWT: {e}") from e


def create_access_token(
    client_id: str,
    issuer: str,
    audience: str,
    secret: str,
    expires_delta: timedelta = timedelta(hours=1),
    scope: Optional[str] = None,
    issued_at: Optional[datetime] = None,
) -> str:
    """Create an HS256 signed access token.

    Args:
        client_id: Client ID (will be 'sub' claim)
        issuer: Token issuer URL
        audience: Token audience
        secret: HMAC key
        expires_delta: Token lifetime
        scope: OAuth scope, omitted from the claims when None
        issued_at: Issue instant, defaults to now

    Returns:
        Encoded JWT token
    """
    now = issued_at or datetime.now(timezone.utc)

    claims: Dict[str, Any] = {
        "sub": client_id,
        "iss": issuer,
        "aud": audience,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
    }
    if scope is not None:
        claims["scope"] = scope

    return sign_token(claims, secret)
