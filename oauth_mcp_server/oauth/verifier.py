"""Bearer token verification for protected endpoints."""

import logging
from typing import Any, Dict, Optional

from oauth_mcp_server.oauth.jwt_utils import TokenError, verify_token

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


class UnauthorizedError(Exception):
    """Raised for every bearer token rejection.

    Carries no reason; the specific cause is only logged.
    """


class TokenVerifier:
    """Validates access tokens issued by AuthorizationFlow."""

    def __init__(self, secret: str, audience: str = "mcp-server"):
        self._secret = secret
        self.audience = audience

    def verify(self, authorization_header: Optional[str], issuer: str) -> Dict[str, Any]:
        """Validate an Authorization header value.

        Args:
            authorization_header: Raw header value, expected "Bearer <jwt>"
            issuer: Expected 'iss' claim

        Returns:
            Verified token claims

        Raises:
            UnauthorizedError: If the header is missing or the token is
                malformed, badly signed, expired, or for another issuer or
                audience
        """
        if not authorization_header:
            logger.warning("Rejected request: missing Authorization header")
            raise UnauthorizedError()

        scheme, _, token = authorization_header.strip().partition(" ")
        token = token.strip()
        if scheme.lower() != BEARER_SCHEME or not token:
            logger.warning("Rejected request: Authorization header is not a Bearer token")
            raise UnauthorizedError()

        try:
            claims = verify_token(token, self._secret)
        except TokenError as e:
            logger.warning("Rejected bearer token: %s (%s)", type(e).__name__, e)
            raise UnauthorizedError() from e

        if claims.get("iss") != issuer:
            logger.warning("Rejected bearer token: issuer %r does not match %r", claims.get("iss"), issuer)
            raise UnauthorizedError()

        if claims.get("aud") != self.audience:
            logger.warning("Rejected bearer token: audience %r does not match", claims.get("aud"))
            raise UnauthorizedError()

        return claims
