"""OAuth 2.0 Authorization Code + PKCE state machine.

A grant is Pending from `begin_authorization` until the first `take` by
`exchange_token` (Redeemed) or until its expiry instant passes (Expired).
Both terminal states remove the grant from the store.

Every well-formed authorization request is approved immediately: there is
no user consent step and no client registration check. This keeps the
server minimal and is not a security recommendation.
"""

import logging
from datetime import timedelta
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from oauth_mcp_server.oauth.jwt_utils import create_access_token
from oauth_mcp_server.oauth.pkce import (
    SUPPORTED_METHOD,
    UnsupportedMethodError,
    generate_auth_code,
    verify_pkce_challenge,
)
from oauth_mcp_server.oauth.schemas.authorize import AuthorizeRequest
from oauth_mcp_server.oauth.schemas.token import TokenRequest, TokenResponse
from oauth_mcp_server.oauth.storage import AuthorizationGrant, Clock, GrantStore, utc_now

logger = logging.getLogger(__name__)

RESPONSE_TYPE_CODE = "code"
GRANT_TYPE_AUTHORIZATION_CODE = "authorization_code"


class OAuthError(Exception):
    """OAuth protocol error carrying only the RFC 6749 error code."""

    def __init__(self, error: str, status_code: int = 400):
        super().__init__(error)
        self.error = error
        self.status_code = status_code


def is_redirectable(uri: Optional[str]) -> bool:
    """Whether uri is an absolute URL we can send the user agent to."""
    if not uri:
        return False
    parts = urlsplit(uri)
    return bool(parts.scheme) and bool(parts.netloc or parts.path)


def build_redirect_url(redirect_uri: str, **params: Optional[str]) -> str:
    """Append params to redirect_uri, keeping its existing query parameters.

    None values are skipped.
    """
    parts = urlsplit(redirect_uri)
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.extend((key, value) for key, value in params.items() if value is not None)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


class AuthorizationFlow:
    """Issues one-time grants and redeems them for signed access tokens."""

    def __init__(
        self,
        store: GrantStore,
        secret: str,
        audience: str = "mcp-server",
        default_scope: str = "mcp",
        code_ttl: timedelta = timedelta(minutes=10),
        token_ttl: timedelta = timedelta(hours=1),
        clock: Clock = utc_now,
    ):
        """Initialize the flow.

        Args:
            store: Grant store owned by the application instance
            secret: HMAC key for access tokens
            audience: 'aud' claim of issued tokens
            default_scope: Scope granted when the request names none
            code_ttl: Lifetime of an authorization grant
            token_ttl: Lifetime of an access token
            clock: Source of the current UTC instant
        """
        self.store = store
        self._secret = secret
        self.audience = audience
        self.default_scope = default_scope
        self.code_ttl = code_ttl
        self.token_ttl = token_ttl
        self._clock = clock
        logger.warning("Authorization requests are auto-approved (no consent step, no client registration)")

    def begin_authorization(self, request: AuthorizeRequest) -> str:
        """Validate an authorization request and mint a grant.

        Args:
            request: Parsed authorization request

        Returns:
            URL to redirect the user agent to, carrying either `code` or
            `error`, plus the echoed `state`

        Raises:
            OAuthError: If redirect_uri is missing or unusable, so no
                redirect can be issued
        """
        redirect_uri = request.redirect_uri
        state = request.state or None

        if not is_redirectable(redirect_uri):
            raise OAuthError("invalid_request")

        if request.response_type != RESPONSE_TYPE_CODE:
            return build_redirect_url(redirect_uri, error="unsupported_response_type", state=state)

        if not request.client_id or not request.code_challenge:
            return build_redirect_url(redirect_uri, error="invalid_request", state=state)

        if request.code_challenge_method != SUPPORTED_METHOD:
            return build_redirect_url(redirect_uri, error="invalid_request", state=state)

        now = self._clock()
        # 66^32 codes: collisions between live grants are not a practical concern
        code = generate_auth_code()
        grant = AuthorizationGrant(
            code=code,
            code_challenge=request.code_challenge,
            code_challenge_method=request.code_challenge_method,
            redirect_uri=redirect_uri,
            client_id=request.client_id,
            scope=request.scope or self.default_scope,
            state=state,
            expires_at=now + self.code_ttl,
            created_at=now,
        )
        self.store.put(code, grant)
        logger.info("Issued authorization code for client_id=%s", request.client_id)

        return build_redirect_url(redirect_uri, code=code, state=state)

    def exchange_token(self, request: TokenRequest, issuer: str) -> TokenResponse:
        """Redeem an authorization code for an access token.

        The grant is removed from the store before it is checked, so a
        failed exchange also discards it.

        Args:
            request: Parsed token request
            issuer: Base URL of this server, used as the 'iss' claim

        Returns:
            TokenResponse with a freshly signed access token

        Raises:
            OAuthError: unsupported_grant_type, invalid_request or invalid_grant
        """
        if request.grant_type != GRANT_TYPE_AUTHORIZATION_CODE:
            raise OAuthError("unsupported_grant_type")

        if not (request.code and request.redirect_uri and request.client_id and request.code_verifier):
            raise OAuthError("invalid_request")

        grant = self.store.take(request.code)
        if grant is None:
            logger.warning("Token request with unknown, used or expired code (client_id=%s)", request.client_id)
            raise OAuthError("invalid_grant")

        if grant.redirect_uri != request.redirect_uri or grant.client_id != request.client_id:
            logger.warning("Token request does not match grant (client_id=%s)", request.client_id)
            raise OAuthError("invalid_grant")

        try:
            verified = verify_pkce_challenge(
                request.code_verifier, grant.code_challenge, grant.code_challenge_method
            )
        except UnsupportedMethodError:
            raise OAuthError("invalid_request")
        if not verified:
            logger.warning("PKCE verification failed (client_id=%s)", request.client_id)
            raise OAuthError("invalid_grant")

        access_token = create_access_token(
            client_id=grant.client_id,
            issuer=issuer,
            audience=self.audience,
            secret=self._secret,
            expires_delta=self.token_ttl,
            scope=grant.scope,
            issued_at=self._clock(),
        )
        logger.info("Issued access token for client_id=%s", grant.client_id)

        return TokenResponse(
            access_token=access_token,
            token_type="Bearer",
            expires_in=int(self.token_ttl.total_seconds()),
            scope=grant.scope,
        )
