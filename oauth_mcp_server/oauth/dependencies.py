from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from oauth_mcp_server.config import Settings
from oauth_mcp_server.oauth.flow import AuthorizationFlow
from oauth_mcp_server.oauth.verifier import TokenVerifier, UnauthorizedError

# auto_error=False: a missing header must be a 401, not FastAPI's default
security = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_issuer(request: Request) -> str:
    """Base URL of this server: SERVER_URI if configured, else the request origin"""
    settings = get_app_settings(request)
    if settings.SERVER_URI:
        return settings.SERVER_URI.rstrip("/")
    return f"{request.url.scheme}://{request.url.netloc}"


def get_authorization_flow(request: Request) -> AuthorizationFlow:
    return request.app.state.authorization_flow


def get_token_verifier(request: Request) -> TokenVerifier:
    return request.app.state.token_verifier


async def require_access_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    issuer: str = Depends(get_issuer),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> Dict[str, Any]:
    """FastAPI dependency for bearer token validation"""
    header = f"{credentials.scheme} {credentials.credentials}" if credentials else None
    try:
        return verifier.verify(header, issuer)
    except UnauthorizedError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={
                "WWW-Authenticate": f'Bearer resource_metadata="{issuer}/.well-known/oauth-protected-resource"'
            },
        )
