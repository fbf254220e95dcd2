from fastapi import APIRouter, Depends

from oauth_mcp_server.config import Settings
from oauth_mcp_server.oauth.dependencies import get_app_settings, get_issuer
from oauth_mcp_server.oauth.pkce import SUPPORTED_METHOD

router = APIRouter()


@router.get("/.well-known/oauth-authorization-server")
async def authorization_server_metadata(
    issuer: str = Depends(get_issuer),
    settings: Settings = Depends(get_app_settings),
):
    """RFC 8414 - Authorization Server Metadata"""
    return {
        "issuer": issuer,
        "authorization_endpoint": f"{issuer}/authorize",
        "token_endpoint": f"{issuer}/token",
        "response_types_supported": ["code"],
        "grant_types_supported": ["authorization_code"],
        "code_challenge_methods_supported": [SUPPORTED_METHOD],
        "token_endpoint_auth_methods_supported": ["none"],
        "scopes_supported": settings.SCOPES_SUPPORTED,
    }


@router.get("/.well-known/oauth-protected-resource")
async def protected_resource_metadata(
    issuer: str = Depends(get_issuer),
    settings: Settings = Depends(get_app_settings),
):
    """RFC 9728 - Protected Resource Metadata"""
    return {
        "resource": issuer,
        "authorization_servers": [issuer],
        "scopes_supported": settings.SCOPES_SUPPORTED,
        "bearer_methods_supported": ["header"],
    }
