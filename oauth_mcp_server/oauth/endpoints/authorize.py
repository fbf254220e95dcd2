"""OAuth 2.0 authorization endpoint (Authorization Code + PKCE)."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse

from oauth_mcp_server.oauth.dependencies import get_app_settings, get_authorization_flow
from oauth_mcp_server.oauth.flow import AuthorizationFlow, OAuthError
from oauth_mcp_server.oauth.schemas.authorize import AuthorizeRequest
from oauth_mcp_server.oauth.schemas.token import OAuthErrorResponse

router = APIRouter()


@router.get("/authorize")
async def authorize_endpoint(
    request: Request,
    flow: AuthorizationFlow = Depends(get_authorization_flow),
):
    """OAuth 2.0 authorization endpoint.

    Redirects back to redirect_uri with either a one-time `code` or an
    `error`, echoing `state`. Requests are approved without a consent page.

    Returns:
        302 redirect, or 400 JSON when redirect_uri is unusable
    """
    params = request.query_params
    auth_request = AuthorizeRequest(
        response_type=params.get("response_type") or "",
        client_id=params.get("client_id") or "",
        redirect_uri=params.get("redirect_uri") or "",
        scope=params.get("scope") or get_app_settings(request).DEFAULT_SCOPE,
        state=params.get("state") or None,
        code_challenge=params.get("code_challenge") or "",
        code_challenge_method=params.get("code_challenge_method") or "S256",
    )

    try:
        redirect_url = flow.begin_authorization(auth_request)
    except OAuthError as e:
        return JSONResponse(
            status_code=e.status_code,
            content=OAuthErrorResponse(error=e.error).model_dump(),
        )

    return RedirectResponse(url=redirect_url, status_code=302)
