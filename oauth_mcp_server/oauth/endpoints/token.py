"""OAuth 2.0 token endpoint."""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from oauth_mcp_server.oauth.dependencies import get_authorization_flow, get_issuer
from oauth_mcp_server.oauth.flow import AuthorizationFlow, OAuthError
from oauth_mcp_server.oauth.schemas.token import OAuthErrorResponse, TokenRequest

router = APIRouter()

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def _error_response(error: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=OAuthErrorResponse(error=error).model_dump())


async def _parse_token_request(request: Request) -> TokenRequest:
    """Read a token request from a form-encoded or JSON body.

    Raises:
        ValueError: If the body cannot be parsed
        ValidationError: If a field has the wrong type
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        data = {key: value for key, value in form.items() if isinstance(value, str)}
    else:
        data = await request.json()
        if not isinstance(data, dict):
            raise ValueError("Token request body must be a JSON object")
    return TokenRequest.model_validate(data)


@router.post("/token")
async def token_endpoint(
    request: Request,
    flow: AuthorizationFlow = Depends(get_authorization_flow),
    issuer: str = Depends(get_issuer),
):
    """OAuth 2.0 token endpoint.

    Supports the authorization_code grant type with a mandatory PKCE
    code_verifier.

    Returns:
        TokenResponse on success, {"error": ...} with status 400 otherwise
    """
    try:
        token_request = await _parse_token_request(request)
    except (ValueError, ValidationError):
        return _error_response("invalid_request")

    try:
        token_response = flow.exchange_token(token_request, issuer=issuer)
    except OAuthError as e:
        return _error_response(e.error, e.status_code)

    return JSONResponse(
        content=token_response.model_dump(),
        headers={"Cache-Control": "no-store", "Pragma": "no-cache"},
    )


@router.api_route("/token", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def token_method_not_allowed():
    return _error_response("invalid_request", status.HTTP_405_METHOD_NOT_ALLOWED)
