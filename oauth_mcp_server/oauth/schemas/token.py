"""OAuth 2.0 token endpoint schemas."""

from typing import Optional
from pydantic import BaseModel, Field


class TokenRequest(BaseModel):
    """OAuth 2.0 authorization_code token request."""

    grant_type: Optional[str] = Field(default=None, description="OAuth 2.0 grant type")
    code: Optional[str] = Field(default=None, description="Authorization code")
    redirect_uri: Optional[str] = Field(default=None, description="Redirect URI used at /authorize")
    client_id: Optional[str] = Field(default=None, description="Client identifier")
    code_verifier: Optional[str] = Field(default=None, description="PKCE code verifier")


class TokenResponse(BaseModel):
    """OAuth 2.0 token response."""

    access_token: str = Field(..., description="Access token")
    token_type: str = Field(default="Bearer", description="Token type")
    expires_in: int = Field(..., description="Token expiration time in seconds")
    scope: Optional[str] = Field(default=None, description="Granted scope")


class OAuthErrorResponse(BaseModel):
    """OAuth 2.0 error response."""

    error: str = Field(..., description="Error code")
