"""OAuth 2.0 authorization endpoint schemas."""

from typing import Optional
from pydantic import BaseModel, Field


class AuthorizeRequest(BaseModel):
    """Authorization Code + PKCE request, as parsed from the query string."""

    response_type: str = Field(default="", description="Must be 'code'")
    client_id: str = Field(default="", description="Client identifier")
    redirect_uri: str = Field(default="", description="Where to send the user agent back")
    scope: Optional[str] = Field(default=None, description="Requested scope")
    state: Optional[str] = Field(default=None, description="Opaque value echoed on redirect")
    code_challenge: str = Field(default="", description="PKCE code challenge")
    code_challenge_method: str = Field(default="S256", description="PKCE code challenge method")
