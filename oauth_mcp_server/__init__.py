"""OAuth 2.0 (PKCE) authorization server with a bearer-protected MCP endpoint."""

__version__ = "1.0.0"
