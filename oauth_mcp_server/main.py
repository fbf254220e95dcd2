import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from mcp.types import Implementation

from oauth_mcp_server.config import Settings, get_settings
from oauth_mcp_server.oauth.endpoints.authorize import router as authorize_router
from oauth_mcp_server.oauth.endpoints.token import router as token_router
from oauth_mcp_server.oauth.flow import AuthorizationFlow
from oauth_mcp_server.oauth.storage import Clock, GrantStore, InMemoryGrantStore, utc_now
from oauth_mcp_server.oauth.verifier import TokenVerifier
from oauth_mcp_server.protocol.dispatcher import ProtocolDispatcher
from oauth_mcp_server.protocol.endpoints import router as mcp_router
from oauth_mcp_server.protocol.events import EventHub
from oauth_mcp_server.protocol.tools import ToolRegistry, build_default_registry
from oauth_mcp_server.well_known.endpoints import router as well_known_router

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Server-initiated close of every open event stream
    app.state.event_hub.close()


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[GrantStore] = None,
    registry: Optional[ToolRegistry] = None,
    clock: Clock = utc_now,
) -> FastAPI:
    """Build the combined OAuth + MCP application.

    Args:
        settings: Configuration, defaults to get_settings()
        store: Grant store, defaults to a fresh InMemoryGrantStore
        registry: Tool registry, defaults to echo/ping/timestamp
        clock: Source of the current UTC instant for grants

    Returns:
        Configured FastAPI app; components live on app.state
    """
    settings = settings or get_settings()

    app = FastAPI(title="OAuth MCP Server", version=settings.SERVER_VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.authorization_flow = AuthorizationFlow(
        store=store or InMemoryGrantStore(clock=clock),
        secret=settings.JWT_SECRET,
        audience=settings.TOKEN_AUDIENCE,
        default_scope=settings.DEFAULT_SCOPE,
        code_ttl=timedelta(minutes=settings.AUTH_CODE_EXPIRE_MINUTES),
        token_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        clock=clock,
    )
    app.state.token_verifier = TokenVerifier(settings.JWT_SECRET, audience=settings.TOKEN_AUDIENCE)
    app.state.dispatcher = ProtocolDispatcher(
        registry=registry or build_default_registry(),
        server_info=Implementation(name=settings.SERVER_NAME, version=settings.SERVER_VERSION),
        protocol_version_prefixes=settings.PROTOCOL_VERSION_PREFIXES,
    )
    app.state.event_hub = EventHub(keepalive_interval=settings.SSE_KEEPALIVE_SECONDS)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Accept"],
        max_age=86400,
    )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})

    app.include_router(well_known_router)
    app.include_router(authorize_router)
    app.include_router(token_router)
    app.include_router(mcp_router)

    @app.get("/health")
    @app.get("/")
    async def health_check():
        return {
            "status": "healthy",
            "server": settings.SERVER_NAME,
            "version": settings.SERVER_VERSION,
            "endpoints": {
                "oauth_discovery": "/.well-known/oauth-authorization-server",
                "oauth_resource": "/.well-known/oauth-protected-resource",
                "authorize": "/authorize",
                "token": "/token",
                "mcp_sse": "/sse",
                "mcp_messages": "/mcp",
            },
        }

    return app


def main() -> None:
    """Entry point to start the OAuth + MCP server."""
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    logger.info("Starting OAuth + MCP server on http://%s:%d", settings.HOST, settings.PORT)
    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
