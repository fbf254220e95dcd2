"""Bearer-protected MCP endpoints: JSON-RPC over POST, events over SSE."""

import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, Response, StreamingResponse
from mcp.types import INVALID_REQUEST, PARSE_ERROR
from pydantic import ValidationError

from oauth_mcp_server.oauth.dependencies import require_access_token
from oauth_mcp_server.protocol.dispatcher import ProtocolDispatcher
from oauth_mcp_server.protocol.events import EventHub
from oauth_mcp_server.protocol.models import JsonRpcMessage, json_rpc_error

logger = logging.getLogger(__name__)

router = APIRouter()


def get_dispatcher(request: Request) -> ProtocolDispatcher:
    return request.app.state.dispatcher


def get_event_hub(request: Request) -> EventHub:
    return request.app.state.event_hub


@router.post("/mcp")
@router.post("/sse")
async def mcp_message(
    request: Request,
    claims: Dict[str, Any] = Depends(require_access_token),
    dispatcher: ProtocolDispatcher = Depends(get_dispatcher),
):
    """Process one JSON-RPC message.

    Returns 200 with the response message, even when it carries a
    protocol error. Notifications and client responses get 202 with no body.
    """
    body = await request.body()
    try:
        data = json.loads(body)
    except ValueError:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=json_rpc_error(PARSE_ERROR, "Parse error").to_payload(),
        )

    try:
        message = JsonRpcMessage.model_validate(data)
    except ValidationError:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=json_rpc_error(INVALID_REQUEST, "Invalid Request").to_payload(),
        )

    if not message.is_request:
        return Response(status_code=status.HTTP_202_ACCEPTED)

    response = dispatcher.dispatch(message)
    if message.is_notification:
        logger.debug("Handled notification %s from %s", message.method, claims.get("sub"))
        return Response(status_code=status.HTTP_202_ACCEPTED)

    return JSONResponse(content=response.to_payload())


@router.get("/sse")
@router.get("/mcp")
async def event_stream(
    claims: Dict[str, Any] = Depends(require_access_token),
    hub: EventHub = Depends(get_event_hub),
):
    """Open a Server-Sent Events stream; the first event is `connected`."""
    channel = hub.open(claims.get("sub", ""))

    async def _event_generator():
        try:
            async for frame in channel.stream():
                yield frame
        finally:
            hub.discard(channel)

    return StreamingResponse(
        _event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
