"""JSON-RPC dispatcher for the MCP handshake and tool invocation."""

import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional, Sequence, Union

from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    Implementation,
    ServerCapabilities,
    TextContent,
)
from pydantic import ValidationError

from oauth_mcp_server.protocol.models import (
    InitializeParams,
    JsonRpcError,
    JsonRpcId,
    JsonRpcMessage,
    JsonRpcResponse,
    json_rpc_error,
)
from oauth_mcp_server.protocol.tools import ToolRegistry

logger = logging.getLogger(__name__)

DispatchResult = Union[JsonRpcResponse, JsonRpcError]


class Method(str, Enum):
    INITIALIZE = "initialize"
    TOOLS_LIST = "tools/list"
    TOOLS_CALL = "tools/call"
    PING = "ping"


class ProtocolDispatcher:
    """Maps one inbound JSON-RPC message to one response.

    Holds no per-call state; the tool registry is fixed at construction.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        server_info: Implementation,
        protocol_version_prefixes: Sequence[str] = ("2024-",),
    ):
        self.registry = registry
        self.server_info = server_info
        self.protocol_version_prefixes = tuple(protocol_version_prefixes)
        self.capabilities = ServerCapabilities.model_validate({"tools": {"listChanged": False}})
        self._handlers: Dict[Method, Callable[[Dict[str, Any], Optional[JsonRpcId]], DispatchResult]] = {
            Method.INITIALIZE: self._handle_initialize,
            Method.TOOLS_LIST: self._handle_tools_list,
            Method.TOOLS_CALL: self._handle_tools_call,
            Method.PING: self._handle_ping,
        }

    def dispatch(self, message: JsonRpcMessage) -> DispatchResult:
        """Handle one request. Never raises."""
        try:
            method = Method(message.method)
        except ValueError:
            return json_rpc_error(
                METHOD_NOT_FOUND,
                f"Method not found: {message.method}",
                request_id=message.id,
            )

        try:
            return self._handlers[method](message.params or {}, message.id)
        except Exception:
            logger.exception("Unhandled error while dispatching %s", method.value)
            return json_rpc_error(INTERNAL_ERROR, "Internal error", request_id=message.id)

    def is_supported_version(self, version: str) -> bool:
        return any(version.startswith(prefix) for prefix in self.protocol_version_prefixes)

    def _handle_initialize(self, params: Dict[str, Any], request_id: Optional[JsonRpcId]) -> DispatchResult:
        try:
            parsed = InitializeParams.model_validate(params)
        except ValidationError as exc:
            return json_rpc_error(
                INVALID_PARAMS,
                "Invalid initialize params",
                data=exc.errors(include_url=False, include_context=False),
                request_id=request_id,
            )

        version = parsed.protocolVersion
        if not version or not self.is_supported_version(version):
            supported = ", ".join(f"{prefix}*" for prefix in self.protocol_version_prefixes)
            return json_rpc_error(
                INVALID_PARAMS,
                f"Unsupported protocol version: {version!r} (supported: {supported})",
                request_id=request_id,
            )

        logger.info("Initialized MCP session for client %s (protocol %s)", parsed.clientInfo.get("name"), version)
        result = {
            "protocolVersion": version,
            "capabilities": self.capabilities.model_dump(by_alias=True, exclude_none=True),
            "serverInfo": self.server_info.model_dump(by_alias=True, exclude_none=True),
        }
        return JsonRpcResponse(result=result, id=request_id)

    def _handle_tools_list(self, params: Dict[str, Any], request_id: Optional[JsonRpcId]) -> DispatchResult:
        tools = [tool.model_dump(by_alias=True, exclude_none=True) for tool in self.registry.list_tools()]
        return JsonRpcResponse(result={"tools": tools}, id=request_id)

    def _handle_tools_call(self, params: Dict[str, Any], request_id: Optional[JsonRpcId]) -> DispatchResult:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            return json_rpc_error(INVALID_PARAMS, "Missing tool name", request_id=request_id)

        tool = self.registry.get(name)
        if tool is None:
            return json_rpc_error(INVALID_PARAMS, f"Unknown tool: {name}", request_id=request_id)

        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            return json_rpc_error(
                INVALID_PARAMS,
                "Invalid params: 'arguments' must be an object",
                request_id=request_id,
            )

        missing = [arg for arg in tool.required_arguments if arg not in arguments]
        if missing:
            return json_rpc_error(
                INVALID_PARAMS,
                f"Missing required arguments for {name}: {', '.join(missing)}",
                request_id=request_id,
            )

        try:
            text = tool.handler(arguments)
        except Exception as exc:
            logger.warning("Tool %s failed: %s", name, exc)
            return json_rpc_error(INTERNAL_ERROR, f"Tool execution failed: {exc}", request_id=request_id)

        content = TextContent(type="text", text=text)
        result = {"content": [content.model_dump(by_alias=True, exclude_none=True)], "isError": False}
        return JsonRpcResponse(result=result, id=request_id)

    def _handle_ping(self, params: Dict[str, Any], request_id: Optional[JsonRpcId]) -> DispatchResult:
        return JsonRpcResponse(result={}, id=request_id)
