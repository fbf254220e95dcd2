"""Tool registry and the built-in example tools."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from mcp.types import Tool

ToolHandler = Callable[[Dict[str, Any]], str]


@dataclass(frozen=True)
class RegisteredTool:
    descriptor: Tool
    handler: ToolHandler
    required_arguments: Tuple[str, ...] = ()


class ToolRegistry:
    """Static set of tools published by `tools/list` and run by `tools/call`."""

    def __init__(self):
        self._tools: Dict[str, RegisteredTool] = {}

    def register(
        self,
        name: str,
        description: str,
        handler: ToolHandler,
        properties: Optional[Dict[str, Any]] = None,
        required: Optional[List[str]] = None,
    ) -> RegisteredTool:
        """Register a tool.

        Args:
            name: Unique tool name
            description: Human-readable description
            handler: Callable taking the arguments mapping, returning text
            properties: JSON Schema properties of the arguments object
            required: Names of mandatory arguments

        Returns:
            The registered tool

        Raises:
            ValueError: If a tool with this name is already registered
        """
        if name in self._tools:
            raise ValueError(f"Tool '{name}' is already registered")

        descriptor = Tool.model_validate({
            "name": name,
            "description": description,
            "inputSchema": {
                "type": "object",
                "properties": properties or {},
                "required": list(required or []),
            },
        })
        tool = RegisteredTool(descriptor=descriptor, handler=handler, required_arguments=tuple(required or ()))
        self._tools[name] = tool
        return tool

    def get(self, name: str) -> Optional[RegisteredTool]:
        return self._tools.get(name)

    def list_tools(self) -> List[Tool]:
        return [tool.descriptor for tool in self._tools.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


def echo_handler(arguments: Dict[str, Any]) -> str:
    """MCP tool: Echo back the provided text"""
    return f"Echo: {arguments.get('text', '')}"


def ping_handler(arguments: Dict[str, Any]) -> str:
    """MCP tool: Return pong"""
    return "pong"


def timestamp_handler(arguments: Dict[str, Any]) -> str:
    """MCP tool: Get current server time"""
    now = datetime.now(timezone.utc)
    return f"Current server time: {now.isoformat()}"


def build_default_registry() -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(
        name="echo",
        description="Echo back the provided text",
        handler=echo_handler,
        properties={
            "text": {
                "type": "string",
                "description": "Text to echo back",
            }
        },
        required=["text"],
    )
    registry.register(
        name="ping",
        description="Simple ping test that returns pong",
        handler=ping_handler,
    )
    registry.register(
        name="timestamp",
        description="Get current server timestamp",
        handler=timestamp_handler,
    )
    return registry
