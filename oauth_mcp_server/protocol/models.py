"""Pydantic models for JSON-RPC 2.0 messages exchanged on the MCP endpoint."""

from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, StrictInt, StrictStr, model_validator

JsonRpcId = Union[StrictInt, StrictStr]


class JsonRpcMessage(BaseModel):
    """Inbound JSON-RPC 2.0 message.

    A request carries `method` (and `id`), a notification carries `method`
    without `id`, and a client response carries exactly one of `result` or
    `error`.
    """

    jsonrpc: Literal["2.0"]
    id: Optional[JsonRpcId] = None
    method: Optional[str] = None
    params: Optional[Dict[str, Any]] = None
    result: Any = None
    error: Optional[Dict[str, Any]] = None

    @model_validator(mode="after")
    def _check_shape(self) -> "JsonRpcMessage":
        has_result = "result" in self.model_fields_set
        has_error = "error" in self.model_fields_set
        if self.method is not None:
            if has_result or has_error:
                raise ValueError("A request must not carry result or error")
        elif has_result == has_error:
            raise ValueError("A message needs a method, a result or an error")
        return self

    @property
    def is_request(self) -> bool:
        return self.method is not None

    @property
    def is_notification(self) -> bool:
        return "id" not in self.model_fields_set


class JsonRpcResponse(BaseModel):
    """Successful JSON-RPC 2.0 response."""

    jsonrpc: Literal["2.0"] = "2.0"
    result: Dict[str, Any] = Field(default_factory=dict)
    id: Optional[JsonRpcId] = None

    def to_payload(self) -> Dict[str, Any]:
        return {"jsonrpc": self.jsonrpc, "id": self.id, "result": self.result}


class JsonRpcErrorObj(BaseModel):
    """JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Optional[Any] = None


class JsonRpcError(BaseModel):
    """JSON-RPC 2.0 error response."""

    jsonrpc: Literal["2.0"] = "2.0"
    error: JsonRpcErrorObj
    id: Optional[JsonRpcId] = None

    def to_payload(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": self.error.code, "message": self.error.message}
        if self.error.data is not None:
            error["data"] = self.error.data
        return {"jsonrpc": self.jsonrpc, "id": self.id, "error": error}


class InitializeParams(BaseModel):
    """Parameters of the MCP `initialize` method."""

    protocolVersion: Optional[str] = None
    clientInfo: Dict[str, Any] = Field(default_factory=dict)
    capabilities: Dict[str, Any] = Field(default_factory=dict)


def json_rpc_error(code: int, message: str, *, data: Any = None, request_id: Optional[JsonRpcId] = None) -> JsonRpcError:
    return JsonRpcError(
        error=JsonRpcErrorObj(code=code, message=message, data=data),
        id=request_id,
    )


__all__ = [
    "InitializeParams",
    "JsonRpcError",
    "JsonRpcErrorObj",
    "JsonRpcId",
    "JsonRpcMessage",
    "JsonRpcResponse",
    "json_rpc_error",
]
