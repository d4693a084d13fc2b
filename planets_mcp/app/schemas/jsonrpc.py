"""
Pydantic models for JSON-RPC 2.0 envelopes and tool results.

A reply carries either ``result`` or ``error``, never both.  The
``to_dict`` helpers build the exact wire shape: ``id`` is always
present (``null`` when unknown) and the absent member is omitted
rather than sent as ``null``.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, StrictInt, StrictStr

from ..core.errors import McpError

JSONRPC_VERSION = "2.0"

RequestId = Optional[Union[StrictStr, StrictInt]]


class JsonRpcRequest(BaseModel):
    """A single parsed request envelope."""

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: RequestId = Field(None, description="Echoed back verbatim in the reply")
    method: str = Field(..., description="Protocol method or capability name")
    params: Dict[str, Any] = Field(default_factory=dict)


class JsonRpcError(BaseModel):
    code: int
    message: str
    data: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


class JsonRpcResponse(BaseModel):
    """A reply envelope."""

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: RequestId = None
    result: Optional[Any] = None
    error: Optional[JsonRpcError] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @classmethod
    def success(cls, request_id: RequestId, result: Any) -> "JsonRpcResponse":
        return cls(id=request_id, result=result)

    @classmethod
    def failure(
        cls,
        request_id: RequestId,
        code: int,
        message: str,
        data: Optional[Any] = None,
    ) -> "JsonRpcResponse":
        return cls(id=request_id, error=JsonRpcError(code=int(code), message=message, data=data))

    @classmethod
    def from_exception(cls, request_id: RequestId, exc: McpError) -> "JsonRpcResponse":
        return cls.failure(request_id, exc.code, exc.message, exc.data)

    def to_dict(self) -> Dict[str, Any]:
        reply: Dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            reply["error"] = self.error.to_dict()
        else:
            reply["result"] = self.result if self.result is not None else {}
        return reply


class TextContent(BaseModel):
    """A text content block of a tool result."""

    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    """Success payload of a capability call: a sequence of content blocks."""

    content: List[TextContent] = Field(default_factory=list)

    @classmethod
    def text(cls, text: str) -> "ToolResult":
        return cls(content=[TextContent(text=text)])

    def to_dict(self) -> Dict[str, Any]:
        return {"content": [block.model_dump() for block in self.content]}
