"""
JSON-RPC protocol dispatcher.

``ProtocolDispatcher.handle`` turns one raw request body into one
reply envelope.  It parses and checks the envelope, resolves the
target (a protocol method such as ``tools/list`` or a capability
name), validates the input against the capability's model, invokes
the handler and maps the outcome to a reply.  Every ``McpError`` is
converted at this boundary; any other exception raised by a handler
is logged and reported as a generic internal error, so no internal
detail ever reaches a client.

Capabilities can be called two ways: directly, with the capability
name as ``method`` and its input as ``params``; or through the MCP
``tools/call`` method with ``{"name": ..., "arguments": ...}``.  Both
take the same validation and invocation path.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from planets_mcp.app.core.config import settings
from planets_mcp.app.core.errors import (
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    McpError,
    ParseError,
    UnknownCapabilityError,
)
from planets_mcp.app.schemas.jsonrpc import (
    JSONRPC_VERSION,
    JsonRpcRequest,
    JsonRpcResponse,
    RequestId,
    ToolResult,
)
from planets_mcp.app.services.registry import Capability, CapabilityRegistry

logger = logging.getLogger(__name__)

# Newest first.  ``initialize`` echoes the client's version when it is
# listed here and answers with the newest one otherwise.
SUPPORTED_PROTOCOL_VERSIONS = ("2025-06-18", "2025-03-26", "2024-11-05")

SERVER_CAPABILITIES: Dict[str, Any] = {
    "logging": {},
    "tools": {"listChanged": True},
}

NOTIFICATION_PREFIX = "notifications/"

ProtocolMethod = Callable[[Dict[str, Any]], Awaitable[Any]]


def _is_valid_id(value: Any) -> bool:
    # bool is an int subclass but is not a legal id.
    if isinstance(value, bool):
        return False
    return value is None or isinstance(value, (str, int))


def to_tool_result(value: Any) -> ToolResult:
    """Wrap a handler's return value into the success payload."""
    if isinstance(value, ToolResult):
        return value
    if isinstance(value, str):
        return ToolResult.text(value)
    if isinstance(value, (dict, list)):
        return ToolResult.text(json.dumps(value, separators=(",", ":")))
    return ToolResult.text(str(value))


class ProtocolDispatcher:
    """Dispatches parsed envelopes to protocol methods and capabilities.

    One dispatcher is bound to one request context.  It holds a
    reference to the shared registry and never modifies it.
    """

    def __init__(
        self,
        registry: CapabilityRegistry,
        handler_timeout: Optional[float] = None,
        server_info: Optional[Dict[str, str]] = None,
        instructions: Optional[str] = None,
    ) -> None:
        self.registry = registry
        self.handler_timeout = handler_timeout
        self.server_info = server_info or {
            "name": settings.server_name,
            "version": settings.server_version,
        }
        self.instructions = instructions or settings.description
        self._protocol_methods: Dict[str, ProtocolMethod] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
        }

    async def handle(self, raw_body: Union[bytes, str]) -> Optional[JsonRpcResponse]:
        """Process one request body.

        Returns the reply envelope, or ``None`` for notifications,
        which take no reply.
        """
        request_id: RequestId = None
        try:
            body = self.load(raw_body)
            if _is_valid_id(body.get("id")):
                request_id = body.get("id")
            request = self.parse(body)
            if request.method.startswith(NOTIFICATION_PREFIX):
                logger.debug("Received notification %s", request.method)
                return None
            result = await self.dispatch(request)
            return JsonRpcResponse.success(request_id, result)
        except McpError as exc:
            if exc.code != InternalError.code:
                logger.info("Request %r rejected (%d): %s", request_id, exc.code, exc.message)
            return JsonRpcResponse.from_exception(request_id, exc)

    @staticmethod
    def load(raw_body: Union[bytes, str]) -> Dict[str, Any]:
        """Decode the body; anything but a JSON object is a ``ParseError``."""
        try:
            body = json.loads(raw_body)
        except (ValueError, RecursionError) as exc:
            raise ParseError() from exc
        if not isinstance(body, dict):
            raise ParseError("Parse error: expected a single JSON-RPC request object")
        return body

    @staticmethod
    def parse(body: Dict[str, Any]) -> JsonRpcRequest:
        """Check a decoded envelope.

        Raises ``InvalidRequestError`` for a bad ``jsonrpc`` member or
        id type, ``UnknownCapabilityError`` when ``method`` is missing
        and ``InvalidParamsError`` when ``params`` is not an object.
        """
        request_id = body.get("id")
        if not _is_valid_id(request_id):
            raise InvalidRequestError("Invalid Request: id must be a string, an integer or null")
        if body.get("jsonrpc") != JSONRPC_VERSION:
            raise InvalidRequestError('Invalid Request: jsonrpc must be "2.0"')

        method = body.get("method")
        if not isinstance(method, str) or not method:
            raise UnknownCapabilityError()

        params = body.get("params")
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise InvalidParamsError("Invalid params: expected an object")

        return JsonRpcRequest(id=request_id, method=method, params=params)

    async def dispatch(self, request: JsonRpcRequest) -> Any:
        """Route a parsed request and return its ``result`` member."""
        protocol_method = self._protocol_methods.get(request.method)
        if protocol_method is not None:
            return await protocol_method(request.params)
        capability = self.registry.resolve(request.method)
        return await self.invoke(capability, request.params)

    async def invoke(self, capability: Capability, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Validate ``params`` and run the capability's handler.

        This is the only suspension point of a request.  A handler
        exception or an elapsed ``handler_timeout`` becomes
        ``InternalError``, and so does a return value that cannot be
        wrapped into a result.  Cancellation is left to propagate.
        """
        validated = capability.validate(params)
        try:
            if self.handler_timeout:
                value = await asyncio.wait_for(capability.handler(validated), self.handler_timeout)
            else:
                value = await capability.handler(validated)
            return to_tool_result(value).to_dict()
        except asyncio.TimeoutError as exc:
            logger.warning(
                "Capability %s exceeded %.3fs timeout", capability.name, self.handler_timeout
            )
            raise InternalError("Request timed out") from exc
        except Exception as exc:
            logger.exception("Capability %s raised an exception", capability.name)
            raise InternalError() from exc

    async def _initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        requested = params.get("protocolVersion")
        version = requested if requested in SUPPORTED_PROTOCOL_VERSIONS else SUPPORTED_PROTOCOL_VERSIONS[0]
        return {
            "protocolVersion": version,
            "capabilities": copy.deepcopy(SERVER_CAPABILITIES),
            "serverInfo": dict(self.server_info),
            "instructions": self.instructions,
        }

    async def _ping(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {}

    async def _list_tools(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"tools": [capability.to_dict() for capability in self.registry.list()]}

    async def _call_tool(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidParamsError("Invalid params: tool name is required")
        capability = self.registry.resolve(name)
        return await self.invoke(capability, params.get("arguments"))

