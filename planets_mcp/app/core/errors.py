"""
Error taxonomy for the JSON-RPC layer.

Every failure a client can observe is an ``McpError`` subclass that
carries a stable numeric ``code``.  The dispatcher converts them into
reply envelopes, so none of them ever escapes a request.  The
remaining exceptions describe programming or startup faults and are
meant to crash loudly.
"""

from enum import IntEnum
from typing import Any, Optional


class ErrorCodes(IntEnum):
    """JSON-RPC error codes used by the server."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
    # Transport-level convention for verbs the stateless profile refuses.
    METHOD_NOT_ALLOWED = -32000


class McpError(Exception):
    """Base class for errors that are reported back to the client."""

    code: ErrorCodes = ErrorCodes.INTERNAL_ERROR
    default_message = "Internal error"

    def __init__(self, message: Optional[str] = None, data: Optional[Any] = None) -> None:
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)


class ParseError(McpError):
    """The request body is not a JSON object."""

    code = ErrorCodes.PARSE_ERROR
    default_message = "Parse error"


class InvalidRequestError(McpError):
    """The body is JSON but not a well-formed JSON-RPC 2.0 request."""

    code = ErrorCodes.INVALID_REQUEST
    default_message = "Invalid Request"


class UnknownCapabilityError(McpError):
    """The requested method or tool is not registered."""

    code = ErrorCodes.METHOD_NOT_FOUND
    default_message = "Method not found"


class InvalidParamsError(McpError):
    code = ErrorCodes.INVALID_PARAMS
    default_message = "Invalid params"


class InternalError(McpError):
    """A handler failed.  The message is always generic."""

    code = ErrorCodes.INTERNAL_ERROR
    default_message = "Internal error"


class DuplicateCapabilityError(ValueError):
    """Raised at startup when two capabilities share a name."""


class RegistryFrozenError(RuntimeError):
    """Raised when registering into a registry that already serves requests."""


class ContextStateError(RuntimeError):
    """Raised when a request context is driven out of order."""
