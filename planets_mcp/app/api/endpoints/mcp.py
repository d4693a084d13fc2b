"""
MCP endpoint (stateless streamable HTTP profile).

``POST /mcp`` is the only verb that performs a protocol exchange.  Each
request gets a brand-new ``RequestContext`` bound to the shared
registry; the context is closed in ``finally`` on every exit path, and
earlier by a watcher task if the client disconnects while the handler
is still running.  Protocol errors travel inside an HTTP 200 body, as
the JSON-RPC convention requires.

``GET /mcp`` and ``DELETE /mcp`` serve server-initiated streams and
session termination in the stateful profile.  A stateless server has
neither, so both answer 405.
"""

import asyncio
import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, Response
from starlette.requests import ClientDisconnect

from planets_mcp.app.core.errors import ErrorCodes
from planets_mcp.app.schemas.jsonrpc import JsonRpcResponse
from planets_mcp.app.services.context import RequestContext

logger = logging.getLogger(__name__)

router = APIRouter()

METHOD_NOT_ALLOWED_REPLY = JsonRpcResponse.failure(
    None, ErrorCodes.METHOD_NOT_ALLOWED, "Method not allowed."
).to_dict()

INTERNAL_SERVER_ERROR_REPLY = JsonRpcResponse.failure(
    None, ErrorCodes.INTERNAL_ERROR, "Internal server error"
).to_dict()


def _log_closed(context: RequestContext) -> None:
    logger.debug("Request closed (context %s)", context.id)


async def _close_on_disconnect(request: Request, context: RequestContext) -> None:
    """Close ``context`` as soon as the client goes away.

    Only started once the body has been read, so the next ASGI message
    can only be ``http.disconnect``.
    """
    while not context.closed:
        message = await request.receive()
        if message["type"] == "http.disconnect":
            if context.close():
                logger.info("Client disconnected; closed context %s", context.id)
            return


async def _stop_watcher(watcher: "asyncio.Task[None]") -> None:
    watcher.cancel()
    for outcome in await asyncio.gather(watcher, return_exceptions=True):
        if isinstance(outcome, Exception):
            logger.error("Disconnect watcher failed", exc_info=outcome)


@router.post("/mcp")
async def handle_mcp_post(request: Request) -> Response:
    """Serve one JSON-RPC request in an isolated context."""
    context = RequestContext(
        request.app.state.registry,
        handler_timeout=request.app.state.handler_timeout,
    )
    context.on_close(_log_closed)
    watcher = None
    try:
        body = await request.body()
        context.connect()
        watcher = asyncio.create_task(_close_on_disconnect(request, context))
        reply = await context.handle(body)
        if context.closed:
            # Nobody is left to read it; the server drops this response.
            return Response(status_code=status.HTTP_204_NO_CONTENT)
        if reply is None:
            return Response(status_code=status.HTTP_202_ACCEPTED)
        return JSONResponse(status_code=status.HTTP_200_OK, content=reply.to_dict())
    except ClientDisconnect:
        logger.info("Client disconnected before the request body was read")
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except Exception:
        logger.exception("Error handling MCP request")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=INTERNAL_SERVER_ERROR_REPLY,
        )
    finally:
        if watcher is not None:
            await _stop_watcher(watcher)
        context.close()


@router.get("/mcp")
async def handle_mcp_get() -> JSONResponse:
    logger.info("Received GET MCP request")
    return JSONResponse(status_code=status.HTTP_405_METHOD_NOT_ALLOWED, content=METHOD_NOT_ALLOWED_REPLY)


@router.delete("/mcp")
async def handle_mcp_delete() -> JSONResponse:
    logger.info("Received DELETE MCP request")
    return JSONResponse(status_code=status.HTTP_405_METHOD_NOT_ALLOWED, content=METHOD_NOT_ALLOWED_REPLY)
