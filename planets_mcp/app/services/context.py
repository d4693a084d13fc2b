"""
Per-request execution context.

Each inbound exchange gets its own ``RequestContext``.  The context
binds a fresh ``ProtocolDispatcher`` to the shared, frozen registry,
runs exactly one dispatch and is then closed.  Nothing in a context
outlives its exchange, and no context is ever reused.

Lifecycle::

    CREATED --connect()--> CONNECTED --handle()--> HANDLING
        HANDLING --(reply ready | handler failed | client gone)--> CLOSING
        CLOSING --> CLOSED

``close`` may be triggered from two places at once: the transport's
``finally`` block once the reply has been produced, and the disconnect
watcher when the client goes away first.  The first call wins and runs
the teardown hooks; every later call is a no-op.  Closing while a
dispatch is in flight cancels it and its result is discarded.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from enum import Enum
from typing import Callable, List, Optional, Union

from planets_mcp.app.core.errors import ContextStateError
from planets_mcp.app.schemas.jsonrpc import JsonRpcResponse
from planets_mcp.app.services.dispatcher import ProtocolDispatcher
from planets_mcp.app.services.registry import CapabilityRegistry

logger = logging.getLogger(__name__)

TeardownHook = Callable[["RequestContext"], None]


class ContextState(str, Enum):
    CREATED = "created"
    CONNECTED = "connected"
    HANDLING = "handling"
    CLOSING = "closing"
    CLOSED = "closed"


class RequestContext:
    """Isolated scope for one request/response exchange."""

    def __init__(
        self,
        registry: CapabilityRegistry,
        handler_timeout: Optional[float] = None,
    ) -> None:
        self.id = uuid.uuid4().hex
        self.registry: Optional[CapabilityRegistry] = registry
        self.handler_timeout = handler_timeout
        self.state = ContextState.CREATED
        self._dispatcher: Optional[ProtocolDispatcher] = None
        self._task: Optional[asyncio.Task] = None
        self._teardown_hooks: List[TeardownHook] = []

    @property
    def closed(self) -> bool:
        return self.state in (ContextState.CLOSING, ContextState.CLOSED)

    def on_close(self, hook: TeardownHook) -> None:
        """Register a callback run once when the context closes."""
        self._teardown_hooks.append(hook)

    def connect(self) -> None:
        """Bind a dispatcher to the shared registry."""
        if self.state is not ContextState.CREATED:
            raise ContextStateError(f"Cannot connect context in state {self.state.value}")
        self._dispatcher = ProtocolDispatcher(self.registry, handler_timeout=self.handler_timeout)
        self.state = ContextState.CONNECTED

    async def handle(self, raw_body: Union[bytes, str]) -> Optional[JsonRpcResponse]:
        """Dispatch one request body.

        Returns the reply, or ``None`` when there is nothing to send:
        the request was a notification, or the context was closed
        while the dispatch was in flight.
        """
        if self.state is not ContextState.CONNECTED:
            raise ContextStateError(f"Cannot handle request in state {self.state.value}")
        self.state = ContextState.HANDLING
        self._task = asyncio.ensure_future(self._dispatcher.handle(raw_body))
        try:
            reply = await self._task
        except asyncio.CancelledError:
            if self.closed:
                logger.info("Context %s closed while handling; result discarded", self.id)
                return None
            raise
        finally:
            self._task = None
        if self.closed:
            logger.info("Context %s closed before the reply was ready; result discarded", self.id)
            return None
        return reply

    def close(self) -> bool:
        """Tear the context down.

        Returns ``True`` for the call that performed the teardown and
        ``False`` for every later one.
        """
        if self.closed:
            return False
        self.state = ContextState.CLOSING
        if self._task is not None and not self._task.done():
            self._task.cancel()
        for hook in self._teardown_hooks:
            try:
                hook(self)
            except Exception:
                logger.exception("Teardown hook failed for context %s", self.id)
        self._teardown_hooks.clear()
        self._dispatcher = None
        self.registry = None
        self.state = ContextState.CLOSED
        return True

    def __repr__(self) -> str:
        return f"RequestContext(id={self.id!r}, state={self.state.value})"
