"""
Shared fixtures for the planets MCP tests.
"""
import asyncio
import json
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).parent.parent))

from planets_mcp.app.api.endpoints import mcp as mcp_endpoint
from planets_mcp.app.main import create_app
from planets_mcp.app.services.context import RequestContext
from planets_mcp.app.services.planet_service import PlanetCatalog
from planets_mcp.app.services.registry import CapabilityRegistry
from planets_mcp.app.services.tools import build_registry


@pytest.fixture
def catalog():
    """The bundled planet catalog."""
    return PlanetCatalog.from_file()


@pytest.fixture
def registry(catalog):
    """Frozen registry with the planet tools."""
    return build_registry(catalog).freeze()


@pytest.fixture
def client(catalog):
    """Test client for a fresh app serving the bundled catalog."""
    app = create_app(registry=build_registry(catalog), handler_timeout=None)
    return TestClient(app)


@pytest.fixture
def recorded_contexts(monkeypatch):
    """Record every request context the MCP endpoint creates."""
    instances = []

    class RecordingContext(RequestContext):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            self.close_calls = 0
            self.teardowns = 0
            self.on_close(self._count_teardown)
            instances.append(self)

        def _count_teardown(self, context):
            self.teardowns += 1

        def close(self):
            self.close_calls += 1
            return super().close()

    monkeypatch.setattr(mcp_endpoint, "RequestContext", RecordingContext)
    return instances


def rpc(method, params=None, request_id=1):
    """Helper: build a JSON-RPC request body."""
    body = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        body["params"] = params
    return json.dumps(body)


def planets_from(reply):
    """Helper: decode the planet list from a getPlanets reply."""
    return json.loads(reply["result"]["content"][0]["text"])


def slow_registry():
    """Registry whose ``wait`` tool blocks until cancelled.

    Returns the registry and a dict with ``started`` and ``cancelled``
    events; create it inside the running event loop.
    """
    events = {"started": asyncio.Event(), "cancelled": asyncio.Event()}
    registry = CapabilityRegistry()

    @registry.tool("wait")
    async def wait(params):
        """Block until cancelled."""
        events["started"].set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            events["cancelled"].set()
            raise

    return registry.freeze(), events


pytest.rpc = rpc
pytest.planets_from = planets_from
pytest.slow_registry = slow_registry
