"""
Integration tests for the /mcp endpoint: verbs, envelopes, isolation
of concurrent requests and teardown on client disconnect.
"""
import asyncio
import json

import httpx
import pytest

from planets_mcp.app.api.endpoints import mcp as mcp_endpoint
from planets_mcp.app.main import create_app
from planets_mcp.app.services.context import ContextState, RequestContext
from planets_mcp.app.services.tools import build_registry

rpc = pytest.rpc
planets_from = pytest.planets_from
slow_registry = pytest.slow_registry

METHOD_NOT_ALLOWED = {"jsonrpc": "2.0", "id": None, "error": {"code": -32000, "message": "Method not allowed."}}


# =============================================================================
# POST
# =============================================================================

def test_get_planets_default(client):
    response = client.post("/mcp", content=rpc("getPlanets", request_id=1))

    assert response.status_code == 200
    body = response.json()
    assert body["jsonrpc"] == "2.0"
    assert body["id"] == 1
    assert "error" not in body
    planets = planets_from(body)
    assert len(planets) == 8
    assert all("moons" not in planet for planet in planets)


def test_get_planets_explicit_false(client):
    response = client.post("/mcp", content=rpc("getPlanets", {"includeMoons": False}))

    planets = planets_from(response.json())
    assert len(planets) == 8
    assert all("moons" not in planet for planet in planets)


def test_get_planets_with_moons(client):
    response = client.post("/mcp", content=rpc("getPlanets", {"includeMoons": True}))

    assert response.status_code == 200
    planets = planets_from(response.json())
    assert len(planets) == 8
    assert all("moons" in planet for planet in planets)
    earth = next(planet for planet in planets if planet["name"] == "Earth")
    assert earth["moons"] == [{"name": "Moon", "diameter_km": 3474, "discovered": "Prehistoric"}]


def test_same_input_same_bytes(client):
    first = client.post("/mcp", content=rpc("getPlanets", {"includeMoons": True}))
    second = client.post("/mcp", content=rpc("getPlanets", {"includeMoons": True}))

    assert first.content == second.content
    assert first.json()["result"] == second.json()["result"]


def test_unknown_method(client):
    response = client.post("/mcp", content=rpc("getStars", request_id="s1"))

    assert response.status_code == 200
    body = response.json()
    assert body["error"]["code"] == -32601
    assert body["id"] == "s1"
    assert "result" not in body


@pytest.mark.parametrize("content", [b"{", b"not json at all", b"", b"[" * 100000 + b"]" * 100000])
def test_invalid_json(client, content):
    response = client.post("/mcp", content=content, headers={"Content-Type": "application/json"})

    assert response.status_code == 200
    body = response.json()
    assert body["error"]["code"] == -32700
    assert body["id"] is None


def test_invalid_params_in_body(client):
    response = client.post("/mcp", content=rpc("getPlanets", {"includeMoons": "true"}, request_id=2))

    assert response.status_code == 200
    assert response.json()["error"]["code"] == -32602


def test_notification_is_accepted(client):
    body = json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"})
    response = client.post("/mcp", content=body)

    assert response.status_code == 202
    assert response.content == b""


def test_initialize_then_list_tools(client):
    init = client.post("/mcp", content=rpc("initialize", {"protocolVersion": "2025-06-18"}))
    tools = client.post("/mcp", content=rpc("tools/list", request_id=2))

    assert init.json()["result"]["capabilities"]["tools"] == {"listChanged": True}
    assert [tool["name"] for tool in tools.json()["result"]["tools"]] == ["getPlanets"]


def test_unexpected_failure_returns_500(client, monkeypatch, caplog):
    async def broken(self, raw_body):
        raise RuntimeError("secret internals")

    monkeypatch.setattr(RequestContext, "handle", broken)
    response = client.post("/mcp", content=rpc("getPlanets"))

    assert response.status_code == 500
    assert response.json() == {
        "jsonrpc": "2.0",
        "id": None,
        "error": {"code": -32603, "message": "Internal server error"},
    }
    assert "secret internals" not in response.text
    assert any("Error handling MCP request" in record.getMessage() for record in caplog.records)


# =============================================================================
# GET / DELETE
# =============================================================================

def test_get_not_allowed(client):
    response = client.get("/mcp", headers={"Accept": "text/event-stream"})

    assert response.status_code == 405
    assert response.json() == METHOD_NOT_ALLOWED


def test_delete_not_allowed(client):
    response = client.request("DELETE", "/mcp", content=rpc("getPlanets"), headers={"Mcp-Session-Id": "abc"})

    assert response.status_code == 405
    assert response.json() == METHOD_NOT_ALLOWED


# =============================================================================
# CONTEXT LIFECYCLE
# =============================================================================

def test_each_request_gets_a_new_context(client, recorded_contexts):
    client.post("/mcp", content=rpc("getPlanets", request_id=1))
    client.post("/mcp", content=rpc("getStars", request_id=2))
    client.post("/mcp", content=b"{")

    assert len(recorded_contexts) == 3
    assert len({context.id for context in recorded_contexts}) == 3
    for context in recorded_contexts:
        assert context.state is ContextState.CLOSED
        assert context.teardowns == 1


def test_context_closed_after_500(client, recorded_contexts, monkeypatch):
    async def broken(self, raw_body):
        raise RuntimeError("boom")

    monkeypatch.setattr(RequestContext, "handle", broken)
    client.post("/mcp", content=rpc("getPlanets"))

    assert recorded_contexts[0].state is ContextState.CLOSED
    assert recorded_contexts[0].teardowns == 1


def test_failed_watcher_is_collected(client, recorded_contexts, monkeypatch, caplog):
    async def broken_watcher(request, context):
        raise RuntimeError("receive failed")

    monkeypatch.setattr(mcp_endpoint, "_close_on_disconnect", broken_watcher)
    response = client.post("/mcp", content=rpc("getPlanets", request_id=3))

    assert response.status_code == 200
    assert response.json()["id"] == 3
    assert recorded_contexts[0].teardowns == 1
    assert any("Disconnect watcher failed" in record.getMessage() for record in caplog.records)


def test_concurrent_requests_keep_their_ids(catalog):
    async def run():
        app = create_app(registry=build_registry(catalog), handler_timeout=None)
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            ids = [f"req-{n}" for n in range(20)] + list(range(20))
            responses = await asyncio.gather(*(
                client.post("/mcp", content=rpc("getPlanets", {"includeMoons": n % 2 == 0}, request_id=request_id))
                for n, request_id in enumerate(ids)
            ))
        return ids, responses

    ids, responses = asyncio.run(run())

    for n, (request_id, response) in enumerate(zip(ids, responses)):
        assert response.status_code == 200
        body = response.json()
        assert body["id"] == request_id
        planets = planets_from(body)
        assert all(("moons" in planet) == (n % 2 == 0) for planet in planets)


def test_client_disconnect_closes_context_once(recorded_contexts):
    async def run():
        registry, events = slow_registry()
        app = create_app(registry=registry, handler_timeout=None)
        body = rpc("wait", request_id=99).encode()

        inbound = [{"type": "http.request", "body": body, "more_body": False}]
        disconnected = asyncio.Event()
        sent = []

        async def receive():
            if inbound:
                return inbound.pop(0)
            await disconnected.wait()
            return {"type": "http.disconnect"}

        async def send(message):
            sent.append(message)

        scope = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": "POST",
            "scheme": "http",
            "path": "/mcp",
            "raw_path": b"/mcp",
            "root_path": "",
            "query_string": b"",
            "headers": [(b"content-type", b"application/json"), (b"content-length", str(len(body)).encode())],
            "client": ("testclient", 50000),
            "server": ("testserver", 80),
        }

        app_task = asyncio.create_task(app(scope, receive, send))
        await asyncio.wait_for(events["started"].wait(), 1)
        disconnected.set()
        await asyncio.wait_for(app_task, 1)
        return sent, events

    sent, events = asyncio.run(run())

    assert len(recorded_contexts) == 1
    context = recorded_contexts[0]
    assert context.state is ContextState.CLOSED
    assert context.teardowns == 1
    assert context.close_calls >= 2
    assert events["cancelled"].is_set()
    written = b"".join(message.get("body", b"") for message in sent if message["type"] == "http.response.body")
    assert b"result" not in written
