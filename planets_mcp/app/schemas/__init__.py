"""
Pydantic schema definitions.

``jsonrpc`` describes the request and reply envelopes exchanged on
``/mcp``; ``planet`` describes the records served by the catalog.
Schemas are kept apart from the services that produce them.
"""
