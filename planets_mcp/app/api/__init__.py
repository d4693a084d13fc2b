"""
API package containing the HTTP routes.

``router`` exposes a top‑level ``router`` which includes the endpoint
modules from ``endpoints``.  The MCP endpoint lives at the fixed path
``/mcp`` and is mounted without a prefix.
"""
