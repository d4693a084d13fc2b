"""
Top‑level package for the planets MCP server.

This file makes ``planets_mcp`` a Python package so that modules
within ``app`` can be imported using fully qualified names like
``planets_mcp.app.main``.

The package provides no public exports; all functionality lives in
submodules under ``app``.
"""

__all__ = []
