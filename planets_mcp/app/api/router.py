"""
Top‑level router.

Aggregates the endpoint routers.  When new endpoints are added, update
this file to include their routers.
"""

from fastapi import APIRouter

from .endpoints import mcp

router = APIRouter()

router.include_router(mcp.router, tags=["mcp"])
