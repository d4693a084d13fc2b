"""
Main entrypoint for the planets MCP server.

This module assembles the FastAPI application: it sets up logging,
builds and freezes the capability registry and includes the router.
``create_app`` builds and configures the app, which is then
instantiated at module import time as ``app``, so it can be served
directly::

    uvicorn planets_mcp.app.main:app --port 3000

Tests call ``create_app`` with their own registry.
"""

import logging
from typing import Optional

from fastapi import FastAPI

from .api.router import router
from .core.config import settings
from .core.logging_config import setup_logging
from .services.planet_service import PlanetCatalog
from .services.registry import CapabilityRegistry
from .services.tools import build_registry

logger = logging.getLogger(__name__)


def create_app(
    registry: Optional[CapabilityRegistry] = None,
    handler_timeout: Optional[float] = settings.handler_timeout,
) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    registry : Optional[CapabilityRegistry]
        Capabilities to serve.  Defaults to the planet tools backed by
        the catalog at ``settings.planets_data_path``.  The registry is
        frozen here, before any request can reach it.
    handler_timeout : Optional[float]
        Upper bound in seconds for a single capability call.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    setup_logging(settings.log_level, settings.log_file or None)

    if registry is None:
        registry = build_registry(PlanetCatalog.from_file(settings.planets_data_path))
    registry.freeze()

    app = FastAPI(
        title=settings.server_name,
        version=settings.server_version,
        description=settings.description,
    )
    # Shared by reference with every request context; never mutated.
    app.state.registry = registry
    app.state.handler_timeout = handler_timeout

    app.include_router(router)

    logger.info("MCP server ready with tools: %s", ", ".join(registry) or "none")
    return app


app = create_app()
