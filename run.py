"""Entry point for the planets MCP server.

This script serves the FastAPI application with Uvicorn.  It is
intended to be executed from the project root, for example in Docker,
where you only specify a single Python file to run.

Host and port are read from the ``HOST`` and ``PORT`` environment
variables (defaults ``0.0.0.0`` and ``3000``).  See
``planets_mcp/app/core/config.py`` for the other supported variables.

Usage:
    PORT=3000 python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from planets_mcp.app.core.config import settings
from planets_mcp.app.main import app


async def main() -> None:
    """Serve the MCP endpoint until interrupted."""
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    logging.getLogger(__name__).info(
        "MCP Stateless Streamable HTTP Server listening on port %s", settings.port
    )
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
