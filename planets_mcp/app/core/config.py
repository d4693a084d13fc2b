"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields, so the
server starts with no configuration at all and listens on port 3000.
In a container deployment you would usually only override ``PORT``.
"""

import os
from dataclasses import dataclass
from typing import Optional


def _optional_float(value: str) -> Optional[float]:
    """Parse an optional positive number of seconds; empty means unset."""
    if not value.strip():
        return None
    seconds = float(value)
    return seconds if seconds > 0 else None


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    server_name: str = os.getenv("SERVER_NAME", "planets-mcp")
    server_version: str = os.getenv("SERVER_VERSION", "1.0.0")
    description: str = os.getenv("SERVER_DESCRIPTION", "A planet lookup server")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    # Optional log file in addition to the console.
    log_file: str = os.getenv("LOG_FILE", "")

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "3000"))

    # Upper bound in seconds for a single capability call.  Unset by
    # default, so handlers may run for as long as the client waits.
    handler_timeout: Optional[float] = _optional_float(os.getenv("HANDLER_TIMEOUT", ""))

    # Path to the planet catalog.  Empty means the file bundled with
    # the package (``planets_mcp/data/planets.json``).
    planets_data_path: str = os.getenv("PLANETS_DATA_PATH", "")


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# must be set before importing this module.
settings = Settings()
