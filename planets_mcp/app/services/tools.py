"""
Tool wiring.

``build_registry`` creates the capability registry the server exposes.
The only tool is ``getPlanets``, backed by a planet data source that is
passed in, so tests and alternative deployments can substitute their
own catalog.
"""

from __future__ import annotations

import json
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool

from planets_mcp.app.schemas.jsonrpc import ToolResult
from planets_mcp.app.services.planet_service import PlanetCatalog
from planets_mcp.app.services.registry import CapabilityRegistry


class GetPlanetsInput(BaseModel):
    """Arguments of ``getPlanets``.

    ``includeMoons`` must be a real JSON boolean; strings such as
    ``"true"`` and ``null`` are rejected as invalid params instead of
    being coerced.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    include_moons: StrictBool = Field(
        False,
        alias="includeMoons",
        description="Include the list of moons of each planet",
    )


def build_registry(
    catalog: PlanetCatalog,
    registry: Optional[CapabilityRegistry] = None,
) -> CapabilityRegistry:
    """Register the planet tools on ``registry`` (a new one by default).

    The registry is returned unfrozen; the application factory freezes
    it before serving.
    """
    registry = registry if registry is not None else CapabilityRegistry()

    @registry.tool("getPlanets", input_model=GetPlanetsInput)
    async def get_planets(params: GetPlanetsInput) -> ToolResult:
        """Retrieve a list of planets in the solar system"""
        planets = await catalog.list_planets(include_moons=params.include_moons)
        return ToolResult.text(json.dumps(planets, separators=(",", ":")))

    return registry
