"""
Planet catalog service.

The catalog is the data source behind the ``getPlanets`` tool.  It is
loaded once from a JSON file (by default the one bundled with the
package) into immutable ``Planet`` models and never changes after
that, which keeps the tool a pure function of its input.  Any object
with an async ``list_planets(include_moons)`` method can replace it.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from planets_mcp.app.schemas.planet import Planet

logger = logging.getLogger(__name__)

DEFAULT_DATA_PATH = Path(__file__).resolve().parent.parent.parent / "data" / "planets.json"


class PlanetCatalog:
    """Read-only collection of planets."""

    def __init__(self, planets: Iterable[Planet]) -> None:
        self._planets: Tuple[Planet, ...] = tuple(planets)

    @classmethod
    def from_file(cls, path: Optional[str] = None) -> "PlanetCatalog":
        """Load the catalog from a JSON array of planet records.

        An empty or missing ``path`` selects the bundled data file.
        Malformed files raise at startup, not on the first request.
        """
        data_path = Path(path) if path else DEFAULT_DATA_PATH
        with data_path.open(encoding="utf-8") as fh:
            raw = json.load(fh)
        if not isinstance(raw, list):
            raise ValueError(f"Planet catalog {data_path} must contain a JSON array")
        planets = [Planet.model_validate(item) for item in raw]
        logger.info("Loaded %d planets from %s", len(planets), data_path)
        return cls(planets)

    def __len__(self) -> int:
        return len(self._planets)

    async def list_planets(self, include_moons: bool = False) -> List[dict]:
        """Return every planet as a wire record, in catalog order."""
        return [planet.to_record(include_moons=include_moons) for planet in self._planets]
