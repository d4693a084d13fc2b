"""
Pydantic schemas for catalog records.

Field names follow the wire format of the catalog file
(``distanceFromSun_km`` is camelCase there), so the Python attribute
names are snake_case with aliases.  ``diameter_km`` keeps integers as
integers: ``4879`` must not come back as ``4879.0``.
"""

from typing import List, Union

from pydantic import BaseModel, ConfigDict, Field


class Moon(BaseModel):
    """A natural satellite of a planet."""

    model_config = ConfigDict(frozen=True)

    name: str
    diameter_km: Union[int, float]
    # Either a year or a free-form label such as "Prehistoric".
    discovered: Union[int, str]


class Planet(BaseModel):
    """A planet of the solar system with its main measurements."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    type: str = Field(..., description="Category, e.g. Terrestrial or Gas Giant")
    diameter_km: Union[int, float]
    distance_from_sun_km: int = Field(..., alias="distanceFromSun_km")
    moons: List[Moon] = Field(default_factory=list)

    def to_record(self, include_moons: bool = False) -> dict:
        """Return the wire representation, with or without the moon list."""
        exclude = None if include_moons else {"moons"}
        return self.model_dump(by_alias=True, exclude=exclude)
