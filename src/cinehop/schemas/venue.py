"""Pydantic schemas for venue data."""

from pydantic import BaseModel, ConfigDict


class Venue(BaseModel):
    """A physical cinema location as listed by the catalog."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    city: str


class City(BaseModel):
    """A city and the venues in it, ordered by name."""

    name: str
    venues: list[Venue]
