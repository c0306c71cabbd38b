"""Pydantic schemas for timeline state and preferences."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from cinehop.config import settings


class AvailabilityMode(str, Enum):
    """How blocked showings are presented once an anchor is set."""

    HIGHLIGHT = "highlight"
    HIDE = "hide"


class AnchorSelection(BaseModel):
    """The showing currently pinned as the basis for conflict computation."""

    model_config = ConfigDict(frozen=True)

    film_id: str
    showtime_id: str


class TimelinePreferences(BaseModel):
    """Timeline display preferences persisted between sessions."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    availability_mode: AvailabilityMode = AvailabilityMode.HIGHLIGHT
    buffer_minutes: float = Field(default_factory=lambda: settings.default_buffer_minutes)
    hide_same_film: bool = False
    venue_order: list[str] = Field(default_factory=list)


class SavedShowtime(BaseModel):
    """A showing the user has put on their shortlist."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    film_id: str
    film_title: str = ""
    poster_url: str = ""
    showtime_id: str
    start: datetime
    end: datetime | None = None
    venue_id: str | None = None
    venue_name: str | None = None
    venue_city: str = ""
    ticketing_url: str | None = None
