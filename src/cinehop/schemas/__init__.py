"""Pydantic schemas for catalog data, filters and timeline state."""

from cinehop.schemas.film import Film
from cinehop.schemas.filters import DateRange, FilterCriteria, QueryScope
from cinehop.schemas.showtime import AggregatedFilm, ShowtimeRecord
from cinehop.schemas.timeline import (
    AnchorSelection,
    AvailabilityMode,
    SavedShowtime,
    TimelinePreferences,
)
from cinehop.schemas.venue import City, Venue

__all__ = [
    "AggregatedFilm",
    "AnchorSelection",
    "AvailabilityMode",
    "City",
    "DateRange",
    "Film",
    "FilterCriteria",
    "QueryScope",
    "SavedShowtime",
    "ShowtimeRecord",
    "TimelinePreferences",
    "Venue",
]
