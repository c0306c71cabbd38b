"""Pydantic schemas for showtime data."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator

from cinehop.schemas.film import Film
from cinehop.schemas.venue import Venue


class ShowtimeRecord(BaseModel):
    """
    One scheduled screening as returned by the catalog.

    The film and venue references are optional because upstream data is not
    validated; records without them are skipped during aggregation.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    film: Film | None = None
    venue: Venue | None = None
    start: datetime
    end: datetime
    subtitles: str = ""
    language_version: str | None = None
    specials: str | None = None
    ticketing_url: str | None = None

    @field_validator("start", "end")
    @classmethod
    def _require_timezone(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("showtime instants must be timezone-aware")
        return value


class AggregatedFilm(BaseModel):
    """
    A film with its in-scope showtimes and derived facets.

    Showtimes are ordered by start. The facet sets hold distinct, trimmed,
    non-empty labels taken from those showtimes.
    """

    model_config = ConfigDict(frozen=True)

    film: Film
    showtimes: list[ShowtimeRecord]
    available_subtitles: frozenset[str] = frozenset()
    available_language_versions: frozenset[str] = frozenset()
    available_specials: frozenset[str] = frozenset()

    @property
    def id(self) -> str:
        return self.film.id

    @property
    def title(self) -> str:
        return self.film.title

    @property
    def poster_url(self) -> str:
        return self.film.poster_url

    def find_showtime(self, showtime_id: str) -> ShowtimeRecord | None:
        """Return the showtime with the given id, if it belongs to this film."""
        for showtime in self.showtimes:
            if showtime.id == showtime_id:
                return showtime
        return None
