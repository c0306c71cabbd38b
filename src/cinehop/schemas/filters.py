"""Pydantic schemas for filter state and resolved query scope."""

from datetime import date, datetime, time, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _iso_instant(value: datetime) -> str:
    """Format an aware datetime as a UTC ISO-8601 instant with milliseconds."""
    utc = value.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


class FilterCriteria(BaseModel):
    """
    User-facing filter state.

    Explicit theater ids take precedence over the city when non-empty.
    Empty strings coming from form inputs are treated as unset.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    selected_city: str | None = None
    selected_theaters: list[str] = Field(default_factory=list)
    selected_subtitle_languages: list[str] = Field(default_factory=list)
    selected_spoken_languages: list[str] = Field(default_factory=list)
    selected_specials: list[str] = Field(default_factory=list)
    start_date: date | None = None
    end_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None

    @field_validator("selected_city", "start_date", "end_date", "start_time", "end_time", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class DateRange(BaseModel):
    """Absolute instants bounding a showtime query (start inclusive, end exclusive)."""

    start: datetime
    end: datetime

    @property
    def is_inverted(self) -> bool:
        return self.start > self.end

    def as_filter(self) -> dict[str, str]:
        return {"gte": _iso_instant(self.start), "lt": _iso_instant(self.end)}


class QueryScope(BaseModel):
    """Parameters the catalog can apply itself."""

    date_range: DateRange
    venue_ids: list[str] = Field(default_factory=list)
    subtitle_labels: list[str] = Field(default_factory=list)
