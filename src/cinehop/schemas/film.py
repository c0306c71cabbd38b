"""Pydantic schemas for film data."""

from pydantic import BaseModel, ConfigDict


class Film(BaseModel):
    """Film metadata carried on every showtime of that film."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    poster_url: str = ""
    release_date: str | None = None
    release_year: int | None = None
    duration: int | None = None  # minutes
    cast: list[str] = []
    directors: list[str] = []
    spoken_languages: list[str] = []
    short_description: str | None = None
    description: str | None = None
    overview: str = ""
