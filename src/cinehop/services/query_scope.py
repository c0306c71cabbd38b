"""Translate filter state into catalog query parameters and post-fetch predicates."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, time, tzinfo
from zoneinfo import ZoneInfo

from cinehop.config import settings
from cinehop.schemas import AggregatedFilm, DateRange, FilterCriteria, QueryScope, ShowtimeRecord
from cinehop.services.venue_directory import VenueDirectory
from cinehop.utils.text import contains_any

logger = logging.getLogger(__name__)

END_OF_DAY = time(23, 59, 59, 999000)


def local_zone() -> ZoneInfo:
    return ZoneInfo(settings.timezone)


def resolve_date_range(
    criteria: FilterCriteria,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> DateRange:
    """
    Resolve the filter's dates and times into absolute instants.

    A start date combines with the start time (midnight when unset); without
    a start date the range opens at the current instant. An end date combines
    with the end time at hh:mm:59.999 (23:59:59.999 when unset); without an
    end date the range closes at the end of the current day.

    The range is not checked for order; see DateRange.is_inverted.

    Args:
        criteria: Filter state
        now: Current instant (defaults to the wall clock)
        tz: Zone the dates and times are expressed in (defaults to settings)

    Returns:
        DateRange of timezone-aware instants
    """
    tz = tz or local_zone()
    now = now.astimezone(tz) if now else datetime.now(tz)

    if criteria.start_date:
        start_time = criteria.start_time.replace(second=0, microsecond=0) if criteria.start_time else time(0, 0)
        start = datetime.combine(criteria.start_date, start_time, tzinfo=tz)
    else:
        start = now

    if criteria.end_date:
        if criteria.end_time:
            end_time = criteria.end_time.replace(second=59, microsecond=999000)
        else:
            end_time = END_OF_DAY
        end = datetime.combine(criteria.end_date, end_time, tzinfo=tz)
    else:
        end = datetime.combine(now.date(), END_OF_DAY, tzinfo=tz)

    if start > end:
        logger.warning(f"Resolved date range is inverted: {start.isoformat()} > {end.isoformat()}")

    return DateRange(start=start, end=end)


async def resolve_venue_scope(criteria: FilterCriteria, directory: VenueDirectory) -> list[str]:
    """
    Pick the venue ids a query covers.

    Explicit theater ids win when non-empty, then the selected city, then
    every known venue. The three sources are never combined.
    """
    if criteria.selected_theaters:
        return list(criteria.selected_theaters)

    if criteria.selected_city:
        return await directory.venue_ids_for_city(criteria.selected_city)

    return await directory.all_venue_ids()


async def build_query_scope(
    criteria: FilterCriteria,
    directory: VenueDirectory,
    include_subtitles: bool = True,
    now: datetime | None = None,
) -> QueryScope:
    """Resolve everything the catalog can filter on itself."""
    return QueryScope(
        date_range=resolve_date_range(criteria, now=now),
        venue_ids=await resolve_venue_scope(criteria, directory),
        subtitle_labels=list(criteria.selected_subtitle_languages) if include_subtitles else [],
    )


class Predicate(ABC):
    """A filter the catalog cannot apply, checked after fetching."""

    def __init__(self, selected: list[str]) -> None:
        self.selected = [value for value in selected if value and value.strip()]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.selected!r})"


class ShowtimePredicate(Predicate):
    """Applied to each showtime before films are grouped."""

    @abstractmethod
    def matches(self, showtime: ShowtimeRecord) -> bool:
        pass


class FilmPredicate(Predicate):
    """Applied to each film after grouping; a film passes if any of its data matches."""

    @abstractmethod
    def matches(self, film: AggregatedFilm) -> bool:
        pass


class SpecialsPredicate(ShowtimePredicate):
    """Showtime specials label contains any selected special."""

    def matches(self, showtime: ShowtimeRecord) -> bool:
        return contains_any(showtime.specials, self.selected)


class SpokenLanguagePredicate(FilmPredicate):
    """Any selected language occurs in one of the film's spoken languages."""

    def matches(self, film: AggregatedFilm) -> bool:
        return any(contains_any(lang, self.selected) for lang in film.film.spoken_languages)


class SubtitlePredicate(FilmPredicate):
    """Any selected subtitle language occurs in one of the film's subtitle labels."""

    def matches(self, film: AggregatedFilm) -> bool:
        return any(contains_any(label, self.selected) for label in film.available_subtitles)


def build_predicates(criteria: FilterCriteria) -> list[Predicate]:
    """
    Build the post-fetch predicates for a filter.

    Subtitles are normally filtered by the catalog too; the subtitle
    predicate re-checks them case-insensitively. Blank selections are ignored.
    """
    candidates: list[Predicate] = [
        SpecialsPredicate(criteria.selected_specials),
        SpokenLanguagePredicate(criteria.selected_spoken_languages),
        SubtitlePredicate(criteria.selected_subtitle_languages),
    ]
    return [predicate for predicate in candidates if predicate.selected]
