"""Fetch-and-aggregate orchestration for filter changes."""

import asyncio
import logging
from datetime import datetime

from pydantic import BaseModel

from cinehop.exceptions import UpstreamUnavailable
from cinehop.schemas import AggregatedFilm, City, FilterCriteria
from cinehop.services.aggregator import ShowtimeAggregator, collect_specials
from cinehop.services.catalog_client import CatalogClient
from cinehop.services.query_scope import build_query_scope
from cinehop.services.venue_directory import VenueDirectory

logger = logging.getLogger(__name__)

FILMS_ERROR = "Failed to load movies. Please try again later."
VENUES_ERROR = "Failed to load theaters. Please try again later."


class ShowtimeResult(BaseModel):
    """Outcome of one refresh; error is set when the catalog was unavailable."""

    generation: int
    films: list[AggregatedFilm] = []
    specials: list[str] = []
    error: str | None = None


class CitiesResult(BaseModel):
    cities: list[City] = []
    error: str | None = None


class ShowtimePlanner:
    """
    Runs the catalog queries for each filter change.

    Every refresh takes a new generation number. Its result is applied to
    ``current`` only if no later refresh has started in the meantime; a
    superseded refresh returns None.
    """

    def __init__(
        self,
        client: CatalogClient,
        directory: VenueDirectory | None = None,
        aggregator: ShowtimeAggregator | None = None,
    ) -> None:
        self.client = client
        self.directory = directory or VenueDirectory(client)
        self.aggregator = aggregator or ShowtimeAggregator()
        self.current: ShowtimeResult | None = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    async def load_cities(self) -> CitiesResult:
        """Venue directory grouped by city, or an error message."""
        try:
            return CitiesResult(cities=await self.directory.cities())
        except UpstreamUnavailable as e:
            logger.error(f"Failed to load theaters: {e}")
            return CitiesResult(error=VENUES_ERROR)

    async def refresh(self, criteria: FilterCriteria, now: datetime | None = None) -> ShowtimeResult | None:
        """
        Fetch, filter and aggregate showtimes for a filter state.

        The specials facet and the film list are fetched concurrently over
        the same scope; only the film list query narrows by subtitle.

        Args:
            criteria: Current filter state
            now: Current instant for open-ended date ranges

        Returns:
            The applied result, or None if a newer refresh superseded this one
        """
        self._generation += 1
        generation = self._generation

        try:
            specials, films = await asyncio.gather(
                self._fetch_specials(criteria, now),
                self._fetch_films(criteria, now),
            )
            result = ShowtimeResult(generation=generation, films=films, specials=specials)
        except UpstreamUnavailable as e:
            logger.error(f"Failed to load data: {e}")
            result = ShowtimeResult(generation=generation, error=FILMS_ERROR)

        if generation != self._generation:
            logger.debug(f"Discarding stale refresh {generation} (latest is {self._generation})")
            return None

        self.current = result
        return result

    async def _fetch_specials(self, criteria: FilterCriteria, now: datetime | None) -> list[str]:
        try:
            scope = await build_query_scope(criteria, self.directory, include_subtitles=False, now=now)
            return collect_specials(await self.client.list_showtimes(scope))
        except UpstreamUnavailable as e:
            logger.error(f"Failed to load specials: {e}")
            return []

    async def _fetch_films(self, criteria: FilterCriteria, now: datetime | None) -> list[AggregatedFilm]:
        scope = await build_query_scope(criteria, self.directory, include_subtitles=True, now=now)
        raw = await self.client.list_showtimes(scope)
        films = self.aggregator.aggregate(raw, criteria)
        logger.info(f"Aggregated {len(raw)} showtimes into {len(films)} films")
        return films
