"""Process-lifetime venue directory with single-flight population."""

import asyncio
import logging
from collections import defaultdict

from cinehop.schemas import City, Venue
from cinehop.services.catalog_client import CatalogClient
from cinehop.utils.text import collation_key

logger = logging.getLogger(__name__)


class VenueDirectory:
    """
    Cached view of every venue the catalog knows about.

    The venue list is fetched once and kept for the lifetime of the
    instance. Concurrent first callers share a single in-flight fetch; a
    failed fetch is not cached, so the next call tries again. One instance
    is constructed at startup and passed to every consumer.
    """

    def __init__(self, client: CatalogClient) -> None:
        self.client = client
        self._venues: list[Venue] | None = None
        self._inflight: asyncio.Task[list[Venue]] | None = None
        self._city_ids: dict[str, list[str]] = {}
        self._all_ids: list[str] | None = None

    @property
    def loaded(self) -> bool:
        return self._venues is not None

    async def load_all(self) -> list[Venue]:
        """
        Return every venue, fetching from the catalog on first use.

        Returns:
            Venue list; empty means no venues are known

        Raises:
            UpstreamUnavailable: if the first fetch fails
        """
        if self._venues is not None:
            return self._venues

        task = self._inflight
        if task is None:
            task = asyncio.ensure_future(self._populate())
            self._inflight = task

        try:
            return await asyncio.shield(task)
        finally:
            if self._inflight is task and task.done():
                self._inflight = None

    async def _populate(self) -> list[Venue]:
        venues = await self.client.list_venues()
        self._venues = venues
        logger.info(f"Venue directory populated with {len(venues)} venues")
        return venues

    async def venue_ids_for_city(self, city_name: str) -> list[str]:
        """
        Venue ids whose city matches exactly (case-sensitive).

        Results are cached per city, including cities with no venues.
        """
        if city_name in self._city_ids:
            return self._city_ids[city_name]

        venues = await self.load_all()
        ids = [venue.id for venue in venues if venue.city == city_name]
        if not ids:
            logger.debug(f"No venues found for city '{city_name}'")
        self._city_ids[city_name] = ids
        return ids

    async def all_venue_ids(self) -> list[str]:
        """Every known venue id, cached after the first call."""
        if self._all_ids is None:
            venues = await self.load_all()
            self._all_ids = [venue.id for venue in venues]
        return self._all_ids

    async def cities(self) -> list[City]:
        """
        Group venues by city for display.

        City names are compared literally, without trimming or case-folding.
        Venues within a city and the cities themselves are sorted by name.
        """
        venues = await self.load_all()

        by_city: dict[str, list[Venue]] = defaultdict(list)
        for venue in venues:
            by_city[venue.city].append(venue)

        cities = [
            City(name=name, venues=sorted(members, key=lambda v: collation_key(v.name)))
            for name, members in by_city.items()
        ]
        cities.sort(key=lambda c: collation_key(c.name))
        return cities
