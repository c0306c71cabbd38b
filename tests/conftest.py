"""Shared test fixtures."""

import asyncio

import pytest

from cinehop.exceptions import UpstreamUnavailable
from cinehop.schemas import QueryScope, ShowtimeRecord, Venue
from cinehop.services.catalog_client import CatalogClient


class FakeCatalog(CatalogClient):
    """In-memory catalog that records the scopes it was queried with."""

    def __init__(
        self,
        venues: list[Venue] | None = None,
        showtimes: list[ShowtimeRecord] | None = None,
    ) -> None:
        self.venues = venues or []
        self.showtimes = showtimes or []
        self.venue_calls = 0
        self.scopes: list[QueryScope] = []
        self.fail_venues = False
        self.fail_showtimes = False
        self.venue_delay = 0.0

    async def list_venues(self) -> list[Venue]:
        self.venue_calls += 1
        if self.venue_delay:
            await asyncio.sleep(self.venue_delay)
        if self.fail_venues:
            raise UpstreamUnavailable("venues down")
        return list(self.venues)

    async def list_showtimes(self, scope: QueryScope) -> list[ShowtimeRecord]:
        self.scopes.append(scope)
        if self.fail_showtimes:
            raise UpstreamUnavailable("showtimes down")
        return list(self.showtimes)


@pytest.fixture
def venues() -> list[Venue]:
    return [
        Venue(id="v-kriterion", name="Kriterion", city="Amsterdam"),
        Venue(id="v-eye", name="Eye Filmmuseum", city="Amsterdam"),
        Venue(id="v-lab111", name="LAB111", city="Amsterdam"),
        Venue(id="v-lumiere", name="Lumière", city="Rotterdam"),
        Venue(id="v-kino", name="KINO", city="Rotterdam"),
        Venue(id="v-louis", name="Louis Hartlooper Complex", city="Utrecht"),
    ]


@pytest.fixture
def fake_catalog(venues: list[Venue]) -> FakeCatalog:
    return FakeCatalog(venues=venues)
