"""Catalog client for venue and showtime listings."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

import httpx

from cinehop.config import settings
from cinehop.exceptions import MalformedRecord, UpstreamUnavailable
from cinehop.schemas import Film, QueryScope, ShowtimeRecord, Venue

logger = logging.getLogger(__name__)

NO_DESCRIPTION = "No description available."

THEATERS_QUERY = """
query theaters($page: CursorPagination) {
  theaters(page: $page) {
    data {
      id
      name
      address { city }
    }
  }
}
"""

SHOWTIMES_QUERY = """
query showtimes(
  $filters: ShowtimesFilters
  $collections: [CollectionFilter!]
  $page: CursorPagination
  $locale: String
  $fallbackLocale: String
  $country: String
) {
  showtimes(
    filters: $filters
    collections: $collections
    page: $page
    locale: $locale
    fallbackLocale: $fallbackLocale
    country: $country
  ) {
    totalCount
    data {
      id
      startDate
      endDate
      subtitles
      languageVersion
      ticketingUrl
      specials
      film {
        id
        title
        poster { url }
        cover { url }
        cast
        duration
        directors
        releaseYear
        spokenLanguages
        premiereDate
        shortDescription
        description
      }
      theater {
        id
        name
        address { city }
      }
    }
  }
}
"""


class CatalogClient(ABC):
    """
    Read-only access to the upstream catalog.

    Implementations raise UpstreamUnavailable when the catalog cannot be
    queried. Individual malformed entries are dropped, never raised.
    """

    @abstractmethod
    async def list_venues(self) -> list[Venue]:
        """Fetch every venue known to the catalog."""

    @abstractmethod
    async def list_showtimes(self, scope: QueryScope) -> list[ShowtimeRecord]:
        """
        Fetch showtimes within a query scope.

        Args:
            scope: Date range, venue ids and optional subtitle labels

        Returns:
            Showtime records; film or venue may be None for unvalidated entries
        """


def _image_url(image: Any) -> str:
    if isinstance(image, dict) and isinstance(image.get("url"), str):
        return image["url"]
    return ""


def _names(values: Any) -> list[str]:
    """Non-blank strings from a payload list, stripped."""
    if not isinstance(values, list):
        return []
    return [value.strip() for value in values if isinstance(value, str) and value.strip()]


def _listed(data: dict[str, Any], key: str) -> list[Any]:
    """The ``data`` list of a paginated GraphQL connection, or empty."""
    connection = data.get(key)
    if not isinstance(connection, dict) or not isinstance(connection.get("data"), list):
        return []
    return connection["data"]


def parse_venue(data: Any) -> Venue:
    """
    Convert a theater payload into a Venue.

    Raises:
        MalformedRecord: if the payload has no id or name, or fields have the wrong type
    """
    if not isinstance(data, dict):
        raise MalformedRecord(f"Theater payload is not an object: {data!r}")
    if not data.get("id") or not data.get("name"):
        raise MalformedRecord(f"Theater payload missing id or name: {data!r}")
    address = data.get("address")
    city = address.get("city") if isinstance(address, dict) else None
    try:
        return Venue(id=data["id"], name=data["name"], city=city or "")
    except ValueError as e:
        raise MalformedRecord(f"Theater {data['id']!r} rejected: {e}") from e


def parse_film(data: Any) -> Film:
    """
    Convert a film payload into a Film.

    The poster falls back to the cover image and the release date to the
    first of January of the release year. Blank spoken languages are dropped.

    Raises:
        MalformedRecord: if the payload has no id or title, or fields have the wrong type
    """
    if not isinstance(data, dict):
        raise MalformedRecord(f"Film payload is not an object: {data!r}")
    if not data.get("id") or not data.get("title"):
        raise MalformedRecord(f"Film payload missing id or title: {data!r}")

    poster = _image_url(data.get("poster")) or _image_url(data.get("cover"))
    release_year = data.get("releaseYear")
    release_date = data.get("premiereDate") or (f"{release_year}-01-01" if release_year else None)
    short_description = data.get("shortDescription")
    description = data.get("description")

    try:
        return Film(
            id=data["id"],
            title=data["title"],
            poster_url=poster,
            release_date=release_date,
            release_year=release_year,
            duration=data.get("duration"),
            cast=_names(data.get("cast")),
            directors=_names(data.get("directors")),
            spoken_languages=_names(data.get("spokenLanguages")),
            short_description=short_description,
            description=description,
            overview=short_description or description or NO_DESCRIPTION,
        )
    except ValueError as e:
        raise MalformedRecord(f"Film {data['id']!r} rejected: {e}") from e


def parse_showtime(data: Any) -> ShowtimeRecord:
    """
    Convert a showtime payload into a ShowtimeRecord.

    A film or theater that cannot be parsed is recorded as None rather than
    failing the showtime, so the aggregator decides what to skip.

    Raises:
        MalformedRecord: if the id or start/end instants are missing or invalid
    """
    if not isinstance(data, dict):
        raise MalformedRecord(f"Showtime payload is not an object: {data!r}")
    if not data.get("id"):
        raise MalformedRecord(f"Showtime payload missing id: {data!r}")
    try:
        start = datetime.fromisoformat(data["startDate"])
        end = datetime.fromisoformat(data["endDate"])
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedRecord(f"Showtime {data['id']} has invalid dates: {e}") from e

    film = None
    if data.get("film"):
        try:
            film = parse_film(data["film"])
        except MalformedRecord as e:
            logger.debug(f"Showtime {data['id']}: {e}")

    venue = None
    if data.get("theater"):
        try:
            venue = parse_venue(data["theater"])
        except MalformedRecord as e:
            logger.debug(f"Showtime {data['id']}: {e}")

    try:
        return ShowtimeRecord(
            id=data["id"],
            film=film,
            venue=venue,
            start=start,
            end=end,
            subtitles=data.get("subtitles") or "",
            language_version=data.get("languageVersion"),
            specials=data.get("specials"),
            ticketing_url=data.get("ticketingUrl"),
        )
    except ValueError as e:
        raise MalformedRecord(f"Showtime {data['id']} rejected: {e}") from e


class CinevilleClient(CatalogClient):
    """GraphQL client for the Cineville catalog API."""

    def __init__(
        self,
        api_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Initialize the catalog client.

        Args:
            api_url: GraphQL endpoint (uses settings if not provided)
            timeout: Request timeout in seconds (uses settings if not provided)
        """
        self.api_url = api_url or settings.catalog_api_url
        self.timeout = timeout or settings.catalog_timeout

    async def list_venues(self) -> list[Venue]:
        data = await self._execute(
            THEATERS_QUERY,
            {"page": {"limit": settings.catalog_page_limit}},
        )
        items = _listed(data, "theaters")

        venues: list[Venue] = []
        for item in items:
            try:
                venues.append(parse_venue(item))
            except MalformedRecord as e:
                logger.debug(f"Skipping venue: {e}")

        logger.info(f"Fetched {len(venues)} venues from catalog")
        return venues

    async def list_showtimes(self, scope: QueryScope) -> list[ShowtimeRecord]:
        data = await self._execute(SHOWTIMES_QUERY, self._showtime_variables(scope))
        items = _listed(data, "showtimes")

        records: list[ShowtimeRecord] = []
        for item in items:
            try:
                records.append(parse_showtime(item))
            except MalformedRecord as e:
                logger.debug(f"Skipping showtime: {e}")

        logger.info(
            f"Fetched {len(records)} showtimes for {len(scope.venue_ids)} venues "
            f"({scope.date_range.start.isoformat()} to {scope.date_range.end.isoformat()})"
        )
        return records

    def _showtime_variables(self, scope: QueryScope) -> dict[str, Any]:
        """Build GraphQL variables for a showtime query."""
        filters: dict[str, Any] = {
            "startDate": scope.date_range.as_filter(),
            "venue": {"collections": []},
        }
        if scope.venue_ids:
            filters["venueId"] = {"in": scope.venue_ids}
        if scope.subtitle_labels:
            filters["subtitles"] = {"contains": scope.subtitle_labels}

        return {
            "collections": [],
            "country": settings.catalog_country,
            "fallbackLocale": settings.catalog_fallback_locale,
            "locale": settings.catalog_locale,
            "filters": filters,
            "page": {"limit": settings.catalog_page_limit},
        }

    async def _execute(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """
        POST a GraphQL query and return its data block.

        Raises:
            UpstreamUnavailable: on transport errors, HTTP errors, invalid JSON
                or a GraphQL errors payload
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.api_url,
                    json={"query": query, "variables": variables},
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                payload = response.json()

        except httpx.HTTPStatusError as e:
            logger.error(f"Catalog HTTP error: {e.response.status_code}")
            raise UpstreamUnavailable(f"Catalog returned HTTP {e.response.status_code}") from e

        except httpx.TimeoutException as e:
            logger.error("Catalog request timed out")
            raise UpstreamUnavailable("Catalog request timed out") from e

        except httpx.HTTPError as e:
            logger.error(f"Catalog request failed: {e}")
            raise UpstreamUnavailable(f"Catalog request failed: {e}") from e

        except ValueError as e:
            logger.error(f"Catalog returned invalid JSON: {e}")
            raise UpstreamUnavailable("Catalog returned invalid JSON") from e

        if not isinstance(payload, dict):
            raise UpstreamUnavailable("Catalog returned an unexpected payload")

        if payload.get("errors"):
            messages = "; ".join(
                str(err.get("message", err)) if isinstance(err, dict) else str(err)
                for err in payload["errors"]
            )
            logger.error(f"Catalog query errors: {messages}")
            raise UpstreamUnavailable(f"Catalog query failed: {messages}")

        data = payload.get("data")
        return data if isinstance(data, dict) else {}
