"""Group showtime records into films with derived facets."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from cinehop.schemas import AggregatedFilm, Film, FilterCriteria, ShowtimeRecord
from cinehop.services.query_scope import (
    FilmPredicate,
    Predicate,
    ShowtimePredicate,
    build_predicates,
)
from cinehop.utils.text import collation_key, contains_casefold, distinct_labels

logger = logging.getLogger(__name__)


@dataclass
class _FilmGroup:
    film: Film
    showtimes: list[ShowtimeRecord] = field(default_factory=list)


class ShowtimeAggregator:
    """
    Turns a flat list of showtime records into per-film results.

    Records missing a film or venue are skipped. Showtime-level predicates
    run before grouping, so a film whose showtimes are all filtered out is
    dropped. Films without a poster never reach the caller.
    """

    def aggregate(
        self,
        raw_showtimes: Iterable[ShowtimeRecord],
        criteria: FilterCriteria,
    ) -> list[AggregatedFilm]:
        """
        Aggregate showtimes for the given filter.

        Args:
            raw_showtimes: Records as returned by the catalog
            criteria: Filter state used to build post-fetch predicates

        Returns:
            Films with at least one in-scope showtime and a poster, in no
            particular order
        """
        return self.aggregate_with(raw_showtimes, build_predicates(criteria))

    def aggregate_with(
        self,
        raw_showtimes: Iterable[ShowtimeRecord],
        predicates: list[Predicate],
    ) -> list[AggregatedFilm]:
        showtime_predicates = [p for p in predicates if isinstance(p, ShowtimePredicate)]
        film_predicates = [p for p in predicates if isinstance(p, FilmPredicate)]

        groups: dict[str, _FilmGroup] = {}
        skipped = 0

        for showtime in raw_showtimes:
            if showtime.film is None or showtime.venue is None:
                skipped += 1
                continue
            if not all(p.matches(showtime) for p in showtime_predicates):
                continue

            group = groups.get(showtime.film.id)
            if group is None:
                group = groups[showtime.film.id] = _FilmGroup(film=showtime.film)
            group.showtimes.append(showtime)

        if skipped:
            logger.debug(f"Skipped {skipped} showtimes without film or venue")

        films: list[AggregatedFilm] = []
        for group in groups.values():
            if not group.film.poster_url.strip():
                logger.debug(f"Excluding '{group.film.title}' ({group.film.id}): no poster")
                continue

            film = self._build_film(group)
            if all(p.matches(film) for p in film_predicates):
                films.append(film)

        return films

    def _build_film(self, group: _FilmGroup) -> AggregatedFilm:
        showtimes = sorted(group.showtimes, key=lambda s: (s.start, s.id))
        return AggregatedFilm(
            film=group.film,
            showtimes=showtimes,
            available_subtitles=distinct_labels(s.subtitles for s in showtimes),
            available_language_versions=distinct_labels(s.language_version for s in showtimes),
            available_specials=distinct_labels(s.specials for s in showtimes),
        )


def collect_specials(raw_showtimes: Iterable[ShowtimeRecord]) -> list[str]:
    """Distinct non-empty specials labels across showtimes, sorted."""
    return sorted(distinct_labels(s.specials for s in raw_showtimes))


def collect_spoken_languages(films: Iterable[AggregatedFilm], selected: Iterable[str] = ()) -> list[str]:
    """
    Spoken languages offered by the language filter.

    Currently selected languages stay in the list even when no film in the
    result speaks them, so a selection can always be undone.
    """
    languages = set(distinct_labels(lang for film in films for lang in film.film.spoken_languages))
    languages |= distinct_labels(selected)
    return sorted(languages, key=collation_key)


def search_films(films: Iterable[AggregatedFilm], query: str) -> list[AggregatedFilm]:
    """Films whose title, a director or a cast member contains the query."""
    query = query.strip()
    if not query:
        return list(films)

    def _matches(film: Film) -> bool:
        return (
            contains_casefold(film.title, query)
            or any(contains_casefold(name, query) for name in film.directors)
            or any(contains_casefold(name, query) for name in film.cast)
        )

    return [film for film in films if _matches(film.film)]
