"""Anchor-based availability and venue column ordering for the timeline."""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from cinehop.config import settings
from cinehop.schemas import AggregatedFilm, AnchorSelection, AvailabilityMode, ShowtimeRecord
from cinehop.utils.text import collation_key

logger = logging.getLogger(__name__)


class Availability(str, Enum):
    """Base classification of a showing relative to the anchor."""

    NO_ANCHOR = "no-anchor"
    IS_ANCHOR = "is-anchor"
    AVAILABLE = "available"
    BLOCKED = "blocked"


@dataclass(frozen=True)
class AvailabilityVerdict:
    """
    Availability of one showing.

    same_film_suppressed is a visibility directive layered on top of the
    base availability: the showing belongs to the anchor's film and the
    caller asked to hide those.
    """

    availability: Availability
    same_film_suppressed: bool = False

    def is_hidden(self, mode: AvailabilityMode) -> bool:
        if self.same_film_suppressed:
            return True
        return mode == AvailabilityMode.HIDE and self.availability == Availability.BLOCKED


@dataclass(frozen=True)
class TimelineRow:
    """One showing of one film, the unit the timeline lays out."""

    film: AggregatedFilm
    showtime: ShowtimeRecord


@dataclass(frozen=True)
class TimelineVenue:
    id: str
    name: str


def clamp_buffer(minutes: float | None, maximum: int | None = None) -> int:
    """
    Clamp a travel buffer into [0, maximum] minutes.

    Fractional minutes are rounded; non-numeric or missing input becomes 0.
    """
    maximum = settings.max_buffer_minutes if maximum is None else maximum
    try:
        value = round(float(minutes or 0))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(0, min(value, maximum))


def buffer_delta(minutes: float | None) -> timedelta:
    return timedelta(minutes=clamp_buffer(minutes))


def toggle_anchor(
    current: AnchorSelection | None,
    film_id: str,
    showtime_id: str,
) -> AnchorSelection | None:
    """Select a showing as anchor, or clear the anchor if it is already selected."""
    if current is not None and current.film_id == film_id and current.showtime_id == showtime_id:
        return None
    return AnchorSelection(film_id=film_id, showtime_id=showtime_id)


class TimelineAvailabilityEngine:
    """
    Classifies showings against an anchor for one result set.

    The engine indexes the films it is given and holds no other state; the
    anchor, buffer and suppression flag are passed on every call. Films and
    showtimes are never modified.
    """

    def __init__(self, films: Sequence[AggregatedFilm]) -> None:
        self.films = list(films)
        self._showtimes: dict[tuple[str, str], ShowtimeRecord] = {
            (film.id, showtime.id): showtime
            for film in self.films
            for showtime in film.showtimes
        }

    def anchor_end(self, anchor: AnchorSelection | None) -> datetime | None:
        """End instant of the anchor showing, or None if it is not in the result set."""
        if anchor is None:
            return None
        showtime = self._showtimes.get((anchor.film_id, anchor.showtime_id))
        if showtime is None:
            logger.debug(f"Anchor {anchor.film_id}/{anchor.showtime_id} not in current results")
            return None
        return showtime.end

    def classify(
        self,
        film: AggregatedFilm,
        showtime: ShowtimeRecord,
        anchor: AnchorSelection | None,
        buffer: timedelta,
        suppress_same_film: bool = False,
    ) -> AvailabilityVerdict:
        """
        Classify one showing.

        A showing is available when it starts at or after the anchor's end
        plus the buffer, and blocked otherwise. An anchor that is not part of
        the current results is treated as no anchor.

        Args:
            film: Film the showing belongs to
            showtime: Showing to classify
            anchor: Pinned showing, if any
            buffer: Travel time required after the anchor ends
            suppress_same_film: Hide other showings of the anchor's film

        Returns:
            AvailabilityVerdict for the showing
        """
        anchor_end = self.anchor_end(anchor)
        if anchor is None or anchor_end is None:
            return AvailabilityVerdict(Availability.NO_ANCHOR)

        if film.id == anchor.film_id and showtime.id == anchor.showtime_id:
            return AvailabilityVerdict(Availability.IS_ANCHOR)

        ceiling = timedelta(minutes=settings.max_buffer_minutes)
        threshold = anchor_end + min(max(buffer, timedelta(0)), ceiling)
        availability = Availability.AVAILABLE if showtime.start >= threshold else Availability.BLOCKED
        return AvailabilityVerdict(
            availability,
            same_film_suppressed=suppress_same_film and film.id == anchor.film_id,
        )

    def rows(self) -> list[TimelineRow]:
        return build_rows(self.films)

    def visible_rows(
        self,
        anchor: AnchorSelection | None,
        buffer: timedelta,
        suppress_same_film: bool = False,
        mode: AvailabilityMode = AvailabilityMode.HIGHLIGHT,
    ) -> list[tuple[TimelineRow, AvailabilityVerdict]]:
        """Rows in start order with their verdicts, hidden rows removed."""
        visible = []
        for row in self.rows():
            verdict = self.classify(row.film, row.showtime, anchor, buffer, suppress_same_film)
            if not verdict.is_hidden(mode):
                visible.append((row, verdict))
        return visible


def build_rows(films: Iterable[AggregatedFilm]) -> list[TimelineRow]:
    """One row per showing across all films, ordered by start."""
    rows = [TimelineRow(film=film, showtime=showtime) for film in films for showtime in film.showtimes]
    rows.sort(key=lambda row: row.showtime.start)
    return rows


def timeline_venues(films: Iterable[AggregatedFilm]) -> list[TimelineVenue]:
    """Distinct venues appearing in the results, sorted by name."""
    names: dict[str, str] = {}
    for film in films:
        for showtime in film.showtimes:
            if showtime.venue is not None:
                names[showtime.venue.id] = showtime.venue.name
    venues = [TimelineVenue(id=venue_id, name=name) for venue_id, name in names.items()]
    venues.sort(key=lambda v: collation_key(v.name))
    return venues


def merge_venue_order(persisted: Sequence[str], venues: Sequence[TimelineVenue]) -> list[str]:
    """
    Reconcile a stored venue column order with the venues currently shown.

    Stored ids that are still present keep their relative order; venues not
    in the stored order are appended in their display order. Stored ids for
    venues no longer present are dropped.
    """
    current_ids = [venue.id for venue in venues]
    if not persisted:
        return current_ids

    present = set(current_ids)
    kept = [venue_id for venue_id in dict.fromkeys(persisted) if venue_id in present]
    known = set(kept)
    return kept + [venue_id for venue_id in current_ids if venue_id not in known]


def move_venue(order: Sequence[str], dragged: str, target: str) -> list[str]:
    """
    Move a venue column onto another column's position.

    The dragged id is removed and reinserted at the index the target held
    before removal. Unknown ids leave the order unchanged.
    """
    result = list(order)
    if dragged == target or dragged not in result or target not in result:
        return result

    to_index = result.index(target)
    result.remove(dragged)
    result.insert(to_index, dragged)
    return result
