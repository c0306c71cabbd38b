"""Tests for anchor availability and venue column ordering."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from cinehop.schemas import AggregatedFilm, AnchorSelection, AvailabilityMode, Film, ShowtimeRecord, Venue
from cinehop.services.timeline import (
    Availability,
    AvailabilityVerdict,
    TimelineAvailabilityEngine,
    TimelineVenue,
    build_rows,
    clamp_buffer,
    merge_venue_order,
    move_venue,
    timeline_venues,
    toggle_anchor,
)

AMS = ZoneInfo("Europe/Amsterdam")
BUFFER = timedelta(minutes=15)
KRITERION = Venue(id="v-kriterion", name="Kriterion", city="Amsterdam")
EYE = Venue(id="v-eye", name="Eye Filmmuseum", city="Amsterdam")


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 5, 1, hour, minute, tzinfo=AMS)


def make_showtime(id: str, start: datetime, end: datetime, venue: Venue = KRITERION) -> ShowtimeRecord:
    return ShowtimeRecord(id=id, film=None, venue=venue, start=start, end=end)


def make_film(id: str, *showtimes: ShowtimeRecord) -> AggregatedFilm:
    return AggregatedFilm(
        film=Film(id=id, title=id.upper(), poster_url=f"/{id}.jpg"),
        showtimes=list(showtimes),
    )


@pytest.fixture
def anchor_film() -> AggregatedFilm:
    return make_film(
        "f1",
        make_showtime("f1-a", at(18, 0), at(20, 0)),
        make_showtime("f1-b", at(21, 0), at(23, 0), venue=EYE),
    )


@pytest.fixture
def other_film() -> AggregatedFilm:
    return make_film(
        "f2",
        make_showtime("f2-early", at(20, 10), at(22, 0), venue=EYE),
        make_showtime("f2-late", at(20, 20), at(22, 10), venue=EYE),
        make_showtime("f2-exact", at(20, 15), at(22, 5)),
    )


@pytest.fixture
def engine(anchor_film, other_film) -> TimelineAvailabilityEngine:
    return TimelineAvailabilityEngine([anchor_film, other_film])


ANCHOR = AnchorSelection(film_id="f1", showtime_id="f1-a")


# ---------------------------------------------------------------------------
# classify
# ---------------------------------------------------------------------------


class TestClassify:
    def test_no_anchor(self, engine, other_film) -> None:
        verdict = engine.classify(other_film, other_film.showtimes[0], None, BUFFER)
        assert verdict == AvailabilityVerdict(Availability.NO_ANCHOR)

    def test_anchor_itself(self, engine, anchor_film) -> None:
        verdict = engine.classify(anchor_film, anchor_film.showtimes[0], ANCHOR, BUFFER, True)
        assert verdict.availability == Availability.IS_ANCHOR
        assert not verdict.same_film_suppressed

    def test_within_buffer_is_blocked(self, engine, other_film) -> None:
        verdict = engine.classify(other_film, other_film.find_showtime("f2-early"), ANCHOR, BUFFER)
        assert verdict.availability == Availability.BLOCKED

    def test_after_buffer_is_available(self, engine, other_film) -> None:
        verdict = engine.classify(other_film, other_film.find_showtime("f2-late"), ANCHOR, BUFFER)
        assert verdict.availability == Availability.AVAILABLE

    def test_exactly_at_threshold_is_available(self, engine, other_film) -> None:
        verdict = engine.classify(other_film, other_film.find_showtime("f2-exact"), ANCHOR, BUFFER)
        assert verdict.availability == Availability.AVAILABLE

    def test_one_millisecond_before_threshold_is_blocked(self, anchor_film) -> None:
        threshold = at(20, 0) + BUFFER
        candidate = make_film("f3", make_showtime("f3-a", threshold - timedelta(milliseconds=1), at(23, 0)))
        engine = TimelineAvailabilityEngine([anchor_film, candidate])
        verdict = engine.classify(candidate, candidate.showtimes[0], ANCHOR, BUFFER)
        assert verdict.availability == Availability.BLOCKED

    def test_showing_before_anchor_is_blocked(self, anchor_film) -> None:
        earlier = make_film("f3", make_showtime("f3-a", at(14, 0), at(16, 0)))
        engine = TimelineAvailabilityEngine([anchor_film, earlier])
        assert engine.classify(earlier, earlier.showtimes[0], ANCHOR, BUFFER).availability == Availability.BLOCKED

    def test_same_film_suppression_layers_on_verdict(self, engine, anchor_film) -> None:
        verdict = engine.classify(anchor_film, anchor_film.find_showtime("f1-b"), ANCHOR, BUFFER, True)
        assert verdict.availability == Availability.AVAILABLE
        assert verdict.same_film_suppressed

    def test_same_film_not_suppressed_unless_requested(self, engine, anchor_film) -> None:
        verdict = engine.classify(anchor_film, anchor_film.find_showtime("f1-b"), ANCHOR, BUFFER, False)
        assert not verdict.same_film_suppressed

    def test_other_film_never_suppressed(self, engine, other_film) -> None:
        verdict = engine.classify(other_film, other_film.showtimes[0], ANCHOR, BUFFER, True)
        assert not verdict.same_film_suppressed

    def test_unknown_anchor_is_treated_as_no_anchor(self, engine, other_film) -> None:
        stale = AnchorSelection(film_id="gone", showtime_id="gone-1")
        verdict = engine.classify(other_film, other_film.showtimes[0], stale, BUFFER, True)
        assert verdict == AvailabilityVerdict(Availability.NO_ANCHOR)

    def test_does_not_mutate_films(self, engine, anchor_film, other_film) -> None:
        before = (anchor_film.model_dump(), other_film.model_dump())
        for film in (anchor_film, other_film):
            for showtime in film.showtimes:
                engine.classify(film, showtime, ANCHOR, BUFFER, True)
        assert (anchor_film.model_dump(), other_film.model_dump()) == before


class TestVisibility:
    def test_highlight_mode_hides_nothing_but_suppressed(self, engine) -> None:
        visible = engine.visible_rows(ANCHOR, BUFFER, suppress_same_film=True)
        ids = [row.showtime.id for row, _ in visible]
        assert "f1-b" not in ids
        assert "f2-early" in ids

    def test_hide_mode_removes_blocked(self, engine) -> None:
        visible = engine.visible_rows(ANCHOR, BUFFER, mode=AvailabilityMode.HIDE)
        ids = [row.showtime.id for row, _ in visible]
        assert ids == ["f1-a", "f2-exact", "f2-late", "f1-b"]

    def test_no_anchor_shows_everything(self, engine) -> None:
        visible = engine.visible_rows(None, BUFFER, suppress_same_film=True, mode=AvailabilityMode.HIDE)
        assert len(visible) == 5

    def test_verdict_is_hidden(self) -> None:
        blocked = AvailabilityVerdict(Availability.BLOCKED)
        assert blocked.is_hidden(AvailabilityMode.HIDE)
        assert not blocked.is_hidden(AvailabilityMode.HIGHLIGHT)
        assert AvailabilityVerdict(Availability.AVAILABLE, True).is_hidden(AvailabilityMode.HIGHLIGHT)

    def test_buffer_above_maximum_is_capped(self, anchor_film) -> None:
        candidate = make_film("f3", make_showtime("f3-a", at(23, 0), at(23, 59)))
        engine = TimelineAvailabilityEngine([anchor_film, candidate])
        verdict = engine.classify(candidate, candidate.showtimes[0], ANCHOR, timedelta(hours=5))
        assert verdict.availability == Availability.AVAILABLE

    def test_negative_buffer_counts_as_zero(self, anchor_film) -> None:
        candidate = make_film("f3", make_showtime("f3-a", at(20, 0), at(22, 0)))
        engine = TimelineAvailabilityEngine([anchor_film, candidate])
        verdict = engine.classify(candidate, candidate.showtimes[0], ANCHOR, timedelta(minutes=-30))
        assert verdict.availability == Availability.AVAILABLE


# ---------------------------------------------------------------------------
# Anchor toggling and buffer
# ---------------------------------------------------------------------------


class TestToggleAnchor:
    def test_select_sets_anchor(self) -> None:
        assert toggle_anchor(None, "f1", "f1-a") == ANCHOR

    def test_reselect_clears_anchor(self, engine, other_film) -> None:
        anchor = toggle_anchor(None, "f1", "f1-a")
        anchor = toggle_anchor(anchor, "f1", "f1-a")
        assert anchor is None
        for showtime in other_film.showtimes:
            assert engine.classify(other_film, showtime, anchor, BUFFER).availability == Availability.NO_ANCHOR

    def test_select_other_replaces_anchor(self) -> None:
        assert toggle_anchor(ANCHOR, "f2", "f2-late") == AnchorSelection(film_id="f2", showtime_id="f2-late")


class TestClampBuffer:
    @pytest.mark.parametrize(
        ("minutes", "expected"),
        [(15, 15), (-5, 0), (500, 180), (20.6, 21), (None, 0), ("abc", 0), (float("inf"), 0)],
    )
    def test_clamps(self, minutes, expected) -> None:
        assert clamp_buffer(minutes) == expected


# ---------------------------------------------------------------------------
# Layout helpers
# ---------------------------------------------------------------------------


class TestRowsAndVenues:
    def test_rows_ordered_by_start(self, anchor_film, other_film) -> None:
        rows = build_rows([other_film, anchor_film])
        assert [r.showtime.id for r in rows] == ["f1-a", "f2-early", "f2-exact", "f2-late", "f1-b"]

    def test_venues_distinct_and_sorted(self, anchor_film, other_film) -> None:
        assert timeline_venues([anchor_film, other_film]) == [
            TimelineVenue(id="v-eye", name="Eye Filmmuseum"),
            TimelineVenue(id="v-kriterion", name="Kriterion"),
        ]


class TestMergeVenueOrder:
    def test_known_order_kept_and_new_appended(self) -> None:
        venues = [TimelineVenue("A", "Alpha"), TimelineVenue("B", "Beta"), TimelineVenue("C", "Gamma")]
        assert merge_venue_order(["B", "A"], venues) == ["B", "A", "C"]

    def test_new_venues_keep_display_order(self) -> None:
        venues = [TimelineVenue("A", "Alpha"), TimelineVenue("B", "Beta"), TimelineVenue("C", "Gamma")]
        assert merge_venue_order(["B"], venues) == ["B", "A", "C"]

    def test_empty_order_uses_display_order(self) -> None:
        venues = [TimelineVenue("A", "Alpha"), TimelineVenue("B", "Beta")]
        assert merge_venue_order([], venues) == ["A", "B"]

    def test_absent_venues_dropped(self) -> None:
        venues = [TimelineVenue("A", "Alpha")]
        assert merge_venue_order(["Z", "A"], venues) == ["A"]

    def test_duplicates_collapsed(self) -> None:
        venues = [TimelineVenue("A", "Alpha"), TimelineVenue("B", "Beta")]
        assert merge_venue_order(["B", "B", "A"], venues) == ["B", "A"]


class TestMoveVenue:
    def test_move_backwards(self) -> None:
        assert move_venue(["A", "B", "C"], "C", "A") == ["C", "A", "B"]

    def test_move_forwards(self) -> None:
        assert move_venue(["A", "B", "C"], "A", "C") == ["B", "C", "A"]

    def test_drop_on_self_is_noop(self) -> None:
        assert move_venue(["A", "B"], "A", "A") == ["A", "B"]

    def test_unknown_ids_are_noop(self) -> None:
        assert move_venue(["A", "B"], "X", "A") == ["A", "B"]

    def test_input_not_mutated(self) -> None:
        order = ["A", "B", "C"]
        move_venue(order, "C", "A")
        assert order == ["A", "B", "C"]
