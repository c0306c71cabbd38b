"""Operations on the user's list of saved showings."""

from cinehop.schemas import AggregatedFilm, SavedShowtime


def add_saved_showtime(
    saved: list[SavedShowtime],
    film: AggregatedFilm,
    showtime_id: str,
) -> list[SavedShowtime]:
    """
    Add a showing of a film to the saved list.

    Returns a new list sorted by start. Showings already saved, or ids the
    film does not have, leave the list as it was.
    """
    showtime = film.find_showtime(showtime_id)
    if showtime is None or any(item.showtime_id == showtime_id for item in saved):
        return list(saved)

    entry = SavedShowtime(
        film_id=film.id,
        film_title=film.title,
        poster_url=film.poster_url,
        showtime_id=showtime.id,
        start=showtime.start,
        end=showtime.end,
        venue_id=showtime.venue.id if showtime.venue else None,
        venue_name=showtime.venue.name if showtime.venue else None,
        venue_city=showtime.venue.city if showtime.venue else "",
        ticketing_url=showtime.ticketing_url,
    )
    return sorted([*saved, entry], key=lambda item: item.start)


def remove_saved_showtime(saved: list[SavedShowtime], showtime_id: str) -> list[SavedShowtime]:
    return [item for item in saved if item.showtime_id != showtime_id]
