"""Load and save user preferences through a string key-value store."""

import json
import logging
from datetime import date
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from cinehop.config import settings
from cinehop.exceptions import MalformedPreferenceData
from cinehop.schemas import FilterCriteria, SavedShowtime, TimelinePreferences
from cinehop.services.timeline import clamp_buffer

logger = logging.getLogger(__name__)

FILTERS_KEY = "cinehop_filters"
SAVED_SHOWTIMES_KEY = "cinehop_saved_showtimes"
TIMELINE_PREFS_KEY = "cinehop_timeline_prefs"
TIMELINE_VENUE_ORDER_KEY = "cinehop_timeline_venue_order"
FILTERS_PANEL_KEY = "cinehop_filters_open"

ModelT = TypeVar("ModelT", bound=BaseModel)


class PreferenceStore(Protocol):
    """String-keyed storage provided by the host (browser storage, a file, ...)."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class InMemoryPreferenceStore:
    """Dict-backed store for tests and headless use."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


def default_filters(today: date | None = None) -> FilterCriteria:
    """Filter state for a first visit: the default city, today only."""
    today = today or date.today()
    return FilterCriteria(selected_city=settings.default_city, start_date=today, end_date=today)


def merge_fieldwise(model_cls: type[ModelT], raw: dict[str, Any], defaults: ModelT) -> ModelT:
    """
    Overlay stored values onto defaults one field at a time.

    A field whose stored value is missing, null or invalid keeps its default;
    the other fields are still taken from storage.
    """
    data = defaults.model_dump()
    for name, info in model_cls.model_fields.items():
        key = info.alias or name
        value = raw.get(key, raw.get(name))
        if value is None:
            continue
        try:
            data = model_cls.model_validate({**data, name: value}).model_dump()
        except ValidationError as e:
            logger.warning(f"Ignoring stored {model_cls.__name__}.{name}: {e.errors()[0]['msg']}")
    return model_cls.model_validate(data)


class PreferenceRepository:
    """
    Typed access to persisted preferences.

    Reads never fail: malformed or partial data falls back to defaults.
    """

    def __init__(self, store: PreferenceStore) -> None:
        self.store = store

    def _read_json(self, key: str, expected: type) -> Any | None:
        """
        Parse a stored JSON value.

        Returns:
            The parsed value, or None if nothing is stored

        Raises:
            MalformedPreferenceData: if the value is not JSON of the expected type
        """
        raw = self.store.get(key)
        if raw is None:
            return None
        try:
            parsed = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise MalformedPreferenceData(f"{key} is not valid JSON: {e}") from e
        if not isinstance(parsed, expected):
            raise MalformedPreferenceData(f"{key} should hold a JSON {expected.__name__}")
        return parsed

    def load_filters(self, today: date | None = None) -> FilterCriteria:
        defaults = default_filters(today)
        try:
            raw = self._read_json(FILTERS_KEY, dict)
        except MalformedPreferenceData as e:
            logger.warning(f"Failed to parse stored filters: {e}")
            return defaults
        if raw is None:
            return defaults
        return merge_fieldwise(FilterCriteria, raw, defaults)

    def save_filters(self, criteria: FilterCriteria) -> None:
        self.store.set(FILTERS_KEY, criteria.model_dump_json(by_alias=True))

    def load_saved_showtimes(self) -> list[SavedShowtime]:
        try:
            raw = self._read_json(SAVED_SHOWTIMES_KEY, list)
        except MalformedPreferenceData as e:
            logger.warning(f"Failed to parse saved showtimes: {e}")
            return []
        if raw is None:
            return []

        saved: list[SavedShowtime] = []
        for item in raw:
            if not isinstance(item, dict):
                continue
            if not (item.get("showtimeId") and item.get("filmId") and item.get("start")):
                continue
            try:
                saved.append(SavedShowtime.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Dropping saved showtime {item.get('showtimeId')}: {e.errors()[0]['msg']}")
        return saved

    def save_saved_showtimes(self, saved: list[SavedShowtime]) -> None:
        payload = [item.model_dump(mode="json", by_alias=True) for item in saved]
        self.store.set(SAVED_SHOWTIMES_KEY, json.dumps(payload))

    def load_timeline_preferences(self) -> TimelinePreferences:
        defaults = TimelinePreferences()
        try:
            raw = self._read_json(TIMELINE_PREFS_KEY, dict)
        except MalformedPreferenceData as e:
            logger.warning(f"Failed to parse timeline preferences: {e}")
            raw = None

        prefs = merge_fieldwise(TimelinePreferences, raw, defaults) if raw else defaults
        prefs.buffer_minutes = clamp_buffer(prefs.buffer_minutes)

        try:
            venue_order = self._read_json(TIMELINE_VENUE_ORDER_KEY, list)
        except MalformedPreferenceData as e:
            logger.warning(f"Failed to parse venue order: {e}")
            venue_order = None
        if venue_order is not None:
            prefs.venue_order = [v for v in venue_order if isinstance(v, str) and v]
        else:
            prefs.venue_order = [v for v in prefs.venue_order if v]

        return prefs

    def save_timeline_preferences(self, prefs: TimelinePreferences) -> None:
        self.store.set(TIMELINE_PREFS_KEY, prefs.model_dump_json(by_alias=True))
        if prefs.venue_order:
            self.store.set(TIMELINE_VENUE_ORDER_KEY, json.dumps(prefs.venue_order))

    def load_filters_open(self) -> bool:
        stored = self.store.get(FILTERS_PANEL_KEY)
        if stored is None:
            return True
        return stored == "true"

    def save_filters_open(self, is_open: bool) -> None:
        self.store.set(FILTERS_PANEL_KEY, "true" if is_open else "false")
