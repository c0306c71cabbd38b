"""Error types raised by the planning core."""


class CinehopError(Exception):
    """Base class for all cinehop errors."""


class UpstreamUnavailable(CinehopError):
    """The catalog service could not be reached or rejected the query."""


class MalformedRecord(CinehopError):
    """A single showtime or venue payload lacks required fields."""


class MalformedPreferenceData(CinehopError):
    """Stored preference JSON does not match the expected shape."""
