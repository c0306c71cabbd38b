"""Text helpers for label matching and display ordering."""

import unicodedata
from collections.abc import Iterable


def collation_key(text: str) -> tuple[str, str]:
    """
    Build a sort key approximating a locale-aware string comparison.

    Accents and case are ignored on the primary comparison so that
    "Échappée" sorts next to "Eclipse" rather than after "Zed". The raw
    string breaks ties so ordering stays deterministic.

    Args:
        text: String to sort

    Returns:
        Tuple usable as a ``sorted`` key

    Example:
        >>> sorted(["zed", "Échappée", "apple"], key=collation_key)
        ['apple', 'Échappée', 'zed']
    """
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold(), text


def contains_casefold(haystack: str | None, needle: str) -> bool:
    """
    Case-insensitive substring test.

    Args:
        haystack: Text to search in (None never matches)
        needle: Text to search for

    Returns:
        True if needle occurs in haystack ignoring case
    """
    if haystack is None:
        return False
    return needle.casefold() in haystack.casefold()


def contains_any(haystack: str | None, needles: Iterable[str]) -> bool:
    """True if any of needles is a case-insensitive substring of haystack."""
    return any(contains_casefold(haystack, needle) for needle in needles)


def distinct_labels(values: Iterable[str | None]) -> frozenset[str]:
    """
    Trim labels, drop empty ones and deduplicate.

    Args:
        values: Raw labels, possibly None or whitespace-only

    Returns:
        Set of distinct non-empty trimmed labels
    """
    return frozenset(label for label in (v.strip() for v in values if v) if label)
