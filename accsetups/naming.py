"""
Name normalization shared by the catalog and the classifier.
"""

import re
import unicodedata

_SEPARATORS = re.compile(r"[_\-]")
_WHITESPACE = re.compile(r"\s+")
_JSON_SUFFIX = re.compile(r"\.json$", re.IGNORECASE)


def normalize_name(value: str) -> str:
    """
    Turn a raw path segment into a lookup key.

    Underscores and hyphens become spaces, whitespace runs collapse to a
    single space, and the result is trimmed and lower-cased.

    Args:
        value: Raw segment (e.g., "Audi_R8-LMS  Evo").

    Returns:
        Normalized key (e.g., "audi r8 lms evo").
    """
    if not value:
        return ""
    spaced = _SEPARATORS.sub(" ", value)
    return _WHITESPACE.sub(" ", spaced).strip().lower()


def _capitalize_first(part: str) -> str:
    first = part[:1]
    upper = first.upper()
    # "ß" -> "SS" and similar expansions would not normalize back to the key
    if len(upper) != len(first) or upper.lower() != first.lower():
        upper = first
    return upper + part[1:]


def to_title_case(value: str) -> str:
    """Upper-case the first letter of each space separated word."""
    return " ".join(_capitalize_first(part) for part in value.split(" ") if part)


def to_display_name(value: str) -> str:
    """Normalize a raw segment and title-case it for display."""
    normalized = normalize_name(value)
    return to_title_case(normalized) if normalized else ""


def to_file_display_name(filename: str) -> str:
    """Display label for a setup filename, without the .json extension."""
    return to_display_name(_JSON_SUFFIX.sub("", filename))


def collation_key(value: str) -> tuple:
    """
    Sort key approximating a locale-aware comparison.

    Accents and case are ignored on the first pass; the raw value breaks ties
    so the ordering stays total.
    """
    decomposed = unicodedata.normalize("NFKD", value)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (base.casefold(), value)
