"""Key normalization shared by the static tables, the cache and the remote lookup."""

import re

# Punctuation other than commas and hyphens; letters in any script are kept
_DISALLOWED = re.compile(r"[^\w\s,-]|_")
_WHITESPACE = re.compile(r"\s+")


def normalize_key(value: str | None) -> str:
    """
    Normalize a free-text value for lookup.

    Lower-cases, trims, drops punctuation other than commas and hyphens, and
    collapses whitespace.

    Examples:
        "  Seattle,   WA " -> "seattle, wa"
        "L.L.C." -> "llc"
        "Montréal" -> "montréal"
    """
    if not value:
        return ""
    key = _DISALLOWED.sub("", value.lower())
    key = _WHITESPACE.sub(" ", key).strip()
    # "seattle ,wa" -> "seattle, wa"
    key = re.sub(r"\s*,\s*", ", ", key).strip(", ")
    return key


def city_key(city: str | None, state: str | None = None) -> str:
    """Build the normalized "city, st" key used for city lookups."""
    if not city:
        return ""
    if state:
        return normalize_key(f"{city}, {state}")
    return normalize_key(city)


def split_city_key(key: str) -> tuple[str, str | None]:
    """Split "seattle, wa" into ("seattle", "wa")."""
    if "," in key:
        city, state = key.split(",", 1)
        return city.strip(), state.strip() or None
    return key, None


def display_label(key: str) -> str:
    """Title-case a normalized key for label matching ("san jose" -> "San Jose")."""
    return " ".join(part.capitalize() for part in key.split())
