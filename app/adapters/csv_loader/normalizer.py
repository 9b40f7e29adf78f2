"""CSV value normalization — handles BOM, trailing spaces, spreadsheet quirks."""

from __future__ import annotations

import re

_TRUE_VALUES = {"1", "true", "yes", "y", "si", "sí", "available"}
_FALSE_VALUES = {"0", "false", "no", "n", "unavailable"}


def normalize_column_name(name: str) -> str:
    """Normalize a CSV column name.

    - Removes BOM characters (\\ufeff)
    - Replaces runs of spaces / non-breaking spaces with one underscore
    - Lowercases and drops anything that is not a word character
    """
    name = name.replace("\ufeff", "").strip()
    name = re.sub(r"[\s\u00a0]+", "_", name)
    name = name.lower()
    return re.sub(r"[^\w]", "", name, flags=re.UNICODE)


def clean_string(value: str | None) -> str | None:
    """Strip whitespace and return None for empty strings."""
    if value is None:
        return None
    value = value.strip()
    return value if value else None


def parse_float(value: str | None) -> float | None:
    """Parse '4.5' and '4,5' alike; None when blank or malformed."""
    if not value:
        return None
    try:
        return float(value.replace(",", ".").strip())
    except (ValueError, AttributeError):
        return None


def parse_bool(value: str | None, default: bool = True) -> bool:
    if value is None:
        return default
    key = value.strip().lower()
    if key in _TRUE_VALUES:
        return True
    if key in _FALSE_VALUES:
        return False
    return default
