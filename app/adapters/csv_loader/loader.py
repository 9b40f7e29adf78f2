"""CSV loader — reads professionals and pricing rules for seeding."""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from app.adapters.csv_loader.normalizer import (
    clean_string,
    normalize_column_name,
    parse_bool,
    parse_float,
)

logger = logging.getLogger(__name__)


def _sniff_dialect(sample: str) -> type[csv.Dialect]:
    """Detect the delimiter (comma/semicolon/tab) from the header line."""
    # spreadsheet exports in comma-decimal locales use ';'
    first_line = sample.splitlines()[0] if sample else ""
    delims = [";", ",", "\t"]
    counts = {d: first_line.count(d) for d in delims}
    best_delim = max(counts, key=counts.get)

    if counts[best_delim] == 0:
        return csv.excel

    class DynamicDialect(csv.excel):
        delimiter = best_delim

    return DynamicDialect


def _read_csv(file_path: Path, encoding: str = "utf-8-sig") -> list[dict[str, str | None]]:
    """Read a CSV file with BOM handling and column normalization."""
    with open(file_path, encoding=encoding, newline="") as f:
        sample = f.read(4096)
        f.seek(0)
        reader = csv.DictReader(f, dialect=_sniff_dialect(sample))
        if reader.fieldnames is None:
            raise ValueError(f"CSV file {file_path} has no header row")

        col_map = {col: normalize_column_name(col) for col in reader.fieldnames}
        rows = [
            {col_map[k]: clean_string(v) for k, v in raw_row.items() if k is not None}
            for raw_row in reader
        ]

    logger.info("Loaded %d rows from %s (columns: %s)", len(rows), file_path.name, list(col_map.values()))
    return rows


def load_professionals(file_path: Path) -> list[dict]:
    """Load the professionals CSV.

    Expected columns (after normalization):
        name, category (or specialty), latitude/lat, longitude/lng,
        is_available (optional, default true), rating (optional)
    """
    professionals = []
    for row in _read_csv(file_path):
        name = row.get("name") or row.get("nombre") or ""
        category = row.get("category") or row.get("specialty") or row.get("especialidad") or ""
        if not name or not category:
            logger.warning("Skipping professional row without name/category: %s", row)
            continue
        professionals.append({
            "name": name,
            "category": category.strip().lower(),
            "latitude": parse_float(row.get("latitude") or row.get("lat")),
            "longitude": parse_float(row.get("longitude") or row.get("lng") or row.get("lon")),
            "is_available": parse_bool(row.get("is_available") or row.get("available")),
            "rating": parse_float(row.get("rating")) or 0.0,
        })
    logger.info("Parsed %d professionals", len(professionals))
    return professionals


def load_pricing_rules(file_path: Path) -> list[dict]:
    """Load the pricing rules CSV.

    Expected columns: service_category (or category), base_multiplier,
    min_price.
    """
    rules = []
    for row in _read_csv(file_path):
        category = row.get("service_category") or row.get("category") or ""
        multiplier = parse_float(row.get("base_multiplier") or row.get("multiplier"))
        if not category or multiplier is None:
            logger.warning("Skipping pricing row without category/multiplier: %s", row)
            continue
        rules.append({
            "service_category": category.strip().lower(),
            "base_multiplier": multiplier,
            "min_price": parse_float(row.get("min_price")) or 0.0,
        })
    logger.info("Parsed %d pricing rules", len(rules))
    return rules
