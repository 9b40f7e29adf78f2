"""Wall clock used for persisted timestamps (naive UTC, like the DB columns)."""

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)
