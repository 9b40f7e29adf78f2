"""Rejection entity — append-only record of a candidate declining."""

from dataclasses import dataclass
from datetime import datetime

DEFAULT_REJECTION_REASON = "Rejected by professional"


@dataclass
class Rejection:
    id: int | None
    request_id: int
    professional_id: int
    reason: str = DEFAULT_REJECTION_REASON
    rejected_at: datetime | None = None
