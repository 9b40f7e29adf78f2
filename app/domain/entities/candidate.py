"""Candidate entity — a professional in the pool of an urgent request."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Candidate:
    id: int | None
    request_id: int
    professional_id: int
    distance_km: float
    dispatch_round: int = 1
    responded: bool = False
    responded_at: datetime | None = None
    notified_at: datetime | None = None

    def is_open(self) -> bool:
        return not self.responded
