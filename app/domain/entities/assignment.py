"""Assignment entity — binds the winning professional to an urgent request."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Assignment:
    id: int | None
    request_id: int
    professional_id: int
    assigned_at: datetime | None = None
    completed_at: datetime | None = None
    rating: int | None = None
    comment: str | None = None
