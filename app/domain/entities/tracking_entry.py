"""TrackingEntry entity — one row of the immutable request history ledger."""

from dataclasses import dataclass
from datetime import datetime

from app.domain.value_objects.enums import RequestStatus


@dataclass(frozen=True)
class TrackingEntry:
    id: int | None
    request_id: int
    previous_status: RequestStatus | None
    new_status: RequestStatus
    actor_id: int | None = None
    note: str | None = None
    created_at: datetime | None = None
