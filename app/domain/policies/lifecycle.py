"""LifecyclePolicy — the urgent request state machine.

    pending  --accept-->   assigned
    pending  --cancel-->   cancelled
    assigned --complete--> completed

Anything else is illegal. ``completed`` and ``cancelled`` are terminal.
"""

from __future__ import annotations

from collections.abc import Iterable

from app.domain.entities.tracking_entry import TrackingEntry
from app.domain.errors import InvalidTransition
from app.domain.value_objects.enums import RequestStatus

ALLOWED_TRANSITIONS: frozenset[tuple[RequestStatus, RequestStatus]] = frozenset(
    {
        (RequestStatus.PENDING, RequestStatus.ASSIGNED),
        (RequestStatus.PENDING, RequestStatus.CANCELLED),
        (RequestStatus.ASSIGNED, RequestStatus.COMPLETED),
    }
)

TERMINAL_STATUSES = frozenset({RequestStatus.COMPLETED, RequestStatus.CANCELLED})


def is_allowed(current: RequestStatus, target: RequestStatus) -> bool:
    return (current, target) in ALLOWED_TRANSITIONS


def ensure_transition(current: RequestStatus, target: RequestStatus) -> None:
    """Raise InvalidTransition unless ``current -> target`` is legal."""
    if not is_allowed(current, target):
        raise InvalidTransition(
            f"Cannot move urgent request from '{current.value}' to '{target.value}'"
        )


def replay_status(entries: Iterable[TrackingEntry]) -> RequestStatus | None:
    """Rebuild the current status from the ordered tracking ledger.

    Each entry must start where the previous one ended, and every status
    change must be a legal transition (pending -> pending notes are allowed).

    Raises:
        ValueError: if the ledger is not a consistent chain.
    """
    status: RequestStatus | None = None
    for entry in entries:
        if entry.previous_status != status:
            raise ValueError(
                f"Ledger entry {entry.id} starts at {entry.previous_status}, expected {status}"
            )
        if status is not None and entry.new_status != status:
            ensure_transition(status, entry.new_status)
        status = entry.new_status
    return status
