"""RedispatchPolicy — what to do when a candidate pool yields no winner."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass(frozen=True)
class RedispatchDecision:
    redispatch: bool
    next_round: int
    next_radius_km: float
    reason: str


def decide_redispatch(
    rounds_done: int,
    max_rounds: int,
    current_radius_km: float,
    expansion_factor: float,
    max_radius_km: float,
) -> RedispatchDecision:
    """Pure function: re-dispatch with a wider radius or give up.

    Rules:
      1. Fewer than ``max_rounds`` rounds so far → new round with the radius
         multiplied by ``expansion_factor`` (capped at ``max_radius_km``).
      2. Otherwise → failed to match.
    """
    if rounds_done < max_rounds:
        next_radius = min(max_radius_km, round(current_radius_km * expansion_factor, 3))
        return RedispatchDecision(
            redispatch=True,
            next_round=rounds_done + 1,
            next_radius_km=next_radius,
            reason=f"Round {rounds_done + 1}/{max_rounds} with radius {next_radius:g} km",
        )
    return RedispatchDecision(
        redispatch=False,
        next_round=rounds_done,
        next_radius_km=current_radius_km,
        reason=f"No professional accepted after {rounds_done} round(s)",
    )


def is_window_elapsed(
    last_dispatched_at: datetime | None,
    now: datetime,
    window_seconds: float,
) -> bool:
    """True when the current round has been open for at least the window."""
    if last_dispatched_at is None:
        return True
    return now - last_dispatched_at >= timedelta(seconds=window_seconds)
