"""Domain objects → API response dicts."""

from __future__ import annotations

from datetime import datetime

from app.domain.entities.assignment import Assignment
from app.domain.entities.candidate import Candidate
from app.domain.entities.pricing_rule import PricingRule
from app.domain.entities.tracking_entry import TrackingEntry
from app.domain.entities.urgent_request import UrgentRequest


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def serialize_request(r: UrgentRequest) -> dict:
    return {
        "id": r.id,
        "client_id": r.client_id,
        "description": r.description,
        "location": {"lat": r.location.latitude, "lng": r.location.longitude},
        "radius_km": r.radius_km,
        "service_category": r.service_category,
        "price_estimate": r.price_estimate,
        "status": r.status.value,
        "assigned_professional_id": r.assigned_professional_id,
        "dispatch_round": r.dispatch_round,
        "match_failed": r.match_failed,
        "created_at": _iso(r.created_at),
        "completed_at": _iso(r.completed_at),
    }


def serialize_assignment(a: Assignment | None) -> dict | None:
    if a is None:
        return None
    return {
        "id": a.id,
        "professional_id": a.professional_id,
        "assigned_at": _iso(a.assigned_at),
        "completed_at": _iso(a.completed_at),
        "rating": a.rating,
        "comment": a.comment,
    }


def serialize_tracking(e: TrackingEntry) -> dict:
    return {
        "previous_status": e.previous_status.value if e.previous_status else None,
        "new_status": e.new_status.value,
        "actor_id": e.actor_id,
        "note": e.note,
        "created_at": _iso(e.created_at),
    }


def serialize_candidate(c: Candidate) -> dict:
    return {
        "professional_id": c.professional_id,
        "distance_km": c.distance_km,
        "dispatch_round": c.dispatch_round,
        "responded": c.responded,
        "notified": c.notified_at is not None,
    }


def serialize_pricing_rule(r: PricingRule) -> dict:
    return {
        "service_category": r.service_category,
        "base_multiplier": r.base_multiplier,
        "min_price": r.min_price,
    }
