"""Professional endpoints — nearby requests, accept, reject."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.application.use_cases.assignment import AssignmentCoordinator
from app.application.use_cases.request_status import ListNearbyRequestsUseCase
from app.domain.value_objects.enums import Outcome, UserRole
from app.domain.value_objects.geo_point import GeoPoint
from app.infrastructure.api.dependencies import (
    CurrentUser,
    get_assignment_coordinator,
    get_nearby_requests_uc,
    require_role,
)
from app.infrastructure.api.serializers import serialize_assignment, serialize_request

router = APIRouter(prefix="/urgent", tags=["professionals"])

_professional = require_role(UserRole.PROFESSIONAL)


class RejectIn(BaseModel):
    reason: str | None = None


@router.get("/nearby")
async def nearby_urgent_requests(
    lat: float,
    lng: float,
    user: CurrentUser = Depends(_professional),
    uc: ListNearbyRequestsUseCase = Depends(get_nearby_requests_uc),
):
    """Pending requests around the professional's current position."""
    nearby = await uc.execute(user.id, GeoPoint(latitude=lat, longitude=lng))
    return {
        "total": len(nearby),
        "requests": [
            {**serialize_request(n.request), "distance_km": n.distance_km} for n in nearby
        ],
    }


@router.post("/{request_id}/accept")
async def accept_urgent_request(
    request_id: int,
    user: CurrentUser = Depends(_professional),
    coordinator: AssignmentCoordinator = Depends(get_assignment_coordinator),
):
    result = await coordinator.accept(request_id, user.id)
    if result.outcome != Outcome.ACCEPTED:
        return JSONResponse(
            status_code=409,
            content={"error": result.outcome.value, "request_id": request_id},
        )
    return {
        "request_id": request_id,
        "outcome": result.outcome.value,
        "assignment": serialize_assignment(result.assignment),
    }


@router.post("/{request_id}/reject")
async def reject_urgent_request(
    request_id: int,
    body: RejectIn | None = None,
    user: CurrentUser = Depends(_professional),
    coordinator: AssignmentCoordinator = Depends(get_assignment_coordinator),
):
    """AlreadyResolved is reported in the body; the caller just refreshes."""
    result = await coordinator.reject(request_id, user.id, body.reason if body else None)
    return {
        "request_id": request_id,
        "outcome": result.outcome.value,
        "redispatch": result.redispatch.action.value if result.redispatch else None,
    }
