"""Client endpoints — create, status, cancel, complete urgent requests."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.application.use_cases.assignment import AssignmentCoordinator
from app.application.use_cases.create_request import CreateUrgentRequestUseCase
from app.application.use_cases.request_status import GetRequestStatusUseCase
from app.domain.value_objects.enums import UserRole
from app.domain.value_objects.geo_point import GeoPoint
from app.infrastructure.api.dependencies import (
    CurrentUser,
    get_assignment_coordinator,
    get_create_request_uc,
    get_current_user,
    get_request_status_uc,
    require_role,
)
from app.infrastructure.api.serializers import (
    serialize_assignment,
    serialize_candidate,
    serialize_request,
    serialize_tracking,
)

router = APIRouter(prefix="/urgent-requests", tags=["urgent-requests"])


class LocationIn(BaseModel):
    lat: float
    lng: float


class CreateUrgentRequestIn(BaseModel):
    description: str = ""
    location: LocationIn
    radius_km: float = 5.0
    service_category: str = ""


class CompleteIn(BaseModel):
    rating: int | None = None
    comment: str | None = None


@router.post("", status_code=201)
async def create_urgent_request(
    body: CreateUrgentRequestIn,
    user: CurrentUser = Depends(require_role(UserRole.CLIENT, UserRole.ADMIN)),
    uc: CreateUrgentRequestUseCase = Depends(get_create_request_uc),
):
    """Create a request, price it and alert nearby professionals."""
    result = await uc.execute(
        client_id=user.id,
        description=body.description,
        location=GeoPoint(latitude=body.location.lat, longitude=body.location.lng),
        radius_km=body.radius_km,
        service_category=body.service_category,
    )
    request = result.request
    return {
        "id": request.id,
        "price_estimate": request.price_estimate,
        "status": request.status.value,
        "match_failed": request.match_failed,
        "candidates_found": result.dispatch.candidates_found,
        "candidates_notified": result.dispatch.notified,
        "redispatch": result.redispatch.action.value if result.redispatch else None,
        "request": serialize_request(request),
    }


@router.get("/{request_id}/status")
async def get_urgent_request_status(
    request_id: int,
    user: CurrentUser = Depends(get_current_user),
    uc: GetRequestStatusUseCase = Depends(get_request_status_uc),
):
    """Status + assignment + tracking history."""
    view = await uc.execute(request_id, user.id, user.role)
    return {
        "id": view.request.id,
        "status": view.request.status.value,
        "dispatch_round": view.request.dispatch_round,
        "match_failed": view.request.match_failed,
        "request": serialize_request(view.request),
        "assignment": serialize_assignment(view.assignment),
        "tracking": [serialize_tracking(e) for e in view.history],
        "candidates": [serialize_candidate(c) for c in view.candidates],
    }


@router.post("/{request_id}/cancel")
async def cancel_urgent_request(
    request_id: int,
    user: CurrentUser = Depends(get_current_user),
    coordinator: AssignmentCoordinator = Depends(get_assignment_coordinator),
):
    request = await coordinator.cancel(request_id, user.id)
    return {"id": request.id, "status": request.status.value}


@router.post("/{request_id}/complete")
async def complete_urgent_request(
    request_id: int,
    body: CompleteIn | None = None,
    user: CurrentUser = Depends(get_current_user),
    coordinator: AssignmentCoordinator = Depends(get_assignment_coordinator),
):
    body = body or CompleteIn()
    result = await coordinator.complete(request_id, user.id, body.rating, body.comment)
    return {
        "id": result.request.id,
        "status": result.request.status.value,
        "final_price": result.request.price_estimate,
        "assignment": serialize_assignment(result.assignment),
    }
