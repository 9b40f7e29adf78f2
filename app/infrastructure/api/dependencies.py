"""FastAPI dependency injection — wires adapters into use cases."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.notifier.webhook_notifier import LoggingNotifier, WebhookNotifier
from app.adapters.persistence.database import get_session
from app.adapters.persistence.repositories import (
    SqlAssignmentRepository,
    SqlCandidateRepository,
    SqlPricingRuleRepository,
    SqlProfessionalDirectory,
    SqlRejectionRepository,
    SqlTrackingRepository,
    SqlUnitOfWork,
    SqlUrgentRequestRepository,
)
from app.adapters.settlement.webhook_settlement import LoggingSettlement, WebhookSettlement
from app.application.ports.notifier_port import NotifierPort
from app.application.ports.settlement_port import SettlementPort
from app.application.use_cases.assignment import AssignmentCoordinator
from app.application.use_cases.create_request import CreateUrgentRequestUseCase
from app.application.use_cases.dispatch_request import DispatchRequestUseCase
from app.application.use_cases.find_candidates import CandidateFinder
from app.application.use_cases.lifecycle_tracker import LifecycleTracker
from app.application.use_cases.pricing import PricingService
from app.application.use_cases.request_status import (
    GetRequestStatusUseCase,
    ListNearbyRequestsUseCase,
)
from app.application.use_cases.retry_policy import RedispatchUseCase
from app.config import settings
from app.domain.entities.pricing_rule import PricingRule
from app.domain.value_objects.enums import UserRole

logger = logging.getLogger(__name__)

# Singleton adapters (stateless)
if settings.notifier_webhook_url:
    _notifier: NotifierPort = WebhookNotifier()
    logger.info("Using webhook notifier at %s", settings.notifier_webhook_url)
else:
    _notifier = LoggingNotifier()

if settings.settlement_webhook_url:
    _settlement: SettlementPort = WebhookSettlement()
else:
    _settlement = LoggingSettlement()


def get_notifier() -> NotifierPort:
    return _notifier


def get_settlement() -> SettlementPort:
    return _settlement


# ─── Caller identity ─────────────────────────────────────────────────


@dataclass(frozen=True)
class CurrentUser:
    id: int
    role: UserRole


def get_current_user(
    x_user_id: int | None = Header(default=None),
    x_user_role: str = Header(default=UserRole.CLIENT.value),
) -> CurrentUser:
    """Identity forwarded by the gateway in X-User-Id / X-User-Role."""
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    try:
        role = UserRole(x_user_role.strip().lower())
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown role '{x_user_role}'")
    return CurrentUser(id=x_user_id, role=role)


def require_role(*roles: UserRole):
    def dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in roles:
            raise HTTPException(status_code=403, detail="Not allowed for this role")
        return user

    return dependency


# ─── Use case builders ───────────────────────────────────────────────


def build_pricing_service(session: AsyncSession) -> PricingService:
    default_rule = None
    if settings.default_price_multiplier is not None:
        default_rule = PricingRule(
            id=None,
            service_category=settings.default_pricing_category,
            base_multiplier=settings.default_price_multiplier,
            min_price=settings.default_min_price,
        )
    return PricingService(
        rule_repo=SqlPricingRuleRepository(session),
        baseline_cost=settings.baseline_service_cost,
        default_category=settings.default_pricing_category,
        default_rule=default_rule,
        surcharge_per_km=settings.distance_surcharge_per_km,
    )


def build_dispatcher(session: AsyncSession, notifier: NotifierPort) -> DispatchRequestUseCase:
    return DispatchRequestUseCase(
        finder=CandidateFinder(
            directory=SqlProfessionalDirectory(session),
            min_radius_km=settings.min_radius_km,
            max_radius_km=settings.max_radius_km,
            max_candidates=settings.max_candidates_per_round,
        ),
        candidate_repo=SqlCandidateRepository(session),
        notifier=notifier,
        uow=SqlUnitOfWork(session),
    )


def build_redispatch(session: AsyncSession, notifier: NotifierPort | None = None) -> RedispatchUseCase:
    notifier = notifier or _notifier
    return RedispatchUseCase(
        request_repo=SqlUrgentRequestRepository(session),
        candidate_repo=SqlCandidateRepository(session),
        dispatcher=build_dispatcher(session, notifier),
        tracker=LifecycleTracker(SqlTrackingRepository(session)),
        notifier=notifier,
        uow=SqlUnitOfWork(session),
        max_rounds=settings.max_dispatch_rounds,
        expansion_factor=settings.radius_expansion_factor,
        max_radius_km=settings.max_radius_km,
        window_seconds=settings.redispatch_window_seconds,
    )


def get_create_request_uc(
    session: AsyncSession = Depends(get_session),
    notifier: NotifierPort = Depends(get_notifier),
) -> CreateUrgentRequestUseCase:
    return CreateUrgentRequestUseCase(
        request_repo=SqlUrgentRequestRepository(session),
        pricing=build_pricing_service(session),
        dispatcher=build_dispatcher(session, notifier),
        redispatch=build_redispatch(session, notifier),
        tracker=LifecycleTracker(SqlTrackingRepository(session)),
        uow=SqlUnitOfWork(session),
        min_radius_km=settings.min_radius_km,
        max_radius_km=settings.max_radius_km,
        max_requests_per_hour=settings.max_requests_per_hour,
    )


def get_assignment_coordinator(
    session: AsyncSession = Depends(get_session),
    notifier: NotifierPort = Depends(get_notifier),
    settlement: SettlementPort = Depends(get_settlement),
) -> AssignmentCoordinator:
    return AssignmentCoordinator(
        request_repo=SqlUrgentRequestRepository(session),
        candidate_repo=SqlCandidateRepository(session),
        assignment_repo=SqlAssignmentRepository(session),
        rejection_repo=SqlRejectionRepository(session),
        tracker=LifecycleTracker(SqlTrackingRepository(session)),
        notifier=notifier,
        settlement=settlement,
        uow=SqlUnitOfWork(session),
        redispatch=build_redispatch(session, notifier),
    )


def get_request_status_uc(
    session: AsyncSession = Depends(get_session),
) -> GetRequestStatusUseCase:
    return GetRequestStatusUseCase(
        request_repo=SqlUrgentRequestRepository(session),
        candidate_repo=SqlCandidateRepository(session),
        assignment_repo=SqlAssignmentRepository(session),
        tracker=LifecycleTracker(SqlTrackingRepository(session)),
    )


def get_nearby_requests_uc(
    session: AsyncSession = Depends(get_session),
) -> ListNearbyRequestsUseCase:
    return ListNearbyRequestsUseCase(
        request_repo=SqlUrgentRequestRepository(session),
        candidate_repo=SqlCandidateRepository(session),
        max_radius_km=settings.max_radius_km,
    )


def get_pricing_service(session: AsyncSession = Depends(get_session)) -> PricingService:
    return build_pricing_service(session)
