"""SQLAlchemy repository implementations.

Status-changing methods are single ``UPDATE ... WHERE <precondition>
RETURNING id`` statements. Under READ COMMITTED a concurrent writer
blocks on the row lock and then re-checks the WHERE clause against the
committed row, so only one of two racing updates can match.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import and_, exists, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.models import (
    AssignmentModel,
    CandidateModel,
    PricingRuleModel,
    ProfessionalModel,
    RejectionModel,
    TrackingEntryModel,
    UrgentRequestModel,
)
from app.application.ports.assignment_repo import AssignmentRepository
from app.application.ports.candidate_repo import CandidateRepository
from app.application.ports.pricing_rule_repo import PricingRuleRepository
from app.application.ports.professional_directory import ProfessionalDirectory
from app.application.ports.rejection_repo import RejectionRepository
from app.application.ports.tracking_repo import TrackingRepository
from app.application.ports.unit_of_work import UnitOfWork
from app.application.ports.urgent_request_repo import UrgentRequestRepository
from app.domain.entities.assignment import Assignment
from app.domain.entities.candidate import Candidate
from app.domain.entities.pricing_rule import PricingRule
from app.domain.entities.professional import Professional
from app.domain.entities.rejection import Rejection
from app.domain.entities.tracking_entry import TrackingEntry
from app.domain.entities.urgent_request import UrgentRequest
from app.domain.value_objects.clock import utcnow
from app.domain.value_objects.enums import RequestStatus
from app.domain.value_objects.geo_point import GeoPoint

# conditional updates bypass the identity map; reads must not serve stale rows
_FRESH = {"populate_existing": True}
_NO_SYNC = {"synchronize_session": False}
# first key of the two-key advisory lock taken per client on creation
_CREATE_LOCK_NAMESPACE = 7301

# ─── Mappers ─────────────────────────────────────────────────────────


def _request_to_domain(m: UrgentRequestModel) -> UrgentRequest:
    return UrgentRequest(
        id=m.id,
        client_id=m.client_id,
        description=m.description,
        location=GeoPoint(latitude=m.latitude, longitude=m.longitude),
        radius_km=m.radius_km,
        service_category=m.service_category,
        price_estimate=m.price_estimate,
        status=RequestStatus(m.status),
        assigned_professional_id=m.assigned_professional_id,
        dispatch_round=m.dispatch_round,
        match_failed=m.match_failed,
        last_dispatched_at=m.last_dispatched_at,
        created_at=m.created_at,
        completed_at=m.completed_at,
    )


def _candidate_to_domain(m: CandidateModel) -> Candidate:
    return Candidate(
        id=m.id,
        request_id=m.request_id,
        professional_id=m.professional_id,
        distance_km=m.distance_km,
        dispatch_round=m.dispatch_round,
        responded=m.responded,
        responded_at=m.responded_at,
        notified_at=m.notified_at,
    )


def _assignment_to_domain(m: AssignmentModel) -> Assignment:
    return Assignment(
        id=m.id,
        request_id=m.request_id,
        professional_id=m.professional_id,
        assigned_at=m.assigned_at,
        completed_at=m.completed_at,
        rating=m.rating,
        comment=m.comment,
    )


def _rejection_to_domain(m: RejectionModel) -> Rejection:
    return Rejection(
        id=m.id,
        request_id=m.request_id,
        professional_id=m.professional_id,
        reason=m.reason,
        rejected_at=m.rejected_at,
    )


def _tracking_to_domain(m: TrackingEntryModel) -> TrackingEntry:
    return TrackingEntry(
        id=m.id,
        request_id=m.request_id,
        previous_status=RequestStatus(m.previous_status) if m.previous_status else None,
        new_status=RequestStatus(m.new_status),
        actor_id=m.actor_id,
        note=m.note,
        created_at=m.created_at,
    )


def _pricing_rule_to_domain(m: PricingRuleModel) -> PricingRule:
    return PricingRule(
        id=m.id,
        service_category=m.service_category,
        base_multiplier=m.base_multiplier,
        min_price=m.min_price,
    )


def _professional_to_domain(m: ProfessionalModel) -> Professional:
    location = None
    if m.latitude is not None and m.longitude is not None:
        location = GeoPoint(latitude=m.latitude, longitude=m.longitude)
    return Professional(
        id=m.id,
        name=m.name,
        category=m.category,
        location=location,
        is_available=m.is_available,
        rating=m.rating,
    )


# ─── Repositories ────────────────────────────────────────────────────


def _within_box(model, location: GeoPoint, radius_km: float) -> list:
    """Bounding-box conditions on a model with latitude/longitude columns."""
    min_lat, max_lat, min_lon, max_lon = location.bounding_box(radius_km)
    conditions = [model.latitude.between(min_lat, max_lat)]
    # boxes crossing the antimeridian keep the latitude band only
    if min_lon >= -180.0 and max_lon <= 180.0:
        conditions.append(model.longitude.between(min_lon, max_lon))
    return conditions


class SqlUrgentRequestRepository(UrgentRequestRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def save(self, request: UrgentRequest) -> UrgentRequest:
        m = UrgentRequestModel(
            client_id=request.client_id,
            description=request.description,
            latitude=request.location.latitude,
            longitude=request.location.longitude,
            radius_km=request.radius_km,
            service_category=request.service_category,
            price_estimate=request.price_estimate,
            status=request.status.value,
            assigned_professional_id=request.assigned_professional_id,
            dispatch_round=request.dispatch_round,
            match_failed=request.match_failed,
            last_dispatched_at=request.last_dispatched_at,
            completed_at=request.completed_at,
            created_at=request.created_at or utcnow(),
        )
        self._s.add(m)
        await self._s.flush()
        request.id = m.id
        request.created_at = m.created_at
        return request

    async def get_by_id(self, request_id: int) -> UrgentRequest | None:
        result = await self._s.execute(
            select(UrgentRequestModel)
            .where(UrgentRequestModel.id == request_id)
            .execution_options(**_FRESH)
        )
        m = result.scalar_one_or_none()
        return _request_to_domain(m) if m else None

    async def get_pending_near(self, location: GeoPoint, radius_km: float) -> list[UrgentRequest]:
        result = await self._s.execute(
            select(UrgentRequestModel)
            .where(
                UrgentRequestModel.status == RequestStatus.PENDING.value,
                UrgentRequestModel.match_failed.is_(False),
                *_within_box(UrgentRequestModel, location, radius_km),
            )
            .order_by(UrgentRequestModel.id)
            .execution_options(**_FRESH)
        )
        return [_request_to_domain(m) for m in result.scalars()]

    async def get_due_for_redispatch(self, dispatched_before: datetime) -> list[UrgentRequest]:
        result = await self._s.execute(
            select(UrgentRequestModel)
            .where(
                UrgentRequestModel.status == RequestStatus.PENDING.value,
                UrgentRequestModel.match_failed.is_(False),
                (UrgentRequestModel.last_dispatched_at.is_(None))
                | (UrgentRequestModel.last_dispatched_at <= dispatched_before),
            )
            .order_by(UrgentRequestModel.last_dispatched_at, UrgentRequestModel.id)
            .execution_options(**_FRESH)
        )
        return [_request_to_domain(m) for m in result.scalars()]

    async def lock_client(self, client_id: int) -> None:
        await self._s.execute(
            select(func.pg_advisory_xact_lock(_CREATE_LOCK_NAMESPACE, client_id))
        )

    async def count_created_since(self, client_id: int, since: datetime) -> int:
        result = await self._s.execute(
            select(func.count(UrgentRequestModel.id)).where(
                UrgentRequestModel.client_id == client_id,
                UrgentRequestModel.created_at >= since,
            )
        )
        return result.scalar_one()

    async def try_assign(self, request_id: int, professional_id: int) -> bool:
        open_candidate = exists().where(
            CandidateModel.request_id == request_id,
            CandidateModel.professional_id == professional_id,
            CandidateModel.responded.is_(False),
        )
        result = await self._s.execute(
            update(UrgentRequestModel)
            .where(
                UrgentRequestModel.id == request_id,
                UrgentRequestModel.status == RequestStatus.PENDING.value,
                UrgentRequestModel.match_failed.is_(False),
                open_candidate,
            )
            .values(
                status=RequestStatus.ASSIGNED.value,
                assigned_professional_id=professional_id,
            )
            .returning(UrgentRequestModel.id)
            .execution_options(**_NO_SYNC)
        )
        return result.scalar_one_or_none() is not None

    async def try_transition(
        self,
        request_id: int,
        from_status: RequestStatus,
        to_status: RequestStatus,
        completed_at: datetime | None = None,
    ) -> bool:
        values: dict = {"status": to_status.value}
        if completed_at is not None:
            values["completed_at"] = completed_at
        result = await self._s.execute(
            update(UrgentRequestModel)
            .where(
                UrgentRequestModel.id == request_id,
                UrgentRequestModel.status == from_status.value,
            )
            .values(**values)
            .returning(UrgentRequestModel.id)
            .execution_options(**_NO_SYNC)
        )
        return result.scalar_one_or_none() is not None

    async def claim_round(
        self,
        request_id: int,
        expected_round: int,
        radius_km: float,
        dispatched_at: datetime,
    ) -> bool:
        result = await self._s.execute(
            update(UrgentRequestModel)
            .where(
                UrgentRequestModel.id == request_id,
                UrgentRequestModel.status == RequestStatus.PENDING.value,
                UrgentRequestModel.match_failed.is_(False),
                UrgentRequestModel.dispatch_round == expected_round,
            )
            .values(
                dispatch_round=expected_round + 1,
                radius_km=radius_km,
                last_dispatched_at=dispatched_at,
            )
            .returning(UrgentRequestModel.id)
            .execution_options(**_NO_SYNC)
        )
        return result.scalar_one_or_none() is not None

    async def mark_match_failed(self, request_id: int, expected_round: int) -> bool:
        result = await self._s.execute(
            update(UrgentRequestModel)
            .where(
                UrgentRequestModel.id == request_id,
                UrgentRequestModel.status == RequestStatus.PENDING.value,
                UrgentRequestModel.match_failed.is_(False),
                UrgentRequestModel.dispatch_round == expected_round,
            )
            .values(match_failed=True)
            .returning(UrgentRequestModel.id)
            .execution_options(**_NO_SYNC)
        )
        return result.scalar_one_or_none() is not None


class SqlCandidateRepository(CandidateRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def add_many(self, candidates: list[Candidate]) -> int:
        if not candidates:
            return 0
        stmt = (
            pg_insert(CandidateModel)
            .values(
                [
                    {
                        "request_id": c.request_id,
                        "professional_id": c.professional_id,
                        "distance_km": c.distance_km,
                        "dispatch_round": c.dispatch_round,
                        "responded": False,
                    }
                    for c in candidates
                ]
            )
            .on_conflict_do_nothing(index_elements=["request_id", "professional_id"])
            .returning(CandidateModel.id)
        )
        result = await self._s.execute(stmt)
        return len(result.scalars().all())

    async def get(self, request_id: int, professional_id: int) -> Candidate | None:
        result = await self._s.execute(
            select(CandidateModel)
            .where(
                CandidateModel.request_id == request_id,
                CandidateModel.professional_id == professional_id,
            )
            .execution_options(**_FRESH)
        )
        m = result.scalar_one_or_none()
        return _candidate_to_domain(m) if m else None

    async def get_by_request(self, request_id: int) -> list[Candidate]:
        result = await self._s.execute(
            select(CandidateModel)
            .where(CandidateModel.request_id == request_id)
            .order_by(CandidateModel.dispatch_round, CandidateModel.distance_km, CandidateModel.id)
            .execution_options(**_FRESH)
        )
        return [_candidate_to_domain(m) for m in result.scalars()]

    async def get_unnotified(self, request_id: int) -> list[Candidate]:
        result = await self._s.execute(
            select(CandidateModel)
            .where(
                CandidateModel.request_id == request_id,
                CandidateModel.responded.is_(False),
                CandidateModel.notified_at.is_(None),
            )
            .order_by(CandidateModel.distance_km, CandidateModel.id)
            .execution_options(**_FRESH)
        )
        return [_candidate_to_domain(m) for m in result.scalars()]

    async def get_request_ids_for_professional(self, professional_id: int) -> set[int]:
        result = await self._s.execute(
            select(CandidateModel.request_id).where(
                CandidateModel.professional_id == professional_id
            )
        )
        return set(result.scalars())

    async def mark_responded(self, request_id: int, professional_id: int, at: datetime) -> bool:
        result = await self._s.execute(
            update(CandidateModel)
            .where(
                CandidateModel.request_id == request_id,
                CandidateModel.professional_id == professional_id,
                CandidateModel.responded.is_(False),
            )
            .values(responded=True, responded_at=at)
            .returning(CandidateModel.id)
            .execution_options(**_NO_SYNC)
        )
        return result.scalar_one_or_none() is not None

    async def mark_notified(self, candidate_ids: list[int], at: datetime) -> None:
        if not candidate_ids:
            return
        await self._s.execute(
            update(CandidateModel)
            .where(CandidateModel.id.in_(candidate_ids))
            .values(notified_at=at)
            .execution_options(**_NO_SYNC)
        )

    async def count_open(self, request_id: int) -> int:
        result = await self._s.execute(
            select(func.count(CandidateModel.id)).where(
                CandidateModel.request_id == request_id,
                CandidateModel.responded.is_(False),
            )
        )
        return result.scalar_one()


class SqlAssignmentRepository(AssignmentRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def save(self, assignment: Assignment) -> Assignment:
        m = AssignmentModel(
            request_id=assignment.request_id,
            professional_id=assignment.professional_id,
            assigned_at=assignment.assigned_at or utcnow(),
        )
        self._s.add(m)
        await self._s.flush()
        assignment.id = m.id
        assignment.assigned_at = m.assigned_at
        return assignment

    async def get_by_request(self, request_id: int) -> Assignment | None:
        result = await self._s.execute(
            select(AssignmentModel)
            .where(AssignmentModel.request_id == request_id)
            .execution_options(**_FRESH)
        )
        m = result.scalar_one_or_none()
        return _assignment_to_domain(m) if m else None

    async def complete(
        self,
        request_id: int,
        completed_at: datetime,
        rating: int | None,
        comment: str | None,
    ) -> Assignment | None:
        await self._s.execute(
            update(AssignmentModel)
            .where(AssignmentModel.request_id == request_id)
            .values(completed_at=completed_at, rating=rating, comment=comment)
            .execution_options(**_NO_SYNC)
        )
        return await self.get_by_request(request_id)


class SqlRejectionRepository(RejectionRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def save(self, rejection: Rejection) -> Rejection:
        m = RejectionModel(
            request_id=rejection.request_id,
            professional_id=rejection.professional_id,
            reason=rejection.reason,
            rejected_at=rejection.rejected_at or utcnow(),
        )
        self._s.add(m)
        await self._s.flush()
        rejection.id = m.id
        return rejection

    async def get_by_request(self, request_id: int) -> list[Rejection]:
        result = await self._s.execute(
            select(RejectionModel)
            .where(RejectionModel.request_id == request_id)
            .order_by(RejectionModel.id)
        )
        return [_rejection_to_domain(m) for m in result.scalars()]


class SqlTrackingRepository(TrackingRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def append(self, entry: TrackingEntry) -> TrackingEntry:
        m = TrackingEntryModel(
            request_id=entry.request_id,
            previous_status=entry.previous_status.value if entry.previous_status else None,
            new_status=entry.new_status.value,
            actor_id=entry.actor_id,
            note=entry.note,
            created_at=entry.created_at or utcnow(),
        )
        self._s.add(m)
        await self._s.flush()
        return _tracking_to_domain(m)

    async def get_history(self, request_id: int) -> list[TrackingEntry]:
        result = await self._s.execute(
            select(TrackingEntryModel)
            .where(TrackingEntryModel.request_id == request_id)
            .order_by(TrackingEntryModel.id)
        )
        return [_tracking_to_domain(m) for m in result.scalars()]


class SqlPricingRuleRepository(PricingRuleRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_all(self) -> list[PricingRule]:
        result = await self._s.execute(
            select(PricingRuleModel).order_by(PricingRuleModel.service_category)
        )
        return [_pricing_rule_to_domain(m) for m in result.scalars()]

    async def get_by_category(self, service_category: str) -> PricingRule | None:
        result = await self._s.execute(
            select(PricingRuleModel).where(
                func.lower(PricingRuleModel.service_category)
                == service_category.strip().lower()
            )
        )
        m = result.scalar_one_or_none()
        return _pricing_rule_to_domain(m) if m else None

    async def upsert(self, rule: PricingRule) -> PricingRule:
        category = rule.service_category.strip().lower()
        stmt = pg_insert(PricingRuleModel).values(
            service_category=category,
            base_multiplier=rule.base_multiplier,
            min_price=rule.min_price,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["service_category"],
            set_={
                "base_multiplier": stmt.excluded.base_multiplier,
                "min_price": stmt.excluded.min_price,
                "updated_at": func.now(),
            },
        ).returning(PricingRuleModel.id)
        result = await self._s.execute(stmt)
        return PricingRule(
            id=result.scalar_one(),
            service_category=category,
            base_multiplier=rule.base_multiplier,
            min_price=rule.min_price,
        )


class SqlProfessionalDirectory(ProfessionalDirectory):
    """Bounding-box pre-filter in SQL; exact distance is checked by the caller."""

    def __init__(self, session: AsyncSession):
        self._s = session

    async def find_eligible(
        self, location: GeoPoint, radius_km: float, service_category: str
    ) -> list[Professional]:
        conditions = [
            ProfessionalModel.is_available.is_(True),
            func.lower(ProfessionalModel.category) == service_category.strip().lower(),
            ProfessionalModel.longitude.is_not(None),
            *_within_box(ProfessionalModel, location, radius_km),
        ]

        result = await self._s.execute(
            select(ProfessionalModel).where(and_(*conditions)).order_by(ProfessionalModel.id)
        )
        return [_professional_to_domain(m) for m in result.scalars()]


class SqlUnitOfWork(UnitOfWork):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def commit(self) -> None:
        await self._s.commit()

    async def rollback(self) -> None:
        await self._s.rollback()
