"""In-memory fakes of the application ports and a wired test harness.

The fakes implement the application ports. Every conditional write runs
without a suspension point after its check, so it is atomic under asyncio
just like the single-statement UPDATEs of the SQL adapters; a leading
``asyncio.sleep(0)`` lets concurrent callers interleave between calls.
"""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from app.application.ports.assignment_repo import AssignmentRepository
from app.application.ports.candidate_repo import CandidateRepository
from app.application.ports.notifier_port import NotifierPort
from app.application.ports.pricing_rule_repo import PricingRuleRepository
from app.application.ports.professional_directory import ProfessionalDirectory
from app.application.ports.rejection_repo import RejectionRepository
from app.application.ports.settlement_port import SettlementEvent, SettlementPort
from app.application.ports.tracking_repo import TrackingRepository
from app.application.ports.unit_of_work import UnitOfWork
from app.application.ports.urgent_request_repo import UrgentRequestRepository
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
from app.domain.entities.assignment import Assignment
from app.domain.entities.candidate import Candidate
from app.domain.entities.pricing_rule import PricingRule
from app.domain.entities.professional import Professional
from app.domain.entities.rejection import Rejection
from app.domain.entities.tracking_entry import TrackingEntry
from app.domain.entities.urgent_request import UrgentRequest
from app.domain.value_objects.enums import NotificationKind, RequestStatus
from app.domain.value_objects.geo_point import EARTH_RADIUS_KM, GeoPoint

BUENOS_AIRES = GeoPoint(latitude=-34.6118, longitude=-58.3960)


def km_north(origin: GeoPoint, km: float) -> GeoPoint:
    """Point exactly ``km`` great-circle kilometres north of ``origin``."""
    return GeoPoint(
        latitude=origin.latitude + math.degrees(km / EARTH_RADIUS_KM),
        longitude=origin.longitude,
    )


# ─── Clock ──────────────────────────────────────────────────────────


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 15, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


# ─── In-memory store + repositories ─────────────────────────────────


class InMemoryStore:
    def __init__(self):
        self.requests: dict[int, UrgentRequest] = {}
        self.candidates: dict[int, Candidate] = {}
        self.assignments: dict[int, Assignment] = {}
        self.rejections: list[Rejection] = []
        self.tracking: list[TrackingEntry] = []
        self.rules: dict[str, PricingRule] = {}
        self.client_locks: list[int] = []

    def candidates_of(self, request_id: int) -> list[Candidate]:
        return [c for c in self.candidates.values() if c.request_id == request_id]


class FakeUrgentRequestRepo(UrgentRequestRepository):
    def __init__(self, store: InMemoryStore):
        self._store = store

    async def save(self, request):
        await asyncio.sleep(0)
        request.id = len(self._store.requests) + 1
        self._store.requests[request.id] = replace(request)
        return request

    async def get_by_id(self, request_id):
        await asyncio.sleep(0)
        r = self._store.requests.get(request_id)
        return replace(r) if r else None

    async def _open_pending(self):
        await asyncio.sleep(0)
        return [
            replace(r) for r in self._store.requests.values()
            if r.status == RequestStatus.PENDING and not r.match_failed
        ]

    async def get_pending_near(self, location, radius_km):
        min_lat, max_lat, min_lon, max_lon = location.bounding_box(radius_km)
        return [
            r for r in await self._open_pending()
            if min_lat <= r.location.latitude <= max_lat
            and (min_lon < -180.0 or max_lon > 180.0 or min_lon <= r.location.longitude <= max_lon)
        ]

    async def get_due_for_redispatch(self, dispatched_before):
        return [
            r for r in await self._open_pending()
            if r.last_dispatched_at is None or r.last_dispatched_at <= dispatched_before
        ]

    async def lock_client(self, client_id):
        self._store.client_locks.append(client_id)

    async def count_created_since(self, client_id, since):
        await asyncio.sleep(0)
        return sum(
            1 for r in self._store.requests.values()
            if r.client_id == client_id and r.created_at and r.created_at >= since
        )

    async def try_assign(self, request_id, professional_id):
        await asyncio.sleep(0)
        r = self._store.requests.get(request_id)
        if r is None or r.status != RequestStatus.PENDING or r.match_failed:
            return False
        if not any(
            c.professional_id == professional_id and not c.responded
            for c in self._store.candidates_of(request_id)
        ):
            return False
        r.status = RequestStatus.ASSIGNED
        r.assigned_professional_id = professional_id
        return True

    async def try_transition(self, request_id, from_status, to_status, completed_at=None):
        await asyncio.sleep(0)
        r = self._store.requests.get(request_id)
        if r is None or r.status != from_status:
            return False
        r.status = to_status
        if completed_at is not None:
            r.completed_at = completed_at
        return True

    async def claim_round(self, request_id, expected_round, radius_km, dispatched_at):
        await asyncio.sleep(0)
        r = self._store.requests.get(request_id)
        if (
            r is None
            or r.status != RequestStatus.PENDING
            or r.match_failed
            or r.dispatch_round != expected_round
        ):
            return False
        r.dispatch_round = expected_round + 1
        r.radius_km = radius_km
        r.last_dispatched_at = dispatched_at
        return True

    async def mark_match_failed(self, request_id, expected_round):
        await asyncio.sleep(0)
        r = self._store.requests.get(request_id)
        if (
            r is None
            or r.status != RequestStatus.PENDING
            or r.match_failed
            or r.dispatch_round != expected_round
        ):
            return False
        r.match_failed = True
        return True


class FakeCandidateRepo(CandidateRepository):
    def __init__(self, store: InMemoryStore):
        self._store = store

    async def add_many(self, candidates):
        await asyncio.sleep(0)
        inserted = 0
        for c in candidates:
            if any(
                e.professional_id == c.professional_id
                for e in self._store.candidates_of(c.request_id)
            ):
                continue
            new_id = len(self._store.candidates) + 1
            self._store.candidates[new_id] = replace(c, id=new_id)
            inserted += 1
        return inserted

    async def get(self, request_id, professional_id):
        await asyncio.sleep(0)
        for c in self._store.candidates_of(request_id):
            if c.professional_id == professional_id:
                return replace(c)
        return None

    async def get_by_request(self, request_id):
        await asyncio.sleep(0)
        return [replace(c) for c in self._store.candidates_of(request_id)]

    async def get_unnotified(self, request_id):
        await asyncio.sleep(0)
        return [
            replace(c) for c in self._store.candidates_of(request_id)
            if not c.responded and c.notified_at is None
        ]

    async def get_request_ids_for_professional(self, professional_id):
        await asyncio.sleep(0)
        return {
            c.request_id for c in self._store.candidates.values()
            if c.professional_id == professional_id
        }

    async def mark_responded(self, request_id, professional_id, at):
        await asyncio.sleep(0)
        for c in self._store.candidates_of(request_id):
            if c.professional_id == professional_id and not c.responded:
                c.responded = True
                c.responded_at = at
                return True
        return False

    async def mark_notified(self, candidate_ids, at):
        await asyncio.sleep(0)
        for cid in candidate_ids:
            self._store.candidates[cid].notified_at = at

    async def count_open(self, request_id):
        await asyncio.sleep(0)
        return sum(1 for c in self._store.candidates_of(request_id) if not c.responded)


class FakeAssignmentRepo(AssignmentRepository):
    def __init__(self, store: InMemoryStore):
        self._store = store

    async def save(self, assignment):
        await asyncio.sleep(0)
        if any(a.request_id == assignment.request_id for a in self._store.assignments.values()):
            raise AssertionError("unique violation: urgent_assignments.request_id")
        assignment.id = len(self._store.assignments) + 1
        self._store.assignments[assignment.id] = replace(assignment)
        return assignment

    async def get_by_request(self, request_id):
        await asyncio.sleep(0)
        for a in self._store.assignments.values():
            if a.request_id == request_id:
                return replace(a)
        return None

    async def complete(self, request_id, completed_at, rating, comment):
        await asyncio.sleep(0)
        for a in self._store.assignments.values():
            if a.request_id == request_id:
                a.completed_at = completed_at
                a.rating = rating
                a.comment = comment
                return replace(a)
        return None


class FakeRejectionRepo(RejectionRepository):
    def __init__(self, store: InMemoryStore):
        self._store = store

    async def save(self, rejection):
        rejection.id = len(self._store.rejections) + 1
        self._store.rejections.append(replace(rejection))
        return rejection

    async def get_by_request(self, request_id):
        return [r for r in self._store.rejections if r.request_id == request_id]


class FakeTrackingRepo(TrackingRepository):
    def __init__(self, store: InMemoryStore):
        self._store = store

    async def append(self, entry):
        saved = replace(entry, id=len(self._store.tracking) + 1)
        self._store.tracking.append(saved)
        return saved

    async def get_history(self, request_id):
        return [e for e in self._store.tracking if e.request_id == request_id]


class FakePricingRuleRepo(PricingRuleRepository):
    def __init__(self, store: InMemoryStore):
        self._store = store

    async def get_all(self):
        return list(self._store.rules.values())

    async def get_by_category(self, service_category):
        return self._store.rules.get(service_category.strip().lower())

    async def upsert(self, rule):
        key = rule.service_category.strip().lower()
        existing = self._store.rules.get(key)
        saved = replace(
            rule,
            id=existing.id if existing else len(self._store.rules) + 1,
            service_category=key,
        )
        self._store.rules[key] = saved
        return saved


class FakeUnitOfWork(UnitOfWork):
    def __init__(self):
        self.commits = 0
        self.rollbacks = 0

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1


# ─── Collaborators ──────────────────────────────────────────────────


class FakeDirectory(ProfessionalDirectory):
    def __init__(self):
        self.professionals: list[Professional] = []
        self.fail = False
        self.calls = 0

    async def find_eligible(self, location, radius_km, service_category):
        self.calls += 1
        if self.fail:
            raise ConnectionError("directory unavailable")
        return list(self.professionals)


class FakeNotifier(NotifierPort):
    def __init__(self):
        self.sent: list[tuple[int, NotificationKind, dict]] = []
        self.failing_recipients: set[int] = set()

    async def notify(self, recipient_id, kind, payload):
        if recipient_id in self.failing_recipients:
            raise ConnectionError("push gateway down")
        self.sent.append((recipient_id, kind, payload))

    def recipients(self, kind: NotificationKind) -> list[int]:
        return [r for r, k, _ in self.sent if k == kind]


class FakeSettlement(SettlementPort):
    def __init__(self):
        self.events: list[SettlementEvent] = []
        self.fail = False

    async def settle(self, event):
        if self.fail:
            raise ConnectionError("payments down")
        self.events.append(event)


# ─── Wiring ─────────────────────────────────────────────────────────


@dataclass
class Harness:
    store: InMemoryStore
    clock: FakeClock
    directory: FakeDirectory
    notifier: FakeNotifier
    settlement: FakeSettlement
    uow: FakeUnitOfWork
    requests: FakeUrgentRequestRepo
    candidates: FakeCandidateRepo
    tracker: LifecycleTracker
    pricing: PricingService
    dispatcher: DispatchRequestUseCase
    redispatch: RedispatchUseCase
    coordinator: AssignmentCoordinator
    create: CreateUrgentRequestUseCase
    status: GetRequestStatusUseCase
    nearby: ListNearbyRequestsUseCase

    def add_professional(
        self,
        pro_id: int,
        location: GeoPoint | None,
        category: str = "plumber",
        is_available: bool = True,
        rating: float = 4.0,
    ) -> Professional:
        pro = Professional(
            id=pro_id,
            name=f"Pro {pro_id}",
            category=category,
            location=location,
            is_available=is_available,
            rating=rating,
        )
        self.directory.professionals.append(pro)
        return pro

    async def create_request(
        self,
        client_id: int = 1,
        location: GeoPoint = BUENOS_AIRES,
        radius_km: float = 5.0,
        category: str = "plumber",
        description: str = "Burst pipe in the kitchen",
    ):
        return await self.create.execute(
            client_id=client_id,
            description=description,
            location=location,
            radius_km=radius_km,
            service_category=category,
        )

    def request(self, request_id: int) -> UrgentRequest:
        return self.store.requests[request_id]

    def pool(self, request_id: int) -> set[int]:
        return {c.professional_id for c in self.store.candidates_of(request_id)}


def build_harness(
    max_rounds: int = 3,
    expansion_factor: float = 1.5,
    min_radius_km: float = 1.0,
    max_radius_km: float = 50.0,
    window_seconds: float = 300.0,
    max_candidates: int | None = 10,
    max_requests_per_hour: int = 5,
    baseline_cost: float = 100.0,
    default_rule: PricingRule | None = PricingRule(None, "general", 1.5, 0.0),
) -> Harness:
    store = InMemoryStore()
    clock = FakeClock()
    directory = FakeDirectory()
    notifier = FakeNotifier()
    settlement = FakeSettlement()
    uow = FakeUnitOfWork()
    requests = FakeUrgentRequestRepo(store)
    candidates = FakeCandidateRepo(store)
    tracker = LifecycleTracker(FakeTrackingRepo(store), clock=clock)

    pricing = PricingService(
        FakePricingRuleRepo(store),
        baseline_cost=baseline_cost,
        default_rule=default_rule,
    )
    dispatcher = DispatchRequestUseCase(
        finder=CandidateFinder(directory, min_radius_km, max_radius_km, max_candidates),
        candidate_repo=candidates,
        notifier=notifier,
        uow=uow,
        clock=clock,
    )
    redispatch = RedispatchUseCase(
        request_repo=requests,
        candidate_repo=candidates,
        dispatcher=dispatcher,
        tracker=tracker,
        notifier=notifier,
        uow=uow,
        max_rounds=max_rounds,
        expansion_factor=expansion_factor,
        max_radius_km=max_radius_km,
        window_seconds=window_seconds,
        clock=clock,
    )
    assignment_repo = FakeAssignmentRepo(store)
    coordinator = AssignmentCoordinator(
        request_repo=requests,
        candidate_repo=candidates,
        assignment_repo=assignment_repo,
        rejection_repo=FakeRejectionRepo(store),
        tracker=tracker,
        notifier=notifier,
        settlement=settlement,
        uow=uow,
        redispatch=redispatch,
        clock=clock,
    )
    create = CreateUrgentRequestUseCase(
        request_repo=requests,
        pricing=pricing,
        dispatcher=dispatcher,
        redispatch=redispatch,
        tracker=tracker,
        uow=uow,
        min_radius_km=min_radius_km,
        max_radius_km=max_radius_km,
        max_requests_per_hour=max_requests_per_hour,
        clock=clock,
    )
    return Harness(
        store=store,
        clock=clock,
        directory=directory,
        notifier=notifier,
        settlement=settlement,
        uow=uow,
        requests=requests,
        candidates=candidates,
        tracker=tracker,
        pricing=pricing,
        dispatcher=dispatcher,
        redispatch=redispatch,
        coordinator=coordinator,
        create=create,
        status=GetRequestStatusUseCase(requests, candidates, assignment_repo, tracker),
        nearby=ListNearbyRequestsUseCase(requests, candidates, max_radius_km),
    )

