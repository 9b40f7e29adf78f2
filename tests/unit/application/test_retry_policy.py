"""Tests for RedispatchUseCase — pool exhaustion and window triggers."""

from __future__ import annotations

import asyncio

import pytest

from app.application.use_cases.retry_policy import RedispatchAction
from app.domain.policies.lifecycle import replay_status
from app.domain.value_objects.enums import NotificationKind, Outcome, RequestStatus
from tests.fakes import BUENOS_AIRES, km_north


@pytest.mark.asyncio
async def test_sole_candidate_rejects_then_radius_expands_without_rejecter(harness):
    harness.add_professional(10, km_north(BUENOS_AIRES, 3.0))
    harness.add_professional(20, km_north(BUENOS_AIRES, 6.0))
    created = await harness.create_request(radius_km=5.0)
    request_id = created.request.id
    assert harness.pool(request_id) == {10}

    result = await harness.coordinator.reject(request_id, 10, "Too far")

    assert result.redispatch.action == RedispatchAction.REDISPATCHED
    assert result.redispatch.dispatch_round == 2
    assert result.redispatch.radius_km == 7.5
    assert result.redispatch.new_candidates == 1
    assert harness.pool(request_id) == {10, 20}
    candidate_20 = next(c for c in harness.store.candidates_of(request_id) if c.professional_id == 20)
    assert candidate_20.dispatch_round == 2
    assert candidate_20.notified_at is not None

    # the rejecter is not alerted a second time
    assert harness.notifier.recipients(NotificationKind.REQUEST_NEARBY) == [10, 20]

    accepted = await harness.coordinator.accept(request_id, 20)
    assert accepted.outcome == Outcome.ACCEPTED


@pytest.mark.asyncio
async def test_all_rounds_exhausted_fails_to_match(make_harness):
    h = make_harness(max_rounds=2)
    h.add_professional(10, km_north(BUENOS_AIRES, 1.0))
    created = await h.create_request(client_id=4)
    request_id = created.request.id

    result = await h.coordinator.reject(request_id, 10)

    assert result.redispatch.action == RedispatchAction.FAILED_TO_MATCH
    request = h.request(request_id)
    assert request.match_failed is True
    assert request.status == RequestStatus.PENDING
    assert h.notifier.recipients(NotificationKind.NO_MATCH) == [4]
    assert replay_status(await h.tracker.history(request_id)) == RequestStatus.PENDING


@pytest.mark.asyncio
async def test_window_trigger_waits_for_the_window(harness):
    harness.add_professional(10, km_north(BUENOS_AIRES, 1.0))
    created = await harness.create_request()
    request_id = created.request.id

    harness.clock.advance(299)
    early = await harness.redispatch.on_window_elapsed(request_id)
    assert early.action == RedispatchAction.SKIPPED

    harness.add_professional(20, km_north(BUENOS_AIRES, 6.0))
    harness.clock.advance(1)
    due = await harness.redispatch.on_window_elapsed(request_id)

    assert due.action == RedispatchAction.REDISPATCHED
    assert harness.pool(request_id) == {10, 20}
    # silent candidates from earlier rounds may still accept
    accepted = await harness.coordinator.accept(request_id, 10)
    assert accepted.outcome == Outcome.ACCEPTED


@pytest.mark.asyncio
async def test_pool_exhausted_trigger_ignored_while_candidates_open(harness):
    harness.add_professional(10, km_north(BUENOS_AIRES, 1.0))
    created = await harness.create_request()

    result = await harness.redispatch.on_pool_exhausted(created.request.id)

    assert result.action == RedispatchAction.SKIPPED
    assert harness.request(created.request.id).dispatch_round == 1


@pytest.mark.asyncio
async def test_concurrent_triggers_start_one_round(harness):
    harness.add_professional(10, km_north(BUENOS_AIRES, 1.0))
    created = await harness.create_request()
    request_id = created.request.id
    harness.clock.advance(300)

    results = await asyncio.gather(
        harness.redispatch.on_window_elapsed(request_id),
        harness.redispatch.on_window_elapsed(request_id),
        harness.redispatch.on_window_elapsed(request_id),
    )

    actions = [r.action for r in results]
    assert actions.count(RedispatchAction.REDISPATCHED) == 1
    assert harness.request(request_id).dispatch_round == 2
    notes = [e.note for e in await harness.tracker.history(request_id)]
    assert sum(1 for n in notes if n and n.startswith("Re-dispatch")) == 1


@pytest.mark.asyncio
async def test_window_after_last_round_fails_open_pool(harness):
    harness.add_professional(10, km_north(BUENOS_AIRES, 1.0))
    created = await harness.create_request()
    request_id = created.request.id

    for _ in range(2):
        harness.clock.advance(300)
        await harness.redispatch.on_window_elapsed(request_id)
    assert harness.request(request_id).dispatch_round == 3

    harness.clock.advance(300)
    final = await harness.redispatch.on_window_elapsed(request_id)

    assert final.action == RedispatchAction.FAILED_TO_MATCH
    late = await harness.coordinator.accept(request_id, 10)
    assert late.outcome == Outcome.ALREADY_RESOLVED


@pytest.mark.asyncio
async def test_no_redispatch_for_resolved_requests(harness):
    harness.add_professional(10, km_north(BUENOS_AIRES, 1.0))
    created = await harness.create_request(client_id=1)
    await harness.coordinator.cancel(created.request.id, 1)
    harness.clock.advance(1000)

    result = await harness.redispatch.on_window_elapsed(created.request.id)

    assert result.action == RedispatchAction.SKIPPED


@pytest.mark.asyncio
async def test_expanded_radius_capped_at_max(make_harness):
    h = make_harness(max_radius_km=6.0)
    h.add_professional(10, km_north(BUENOS_AIRES, 1.0))
    created = await h.create_request(radius_km=5.0)

    result = await h.coordinator.reject(created.request.id, 10)

    assert result.redispatch.radius_km == 6.0
    assert h.request(created.request.id).radius_km == 6.0
