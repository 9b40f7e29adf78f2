"""Tests for CreateUrgentRequestUseCase with in-memory fakes."""

from __future__ import annotations

import pytest

from app.application.use_cases.retry_policy import RedispatchAction
from app.domain.entities.pricing_rule import PricingRule
from app.domain.errors import InvalidRadius, MissingDescription, RateLimitExceeded, UnknownCategory
from app.domain.policies.lifecycle import replay_status
from app.domain.value_objects.enums import NotificationKind, RequestStatus
from tests.fakes import BUENOS_AIRES, km_north


@pytest.mark.asyncio
async def test_create_prices_persists_and_dispatches(harness):
    await harness.pricing.upsert_rules([PricingRule(None, "plumber", 1.8, 50.0)])
    harness.add_professional(10, km_north(BUENOS_AIRES, 3.0))
    harness.add_professional(11, km_north(BUENOS_AIRES, 8.0))

    result = await harness.create_request()

    request = result.request
    assert request.status == RequestStatus.PENDING
    assert request.price_estimate == 180.0
    assert request.dispatch_round == 1
    assert harness.pool(request.id) == {10}
    assert result.dispatch.notified == 1
    assert harness.notifier.recipients(NotificationKind.REQUEST_NEARBY) == [10]
    assert result.redispatch is None


@pytest.mark.asyncio
async def test_creation_is_tracked(harness):
    harness.add_professional(10, km_north(BUENOS_AIRES, 1.0))
    result = await harness.create_request(client_id=5)

    history = await harness.tracker.history(result.request.id)
    assert history[0].previous_status is None
    assert history[0].new_status == RequestStatus.PENDING
    assert history[0].actor_id == 5


@pytest.mark.asyncio
async def test_invalid_input_writes_nothing(harness):
    with pytest.raises(InvalidRadius):
        await harness.create_request(radius_km=0.2)
    with pytest.raises(MissingDescription):
        await harness.create_request(description="   ")
    assert harness.store.requests == {}
    assert harness.directory.calls == 0


@pytest.mark.asyncio
async def test_unknown_category_without_default(make_harness):
    h = make_harness(default_rule=None)
    with pytest.raises(UnknownCategory):
        await h.create_request(category="astrologer")
    assert h.store.requests == {}


@pytest.mark.asyncio
async def test_rate_limit_per_client(make_harness):
    h = make_harness(max_requests_per_hour=2)
    h.add_professional(10, km_north(BUENOS_AIRES, 1.0))
    await h.create_request(client_id=1)
    await h.create_request(client_id=1)

    with pytest.raises(RateLimitExceeded):
        await h.create_request(client_id=1)

    # other clients are unaffected, and the window slides
    await h.create_request(client_id=2)
    h.clock.advance(3601)
    await h.create_request(client_id=1)


@pytest.mark.asyncio
async def test_rate_limit_counts_under_client_lock(make_harness):
    h = make_harness(max_requests_per_hour=1)
    h.add_professional(10, km_north(BUENOS_AIRES, 1.0))
    await h.create_request(client_id=7)
    commits = h.uow.commits

    with pytest.raises(RateLimitExceeded):
        await h.create_request(client_id=7)

    assert h.store.client_locks == [7, 7]
    # the refused attempt releases its lock without writing
    assert h.uow.rollbacks == 1
    assert h.uow.commits == commits


@pytest.mark.asyncio
async def test_empty_pool_goes_to_retry_policy_then_fails_to_match(harness):
    result = await harness.create_request()

    assert result.redispatch.action == RedispatchAction.FAILED_TO_MATCH
    request = harness.request(result.request.id)
    assert request.status == RequestStatus.PENDING
    assert request.match_failed is True
    assert request.dispatch_round == 3
    assert harness.notifier.recipients(NotificationKind.NO_MATCH) == [1]

    history = await harness.tracker.history(request.id)
    assert replay_status(history) == RequestStatus.PENDING
    assert history[-1].note.startswith("Failed to match")


@pytest.mark.asyncio
async def test_directory_outage_keeps_request_pending(harness):
    harness.directory.fail = True
    result = await harness.create_request()

    assert result.dispatch.degraded is True
    assert result.redispatch is None
    request = harness.request(result.request.id)
    assert request.status == RequestStatus.PENDING
    assert request.match_failed is False
