"""Tests for RedispatchSweeper — one sweep over timed-out rounds."""

from __future__ import annotations

from contextlib import asynccontextmanager

import pytest

from app.application.use_cases.retry_policy import RedispatchAction
from app.infrastructure.scheduler.redispatch_sweeper import RedispatchSweeper
from tests.fakes import BUENOS_AIRES, km_north


@asynccontextmanager
async def fake_session():
    yield None


def make_sweeper(harness, build_redispatch=None):
    return RedispatchSweeper(
        session_factory=fake_session,
        build_redispatch=build_redispatch or (lambda session: harness.redispatch),
        window_seconds=300,
        interval_seconds=60,
        request_repo_factory=lambda session: harness.requests,
        clock=harness.clock,
    )


@pytest.mark.asyncio
async def test_sweep_redispatches_only_timed_out_requests(harness):
    harness.add_professional(10, km_north(BUENOS_AIRES, 1.0))
    old = await harness.create_request(client_id=1)
    harness.clock.advance(200)
    fresh = await harness.create_request(client_id=2)
    harness.clock.advance(100)

    results = await make_sweeper(harness).run_once()

    assert [(r.request_id, r.action) for r in results] == [
        (old.request.id, RedispatchAction.REDISPATCHED)
    ]
    assert harness.request(old.request.id).dispatch_round == 2
    assert harness.request(fresh.request.id).dispatch_round == 1


@pytest.mark.asyncio
async def test_sweep_with_nothing_due(harness):
    harness.add_professional(10, km_north(BUENOS_AIRES, 1.0))
    await harness.create_request()

    assert await make_sweeper(harness).run_once() == []


@pytest.mark.asyncio
async def test_one_failing_request_does_not_stop_the_sweep(harness):
    harness.add_professional(10, km_north(BUENOS_AIRES, 1.0))
    first = await harness.create_request(client_id=1)
    second = await harness.create_request(client_id=2)
    harness.clock.advance(300)

    class Flaky:
        async def on_window_elapsed(self, request_id):
            if request_id == first.request.id:
                raise RuntimeError("db hiccup")
            return await harness.redispatch.on_window_elapsed(request_id)

    results = await make_sweeper(harness, lambda session: Flaky()).run_once()

    assert [r.request_id for r in results] == [second.request.id]
    assert harness.request(first.request.id).dispatch_round == 1
    assert harness.request(second.request.id).dispatch_round == 2
