"""Pytest configuration and shared fixtures."""

import pytest

from tests.fakes import Harness, build_harness


@pytest.fixture
def harness() -> Harness:
    return build_harness()


@pytest.fixture
def make_harness():
    return build_harness
