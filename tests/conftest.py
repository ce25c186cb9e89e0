"""Shared pytest fixtures for awxclient tests."""

from __future__ import annotations

import pytest

from awxclient.models import BuildContext
from tests.helpers import make_context
from tests.mocks import FakeClock, MemoryMarkerStore


@pytest.fixture
def context() -> BuildContext:
    return make_context()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def markers() -> MemoryMarkerStore:
    return MemoryMarkerStore()

