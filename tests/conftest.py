from __future__ import annotations

import pytest

from azdosync.adapters.events import InMemoryEventRecorder
from azdosync.adapters.memory import InMemoryObjectStore
from tests.support.records import FakeClock, seed_connection


@pytest.fixture
def store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def connected_store(store: InMemoryObjectStore) -> InMemoryObjectStore:
    seed_connection(store)
    return store


@pytest.fixture
def recorder() -> InMemoryEventRecorder:
    return InMemoryEventRecorder()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
