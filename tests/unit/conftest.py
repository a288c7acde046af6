"""Pytest unit test fixtures."""

import pytest

from inventory_assistant.inventory.sqlite import SQLiteInventoryRepository
from inventory_assistant.memory.store import InMemorySessionStore
from inventory_assistant.seed import seed_items


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def session_store(clock):
    return InMemorySessionStore(ttl_seconds=7200, max_history=10, clock=clock)


@pytest.fixture()
def inventory_repository(tmp_path, inventory_records):
    repository = SQLiteInventoryRepository(tmp_path / "inventory.db")
    seed_items(repository, inventory_records)
    return repository
