# tests/unit/conftest.py
import pytest

from src.wg_engine.engine.engine import WageringEngine
from tests.unit.fakes import FakeSession, FakeStore, build_engine


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def db(store: FakeStore) -> FakeSession:
    return FakeSession(store)


@pytest.fixture
def engine(store: FakeStore) -> WageringEngine:
    return build_engine(store)
