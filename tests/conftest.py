"""Shared fixtures: in-memory database, store, clock and notifier double."""
from unittest.mock import MagicMock

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from market_pulse.db import Store, User
from market_pulse.services.notifier import Notifier
from tests.fakes import FakeClock


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine) -> Store:
    return Store(engine)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def notifier() -> MagicMock:
    return MagicMock(spec=Notifier)


@pytest.fixture
def verified_user(store: Store) -> User:
    return store.insert(User(email="trader@example.com", is_verified=True))


@pytest.fixture
def unverified_user(store: Store) -> User:
    return store.insert(User(email="newbie@example.com", is_verified=False))
