"""Shared fixtures: a fixed-clock CRM store and a scripted completion service."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime

import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import get_completion_service, get_store
from src.api.main import app
from src.crm.store import CrmStore
from tests.fakes import FakeCompletion

# Thursday morning; seed tasks 1-5 fall due later the same day.
NOW = datetime(2025, 12, 4, 9, 0, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def store() -> CrmStore:
    return CrmStore(clock=lambda: NOW)


@pytest.fixture
def completion() -> FakeCompletion:
    return FakeCompletion()


def _override(store: CrmStore, completion: FakeCompletion) -> None:
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_completion_service] = lambda: completion


@pytest.fixture
def client(store: CrmStore, completion: FakeCompletion) -> Iterator[TestClient]:
    """TestClient whose routes use the fixture store and fake completion."""
    _override(store, completion)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def client_no_raise(store: CrmStore, completion: FakeCompletion) -> Iterator[TestClient]:
    _override(store, completion)
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()
