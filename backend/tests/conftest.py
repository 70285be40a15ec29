from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from csvsearch.container import AppContainer, get_container
from csvsearch.core.services.ingest_service import IngestService
from csvsearch.core.services.query_service import QueryService
from csvsearch.db.config import get_settings
from csvsearch.main import app
from csvsearch.models.store.inmemory_store import InMemoryRowStore


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def memory_store() -> InMemoryRowStore:
    return InMemoryRowStore()


@pytest.fixture
def container(memory_store: InMemoryRowStore) -> AppContainer:
    return AppContainer(
        store=memory_store,
        ingest_service=IngestService(memory_store, batch_size=2, chunk_size=16),
        query_service=QueryService(memory_store),
    )


@pytest.fixture
def client(container: AppContainer):
    """TestClient without lifespan, so no database is touched."""
    app.dependency_overrides[get_container] = lambda: container
    yield TestClient(app)
    app.dependency_overrides.clear()
