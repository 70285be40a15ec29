from __future__ import annotations
import logging
import threading
from dataclasses import dataclass

from csvsearch.db.config import Settings, get_settings
from csvsearch.core.ports.store import IRowStore
from csvsearch.core.services.ingest_service import IngestService
from csvsearch.core.services.query_service import QueryService
from csvsearch.models.store.inmemory_store import InMemoryRowStore
from csvsearch.models.store.pg_row_store import PgRowStore

logger = logging.getLogger("csvsearch.container")

@dataclass
class AppContainer:
    store: IRowStore
    ingest_service: IngestService
    query_service: QueryService

def build_container(settings: Settings) -> AppContainer:
    """Wire the row store and the services from settings."""
    if settings.store_backend == "memory":
        store: IRowStore = InMemoryRowStore()
        logger.info("🔌 Using in-memory row store")
    else:
        store = PgRowStore(table=settings.csv_rows_table)
        logger.info("🔗 Using Postgres row store (table=%s)", settings.csv_rows_table)

    ingest_service = IngestService(
        store=store,
        batch_size=settings.ingest_batch_size,
        chunk_size=settings.ingest_chunk_size,
    )
    query_service = QueryService(
        store=store,
        default_page_size=settings.search_default_page_size,
        max_page_size=settings.search_max_page_size,
    )
    return AppContainer(store=store, ingest_service=ingest_service, query_service=query_service)


_container: AppContainer | None = None
_container_lock = threading.Lock()

def get_container() -> AppContainer:
    """FastAPI dependency; builds the container on first use. Raises ConfigError on bad settings."""
    global _container
    if _container is None:
        with _container_lock:
            if _container is None:
                _container = build_container(get_settings())
    return _container
