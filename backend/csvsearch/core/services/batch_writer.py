from __future__ import annotations

import logging
from typing import List

from csvsearch.core.errors import CsvSearchError, InsertError
from csvsearch.core.ports.store import IRowStore

log = logging.getLogger("csvsearch.ingest")


class BatchWriter:
    """
    Buffers serialized rows and writes them in bounded, all-or-nothing batches.
    One writer belongs to a single upload; it is not shared between requests.
    """

    def __init__(self, store: IRowStore, capacity: int):
        if capacity <= 0:
            raise ValueError(f"Invalid batch capacity: {capacity}")
        self.store = store
        self.capacity = capacity
        self.committed = 0
        self.flushes = 0
        self._batch: List[str] = []

    @property
    def pending(self) -> int:
        return len(self._batch)

    @property
    def is_full(self) -> bool:
        return len(self._batch) >= self.capacity

    def append(self, document: str) -> None:
        self._batch.append(document)

    def flush(self) -> int:
        """Insert the current batch in one transaction and return the running committed count."""
        if not self._batch:
            return self.committed

        size = len(self._batch)
        try:
            inserted = self.store.insert_batch(self._batch)
        except CsvSearchError:
            raise
        except Exception as e:
            raise InsertError(f"Batch insert failed: {e}", original=e) from e
        finally:
            # a failed batch is discarded, never retried
            self._batch = []

        self.committed += inserted
        self.flushes += 1
        log.info("💾 Flushed batch #%d | rows=%d | committed=%d", self.flushes, size, self.committed)
        return self.committed
