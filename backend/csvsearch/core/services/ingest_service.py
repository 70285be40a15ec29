from __future__ import annotations

import json
import time
import logging
from enum import Enum
from typing import BinaryIO

from csvsearch.core.csv_stream import CsvRowStream, DEFAULT_CHUNK_SIZE
from csvsearch.core.entities import IngestResult
from csvsearch.core.errors import CsvSearchError
from csvsearch.core.ports.store import IRowStore
from csvsearch.core.services.batch_writer import BatchWriter

log = logging.getLogger("csvsearch.ingest")

DEFAULT_BATCH_SIZE = 5000


class IngestState(str, Enum):
    RUNNING = "running"    # parser producing, rows appended
    FLUSHING = "flushing"  # parser paused, one flush in flight
    DONE = "done"
    FAILED = "failed"


class IngestService:
    """
    Streams an uploaded CSV into the row store.

    Backpressure: when the batch fills, the row stream is paused (no more source
    reads) until that batch is committed. Batches are flushed one at a time in fill
    order, so a failure stops progress at a known batch boundary. Rows committed by
    earlier batches stay committed; nothing is retried.
    """

    def __init__(self, store: IRowStore, batch_size: int = DEFAULT_BATCH_SIZE,
                 chunk_size: int = DEFAULT_CHUNK_SIZE):
        if batch_size <= 0:
            raise ValueError(f"Invalid batch_size: {batch_size}")
        self.store = store
        self.batch_size = batch_size
        self.chunk_size = chunk_size

    def ingest(self, source: BinaryIO, name: str = "<upload>") -> IngestResult:
        start_time = time.time()
        rows = CsvRowStream(source, chunk_size=self.chunk_size)
        writer = BatchWriter(self.store, capacity=self.batch_size)
        state = IngestState.RUNNING

        try:
            for row in rows:
                writer.append(json.dumps(row, ensure_ascii=False))
                if writer.is_full:
                    state = self._transition(state, IngestState.FLUSHING)
                    rows.pause()
                    writer.flush()
                    rows.resume()
                    state = self._transition(state, IngestState.RUNNING)

            state = self._transition(state, IngestState.FLUSHING)
            writer.flush()
            state = self._transition(state, IngestState.DONE)

        except CsvSearchError as e:
            state = self._transition(state, IngestState.FAILED)
            log.error(
                "❌ Ingest failed | file=%s | committed=%d | pending_discarded=%d | %s: %s",
                name, writer.committed, writer.pending, type(e).__name__, e.message,
            )
            raise
        finally:
            # stop pulling the source at once, whatever happened
            rows.close()

        duration = round(time.time() - start_time, 3)
        log.info(
            "📥 Ingest summary | file=%s | rows=%d | batches=%d | bytes=%d | took=%.3fs",
            name, writer.committed, writer.flushes, rows.bytes_read, duration,
        )
        return IngestResult(rows=writer.committed, batches=writer.flushes, duration_sec=duration)

    @staticmethod
    def _transition(current: IngestState, new: IngestState) -> IngestState:
        log.debug("Ingest state %s -> %s", current.value, new.value)
        return new
