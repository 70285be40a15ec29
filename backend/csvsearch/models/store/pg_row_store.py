# backend/csvsearch/models/store/pg_row_store.py

from __future__ import annotations
from typing import Callable, List, Sequence, Tuple
import json, logging, threading
import psycopg
from psycopg import sql
from psycopg_pool import ConnectionPool

from csvsearch.core.entities import Row
from csvsearch.core.errors import InsertError
from csvsearch.core.ports.store import IRowStore
from csvsearch.db.schema import ensure_schema
from csvsearch.db.session import DatabasePool

logger = logging.getLogger("csvsearch.store.pg")

# searchable text is derived in the same statement as the insert
_INSERT = """
    INSERT INTO {table} (data, ts)
    SELECT elem::jsonb, to_tsvector('simple', elem)
    FROM unnest(%s::text[]) AS elem
"""
_MATCH = "WHERE ts @@ plainto_tsquery('simple', %s)"


class PgRowStore(IRowStore):
    """Rows as JSONB documents with a GIN-indexed tsvector column."""

    def __init__(self, pool: Callable[[], ConnectionPool] = DatabasePool.get, table: str = "csv_rows"):
        self._pool = pool
        self.table = table
        self._schema_ready = False
        self._schema_lock = threading.Lock()

    def ensure_schema(self) -> None:
        if self._schema_ready:
            return
        with self._schema_lock:
            if self._schema_ready:
                return
            with self._pool().connection() as conn:
                ensure_schema(conn, self.table)
            self._schema_ready = True
            logger.info("✅ Schema ready for table '%s'", self.table)

    def insert_batch(self, documents: Sequence[str]) -> int:
        if not documents:
            return 0
        stmt = sql.SQL(_INSERT).format(table=sql.Identifier(self.table))
        try:
            self.ensure_schema()
            with self._pool().connection() as conn:
                with conn.transaction():
                    with conn.cursor() as cur:
                        cur.execute(stmt, (list(documents),))
                        inserted = cur.rowcount
        except psycopg.Error as e:
            # transaction() has already rolled back
            raise InsertError(f"Insert of {len(documents)} rows failed: {e}", original=e) from e
        return inserted if inserted is not None and inserted >= 0 else len(documents)

    def search(self, query: str, limit: int, offset: int) -> Tuple[int, List[Row]]:
        self.ensure_schema()
        where = sql.SQL(_MATCH) if query else sql.SQL("")
        params: list = [query] if query else []
        table = sql.Identifier(self.table)

        count_sql = sql.SQL("SELECT COUNT(*) FROM {table} {where}").format(table=table, where=where)
        page_sql = sql.SQL(
            "SELECT id, data FROM {table} {where} ORDER BY id LIMIT %s OFFSET %s"
        ).format(table=table, where=where)

        with self._pool().connection() as conn:
            with conn.cursor() as cur:
                cur.execute(count_sql, params)
                total = int(cur.fetchone()[0])
                # past the last row; also keeps OFFSET within bigint for huge pages
                if offset >= total:
                    return total, []
                cur.execute(page_sql, [*params, limit, offset])
                records = cur.fetchall()

        rows = [Row(id=int(rid), data=json.loads(data) if isinstance(data, str) else data)
                for rid, data in records]
        return total, rows
