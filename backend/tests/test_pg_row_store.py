from __future__ import annotations

import json

import psycopg
import pytest

from csvsearch.core.errors import InsertError
from csvsearch.core.services.query_service import QueryService
from csvsearch.db.schema import ensure_schema
from csvsearch.models.store.pg_row_store import PgRowStore

from _support import FakeConnection, FakePool


def _store(pool: FakePool) -> PgRowStore:
    return PgRowStore(pool=lambda: pool, table="csv_rows")


def _ddl(pool: FakePool) -> list:
    return [text for text, _ in pool.statements if text.lstrip().startswith("CREATE")]


def test_schema_bootstrap_is_idempotent() -> None:
    pool = FakePool()
    conn = FakeConnection(pool)

    ensure_schema(conn, "csv_rows")
    ensure_schema(conn, "csv_rows")

    ddl = _ddl(pool)
    assert len(ddl) == 4
    assert all("IF NOT EXISTS" in text for text in ddl)
    assert sum("USING GIN (ts)" in text for text in ddl) == 2
    assert '"idx_csv_rows_gin"' in ddl[1]


def test_store_bootstraps_schema_once_per_process() -> None:
    pool = FakePool()
    store = _store(pool)

    store.insert_batch([json.dumps({"a": "1"})])
    store.insert_batch([json.dumps({"a": "2"})])
    store.search("", limit=10, offset=0)

    assert len(_ddl(pool)) == 2


def test_insert_batch_is_one_statement_in_one_transaction() -> None:
    pool = FakePool()
    store = _store(pool)
    store.ensure_schema()
    pool.statements.clear()
    commits_before = pool.commits
    docs = [json.dumps({"a": str(i)}) for i in range(5)]

    inserted = store.insert_batch(docs)

    assert inserted == 5
    assert len(pool.statements) == 1
    text, params = pool.statements[0]
    assert "unnest(%s::text[])" in text
    assert "to_tsvector('simple', elem)" in text
    assert params == (docs,)
    assert pool.commits == commits_before + 1
    assert pool.acquired == pool.released


def test_insert_failure_rolls_back_and_raises_insert_error() -> None:
    failure = psycopg.Error("invalid input syntax for type json")
    pool = FakePool(fail_with=failure)
    store = _store(pool)

    with pytest.raises(InsertError) as excinfo:
        store.insert_batch(["{not json"])

    assert excinfo.value.original is failure
    assert pool.rollbacks == 1
    assert pool.acquired == pool.released


def test_search_with_term_uses_text_search_predicate() -> None:
    pool = FakePool()
    pool.count_result = 7
    pool.page_result = [(3, {"a": "x"}), (4, '{"a": "y"}')]
    store = _store(pool)
    store.ensure_schema()
    pool.statements.clear()

    total, rows = store.search("hello world", limit=2, offset=4)

    (count_sql, count_params), (page_sql, page_params) = pool.statements
    assert "plainto_tsquery('simple', %s)" in count_sql
    assert count_params == ["hello world"]
    assert "ORDER BY id LIMIT %s OFFSET %s" in page_sql
    assert page_params == ["hello world", 2, 4]
    assert total == 7
    assert [(r.id, r.data) for r in rows] == [(3, {"a": "x"}), (4, {"a": "y"})]


def test_search_without_term_has_no_predicate() -> None:
    pool = FakePool()
    pool.count_result = 5
    store = _store(pool)
    store.ensure_schema()
    pool.statements.clear()

    store.search("", limit=50, offset=0)

    (count_sql, count_params), (page_sql, page_params) = pool.statements
    assert "WHERE" not in count_sql and "WHERE" not in page_sql
    assert count_params == []
    assert page_params == [50, 0]


@pytest.mark.parametrize("page", [3, 10**17])
def test_page_past_the_end_skips_the_page_query(page: int) -> None:
    pool = FakePool()
    pool.count_result = 12
    store = _store(pool)
    store.ensure_schema()
    pool.statements.clear()

    result = QueryService(store).search(q="", page=page, page_size=500)

    assert [text for text, _ in pool.statements if "OFFSET" in text] == []
    assert len(pool.statements) == 1
    assert result.total == 12
    assert result.rows == []
    assert result.page == page
