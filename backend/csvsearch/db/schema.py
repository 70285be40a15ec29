# backend/csvsearch/db/schema.py
from __future__ import annotations
import logging
import psycopg
from psycopg import sql

logger = logging.getLogger("csvsearch.db")

_CREATE_TABLE = """
    CREATE TABLE IF NOT EXISTS {table} (
        id BIGSERIAL PRIMARY KEY,
        data JSONB NOT NULL,
        ts tsvector
    );
"""
_CREATE_INDEX = "CREATE INDEX IF NOT EXISTS {index} ON {table} USING GIN (ts);"


def index_name(table: str) -> str:
    return f"idx_{table}_gin"


def ensure_schema(conn: psycopg.Connection, table: str = "csv_rows") -> None:
    """Create the rows table and its full-text index. Safe to call repeatedly."""
    with conn.transaction():
        with conn.cursor() as cur:
            cur.execute(sql.SQL(_CREATE_TABLE).format(table=sql.Identifier(table)))
            cur.execute(sql.SQL(_CREATE_INDEX).format(
                index=sql.Identifier(index_name(table)),
                table=sql.Identifier(table),
            ))
    logger.debug("Schema ensured for table %s", table)
