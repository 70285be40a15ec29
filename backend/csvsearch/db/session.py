# backend/csvsearch/db/session.py
from __future__ import annotations
import threading
import logging
from psycopg_pool import ConnectionPool
from csvsearch.db.config import get_settings

logger = logging.getLogger("csvsearch.db")


class DatabasePool:
    """Process-wide psycopg3 connection pool, created once on first access."""
    pool: ConnectionPool | None = None
    _lock = threading.Lock()

    @classmethod
    def get(cls) -> ConnectionPool:
        if cls.pool is not None:
            return cls.pool
        with cls._lock:
            if cls.pool is None:
                settings = get_settings()
                cls.pool = ConnectionPool(
                    conninfo=settings.conninfo,
                    min_size=1,
                    max_size=settings.db_pool_max_size,
                    timeout=settings.db_pool_timeout,
                    max_idle=settings.db_pool_max_idle,
                    open=True,
                )
                logger.info("✅ Database connection pool initialized (max_size=%d).", settings.db_pool_max_size)
        return cls.pool

    @classmethod
    def close(cls):
        with cls._lock:
            if cls.pool:
                cls.pool.close()
                cls.pool = None
                logger.info("🧹 Database pool closed.")


def ping_db() -> tuple[bool, str]:
    """Check DB connectivity."""
    try:
        with DatabasePool.get().connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        settings = get_settings()
        return True, f"Database connection successful: {settings.postgres_host}:{settings.postgres_port}/{settings.postgres_db}"
    except Exception as e:
        return False, str(e)
