"""
db/connection.py
----------------
PostgreSQL connection pool shared by all repositories.

Repositories borrow connections through `transaction()`, which commits on
success, rolls back on any error and always hands the connection back.
"""

from contextlib import contextmanager
from typing import Iterator

import psycopg2
from psycopg2 import pool

from config import DATABASE_URL, DB_POOL_MAX, DB_POOL_MIN
from utils.logger import get_logger

logger = get_logger(__name__)

_pool: pool.SimpleConnectionPool | None = None


def init_pool(min_conn: int = DB_POOL_MIN, max_conn: int = DB_POOL_MAX, dsn: str = DATABASE_URL) -> None:
    """
    Open the connection pool. A second call is a no-op.

    Raises:
        psycopg2.OperationalError: If the database is unreachable.
    """
    global _pool
    if _pool is not None:
        return
    try:
        _pool = pool.SimpleConnectionPool(min_conn, max_conn, dsn)
        logger.info(f"Database pool ready ({min_conn}-{max_conn} connections).")
    except psycopg2.OperationalError as e:
        logger.error(f"Failed to initialize database pool: {e}")
        raise


def get_connection():
    """
    Borrow a raw connection. Prefer `transaction()`.

    Raises:
        RuntimeError: If the pool has not been initialized.
    """
    if _pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")
    return _pool.getconn()


def release_connection(conn) -> None:
    if _pool is not None:
        _pool.putconn(conn)


@contextmanager
def transaction() -> Iterator:
    """
    Yield a cursor inside a transaction.

    Usage:
        with transaction() as cur:
            cur.execute(...)
    """
    conn = get_connection()
    try:
        with conn.cursor() as cur:
            yield cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        release_connection(conn)


def close_pool() -> None:
    global _pool
    if _pool is not None:
        _pool.closeall()
        _pool = None
        logger.info("Database connection pool closed.")
