"""PostgreSQL-backed durable store."""
import psycopg2
from psycopg2.extras import RealDictCursor
from typing import Optional
from contextlib import contextmanager

from plotsync import settings
from plotsync.logging_conf import logger
from plotsync.store import DurableStore


class PostgresStore(DurableStore):
    """Stores each queue blob as one row of the offline_queue_blobs table."""

    def __init__(self, dsn: Optional[str] = None):
        self.dsn = dsn or settings.DATABASE_URL
        self._conn = None
        self._table_ready = False

    @property
    def conn(self):
        """Get or create database connection."""
        if self._conn is None or self._conn.closed:
            self._conn = psycopg2.connect(self.dsn)
            self._table_ready = False
        return self._conn

    def close(self):
        """Close database connection."""
        if self._conn and not self._conn.closed:
            self._conn.close()
            self._conn = None

    @contextmanager
    def cursor(self):
        """Context manager for cursor with auto-commit/rollback."""
        conn = self.conn
        if not self._table_ready:
            self._ensure_table(conn)
        cur = conn.cursor(cursor_factory=RealDictCursor)
        try:
            yield cur
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            cur.close()

    def _ensure_table(self, conn) -> None:
        cur = conn.cursor()
        try:
            cur.execute("""
                CREATE TABLE IF NOT EXISTS offline_queue_blobs (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                )
            """)
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            cur.close()
        self._table_ready = True
        logger.debug("offline_queue_blobs table ready")

    def read(self, key: str) -> Optional[str]:
        with self.cursor() as cur:
            cur.execute("SELECT value FROM offline_queue_blobs WHERE key = %s", (key,))
            row = cur.fetchone()
        return row["value"] if row else None

    def write(self, key: str, blob: str) -> None:
        with self.cursor() as cur:
            cur.execute("""
                INSERT INTO offline_queue_blobs (key, value, updated_at)
                VALUES (%s, %s, NOW())
                ON CONFLICT (key) DO UPDATE
                SET value = EXCLUDED.value, updated_at = NOW()
            """, (key, blob))

    def delete(self, key: str) -> None:
        with self.cursor() as cur:
            cur.execute("DELETE FROM offline_queue_blobs WHERE key = %s", (key,))
