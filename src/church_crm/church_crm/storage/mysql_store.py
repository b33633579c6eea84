from __future__ import annotations

from typing import Optional

from .connection import DatabaseConnection
from .mysql_base import db_cursor, fetchone
from .store import Store


class MySQLStore(Store):
    """Blob store on a single `kv_store(store_key, blob)` table."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, key: str) -> Optional[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT blob_value FROM kv_store WHERE store_key=%s", (key,))
            r = fetchone(cur)
            if not r:
                return None
            value = r["blob_value"]
            if isinstance(value, (bytes, bytearray)):
                return value.decode("utf-8")
            return value

    def set(self, key: str, blob: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO kv_store(store_key, blob_value)
                VALUES(%s,%s)
                ON DUPLICATE KEY UPDATE blob_value=VALUES(blob_value), updated_at=CURRENT_TIMESTAMP
                """,
                (key, blob),
            )
