from __future__ import annotations

import structlog

from .connection import DatabaseConnection, DBConfig

logger = structlog.get_logger(__name__)

KV_STORE_DDL = """
CREATE TABLE IF NOT EXISTS kv_store (
    store_key VARCHAR(191) NOT NULL PRIMARY KEY,
    blob_value LONGTEXT NOT NULL,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP
) CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci
"""


def _execute(conn, statement: str) -> None:
    try:
        cur = conn.cursor()
        cur.execute(statement)
        conn.commit()
    finally:
        conn.close()


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    _execute(
        DatabaseConnection(target).connect(with_database=False),
        f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;",
    )


def apply_schema(db_config: dict) -> None:
    """Create the database and the kv_store table (idempotent)."""
    target = DBConfig.from_dict(db_config)
    ensure_database_exists(db_config)
    _execute(DatabaseConnection(target).connect(), KV_STORE_DDL)
    logger.info("store_schema_ready", database=target.database, host=target.host)
