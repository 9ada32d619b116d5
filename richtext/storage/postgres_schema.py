"""Postgres schema for the link metadata cache.

Creation is idempotent (CREATE IF NOT EXISTS). The table name is a
parameter so several caches (or test runs) can share one database.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import psycopg
from psycopg import sql


logger = logging.getLogger(__name__)

CACHE_TABLE = "link_metadata_cache"


def schema_statements(table: str = CACHE_TABLE) -> List[sql.Composed]:
    ident = sql.Identifier(table)
    return [
        sql.SQL(
            """
            CREATE TABLE IF NOT EXISTS {} (
              cache_key TEXT PRIMARY KEY,
              record JSONB NOT NULL,
              expires_at TIMESTAMPTZ,
              created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
              updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
            )
            """
        ).format(ident),
        sql.SQL("CREATE INDEX IF NOT EXISTS {} ON {} (expires_at)").format(
            sql.Identifier(f"idx_{table}_expires_at"), ident
        ),
    ]


def ensure_postgres_schema(pg_dsn: str, *, table: Optional[str] = None) -> None:
    name = table or CACHE_TABLE
    with psycopg.connect(pg_dsn, autocommit=True) as conn:
        with conn.cursor() as cur:
            for stmt in schema_statements(name):
                cur.execute(stmt)
    logger.debug("cache table %s ready", name)
