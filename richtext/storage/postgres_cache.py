"""Postgres-backed cache store.

Plain psycopg + SQL, one short-lived connection per call. Expired rows are
invisible to `read` and removed by `purge_expired`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import psycopg
from psycopg import sql
from psycopg.types.json import Jsonb

from richtext.cache.stores import BaseCacheStore
from richtext.storage.postgres_schema import CACHE_TABLE


logger = logging.getLogger(__name__)


@dataclass
class PostgresCacheStore(BaseCacheStore):
    pg_dsn: str
    table: str = CACHE_TABLE
    name: str = "postgres"

    def _connect(self, **kwargs):
        return psycopg.connect(self.pg_dsn, **kwargs)

    def _sql(self, template: str) -> sql.Composed:
        return sql.SQL(template).format(table=sql.Identifier(self.table))

    def read(self, key: str) -> Optional[Any]:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    self._sql(
                        """
                        SELECT record
                        FROM {table}
                        WHERE cache_key = %s
                          AND (expires_at IS NULL OR expires_at > now())
                        """
                    ),
                    (key,),
                )
                row = cur.fetchone()
        return row[0] if row else None

    def write(self, key: str, value: Any, ttl: Optional[float]) -> None:
        with self._connect(autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    self._sql(
                        """
                        INSERT INTO {table} (cache_key, record, expires_at)
                        VALUES (
                          %(key)s, %(record)s,
                          CASE WHEN %(ttl)s::double precision IS NULL THEN NULL
                               ELSE now() + make_interval(secs => %(ttl)s::double precision) END
                        )
                        ON CONFLICT (cache_key) DO UPDATE SET
                          record = EXCLUDED.record,
                          expires_at = EXCLUDED.expires_at,
                          updated_at = now()
                        """
                    ),
                    {"key": key, "record": Jsonb(value), "ttl": ttl},
                )

    def delete(self, key: str) -> bool:
        with self._connect(autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(self._sql("DELETE FROM {table} WHERE cache_key = %s"), (key,))
                return cur.rowcount > 0

    def purge_expired(self) -> int:
        with self._connect(autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(self._sql("DELETE FROM {table} WHERE expires_at IS NOT NULL AND expires_at <= now()"))
                n = cur.rowcount
        if n:
            logger.info("purged %d expired rows from %s", n, self.table)
        return n
