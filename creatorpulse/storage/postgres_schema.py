"""Postgres schema for ranked trend snapshots.

Schema creation is idempotent (CREATE IF NOT EXISTS) so workers can call it
on every start.
"""

from __future__ import annotations

from typing import Iterable, Optional

import psycopg


SCHEMA_STATEMENTS: list[str] = [
    """
    CREATE TABLE IF NOT EXISTS trend_snapshots (
      id BIGSERIAL PRIMARY KEY,
      snapshot_date DATE NOT NULL DEFAULT CURRENT_DATE,
      user_id TEXT,
      kind TEXT NOT NULL DEFAULT 'user', -- user|global
      trend_count INTEGER NOT NULL DEFAULT 0,
      top_score REAL NOT NULL DEFAULT 0.0,
      payload JSONB NOT NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_trend_snapshots_created ON trend_snapshots (created_at DESC);",
    "CREATE INDEX IF NOT EXISTS idx_trend_snapshots_user_date ON trend_snapshots (user_id, snapshot_date DESC);",
]


def ensure_postgres_schema(pg_dsn: str, *, statements: Optional[Iterable[str]] = None) -> None:
    stmts = list(statements) if statements is not None else SCHEMA_STATEMENTS
    with psycopg.connect(pg_dsn, autocommit=True) as conn:
        with conn.cursor() as cur:
            for s in stmts:
                cur.execute(s)
