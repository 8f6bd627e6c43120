"""Postgres-backed storage for ranked trend payloads."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import psycopg
from psycopg.types.json import Jsonb


class PostgresTrendStore:
    def __init__(self, pg_dsn: str):
        self.pg_dsn = pg_dsn

    def store_snapshot(self, payload: Dict[str, Any], *, kind: str = "user", user_id: Optional[str] = None) -> int:
        ranked = payload.get("rankedTrends") or []
        top_score = 0.0
        if ranked:
            top_score = float((ranked[0].get("score") or {}).get("overall") or 0.0)
        with psycopg.connect(self.pg_dsn, autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO trend_snapshots (user_id, kind, trend_count, top_score, payload)
                    VALUES (%s, %s, %s, %s, %s)
                    RETURNING id
                    """,
                    (user_id, kind, len(ranked), top_score, Jsonb(payload)),
                )
                row = cur.fetchone()
        return int(row[0])

    def recent_snapshots(self, *, limit: int = 10, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        where = ""
        params: List[Any] = []
        if user_id is not None:
            where = "WHERE user_id = %s"
            params.append(user_id)
        params.append(int(limit))
        with psycopg.connect(self.pg_dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    SELECT id, snapshot_date, user_id, kind, trend_count, top_score, payload, created_at
                    FROM trend_snapshots
                    {where}
                    ORDER BY created_at DESC, id DESC
                    LIMIT %s
                    """,
                    params,
                )
                rows = cur.fetchall()
        out = []
        for (sid, snapshot_date, uid, kind, count, top_score, payload, created_at) in rows:
            out.append(
                {
                    "id": int(sid),
                    "date": snapshot_date.isoformat() if snapshot_date else None,
                    "user_id": uid,
                    "kind": kind,
                    "trend_count": int(count or 0),
                    "top_score": float(top_score or 0.0),
                    "payload": payload,
                    "created_at": created_at.isoformat() if created_at else None,
                }
            )
        return out
