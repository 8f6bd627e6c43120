#!/usr/bin/env python3
"""Trend detection worker.

Runs one detection cycle (or scheduled) that:
- collects candidates from the configured user sources (X, YouTube, RSS, web pages)
- optionally adds global trends (X trending topic, YouTube trending, trending sites)
- scores, filters and ranks them
- validates the ranked payload and stores it in Postgres when PG_DSN is set

Sources are read from SOURCES_FILE (JSON list of {"type", "url", "content"}).
"""

from __future__ import annotations

import json
import logging
import os
import sys
import time
from typing import Any, Dict, List, Optional

import schedule

from creatorpulse.collectors.firecrawl_client import FirecrawlClient
from creatorpulse.collectors.x_client import XClient
from creatorpulse.collectors.youtube_client import YouTubeClient
from creatorpulse.contracts.ranked_trends import build_ranked_payload, validate_ranked_trends
from creatorpulse.pipeline import TrendPipeline, validate_source
from creatorpulse.settings import Settings
from creatorpulse.storage.postgres_schema import ensure_postgres_schema
from creatorpulse.storage.postgres_trends import PostgresTrendStore


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.FileHandler("trends.log", encoding="utf-8"),
        logging.StreamHandler(sys.stdout),
    ],
)
logger = logging.getLogger("detect_trends_worker")


def load_sources(path: str) -> List[Dict[str, Any]]:
    """Read and validate the sources file; invalid entries are skipped."""
    if not path or not os.path.exists(path):
        logger.warning(f"Sources file not found: {path}")
        return []
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if isinstance(raw, dict):
        raw = raw.get("sources") or []
    out = []
    for source in raw or []:
        if not isinstance(source, dict):
            continue
        err = validate_source(source)
        if err:
            logger.warning(f"Skipping source {source}: {err}")
            continue
        out.append(source)
    return out


def build_pipeline(settings: Settings) -> TrendPipeline:
    x_client = None
    if settings.x_bearer_token:
        x_client = XClient(settings.x_bearer_token, timeout=settings.request_timeout)
    youtube_client = None
    if settings.youtube_api_key:
        youtube_client = YouTubeClient(settings.youtube_api_key, timeout=settings.request_timeout)
    firecrawl_client = None
    if settings.firecrawl_api_key:
        firecrawl_client = FirecrawlClient(settings.firecrawl_api_key)
    return TrendPipeline(
        x_client=x_client,
        youtube_client=youtube_client,
        firecrawl_client=firecrawl_client,
        policy=settings.scoring_policy(),
        youtube_region=settings.youtube_region,
    )


def run_once(settings: Optional[Settings] = None) -> Dict[str, Any]:
    settings = settings or Settings.from_env()
    note = settings.weights_note()
    if note:
        logger.warning(note)

    sources = load_sources(settings.sources_file)
    pipeline = build_pipeline(settings)
    config = settings.ranking_config()
    policy = settings.scoring_policy()

    ranked = pipeline.get_ranked_trends(sources, config, include_global=settings.include_global)
    payload = build_ranked_payload(
        ranked,
        config=config,
        policy=policy,
        include_global=settings.include_global,
        total_sources=len(sources),
    )

    errors = validate_ranked_trends(payload["rankedTrends"])
    if errors:
        for e in errors[:20]:
            logger.error(f"Ranked trend contract violation: {e}")
        print(f"[trends] contract_errors={len(errors)} stored=0")
        return payload

    stored = 0
    if settings.pg_dsn:
        ensure_postgres_schema(settings.pg_dsn)
        store = PostgresTrendStore(settings.pg_dsn)
        store.store_snapshot(payload, kind="user" if sources else "global")
        stored = 1

    top = payload["metadata"]["scoring"]["topScore"]
    print(f"[trends] sources={len(sources)} ranked={len(ranked)} top_score={top:.3f} stored={stored}")
    return payload


def run_scheduled(settings: Optional[Settings] = None) -> None:
    settings = settings or Settings.from_env()
    schedule.every(settings.schedule_minutes).minutes.do(run_once, settings)
    run_once(settings)
    while True:
        schedule.run_pending()
        time.sleep(5)


if __name__ == "__main__":
    settings = Settings.from_env()
    if settings.mode in ("scheduled", "daemon"):
        run_scheduled(settings)
    else:
        run_once(settings)
