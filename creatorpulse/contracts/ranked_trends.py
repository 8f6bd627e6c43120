"""Ranked trends contract.

The ranked-trends payload is what the worker stores and what a UI renders:
- `rankedTrends`: full Candidate dicts (score breakdown, metrics, tags, category)
- `trends`: the compact legacy shape (topic/explainer/link/confidence)
- `metadata`: run parameters and scoring weights

This module defines a JSON Schema for one ranked trend and builds/validates
the payload.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from jsonschema import Draft202012Validator

from creatorpulse.analytics.categorize import extract_trending_topics
from creatorpulse.ingestion.candidate_types import CATEGORIES, SOURCE_KINDS, Candidate
from creatorpulse.ranking.ranker import RankingConfig
from creatorpulse.scoring.trend_scoring import DEFAULT_POLICY, ScoringPolicy, utc_now


_UNIT = {"type": "number", "minimum": 0, "maximum": 1}
_COUNT = {"type": "integer", "minimum": 0}

RANKED_TREND_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": [
        "id",
        "title",
        "content",
        "sourceLabel",
        "sourceKind",
        "url",
        "timestamp",
        "metrics",
        "score",
        "tags",
        "category",
    ],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "title": {"type": "string"},
        "content": {"type": "string"},
        "sourceLabel": {"type": "string"},
        "sourceKind": {"enum": list(SOURCE_KINDS)},
        "url": {"type": "string"},
        "timestamp": {"type": "string", "minLength": 1},
        "metrics": {
            "type": "object",
            "properties": {
                "likes": _COUNT,
                "shares": _COUNT,
                "comments": _COUNT,
                "views": _COUNT,
                "retweets": _COUNT,
            },
            "additionalProperties": False,
        },
        "score": {
            "type": "object",
            "required": ["recency", "popularity", "engagement", "overall"],
            "properties": {
                "recency": _UNIT,
                "popularity": _UNIT,
                "engagement": _UNIT,
                "overall": _UNIT,
            },
            "additionalProperties": False,
        },
        "tags": {"type": "array", "items": {"type": "string"}, "uniqueItems": True},
        "category": {"enum": list(CATEGORIES)},
    },
    "additionalProperties": True,
}

_VALIDATOR = Draft202012Validator(RANKED_TREND_SCHEMA)


def validate_ranked_trends(items: Sequence[Dict[str, Any]]) -> List[str]:
    """Return human-readable validation errors (empty means valid)."""
    errors = []
    for i, item in enumerate(items or []):
        for e in sorted(_VALIDATOR.iter_errors(item), key=lambda x: list(x.path)):
            path = ".".join(str(p) for p in e.path) if e.path else "<root>"
            errors.append(f"[{i}] {path}: {e.message}")
    ids = [it.get("id") for it in items or [] if isinstance(it, dict)]
    if len(ids) != len(set(ids)):
        errors.append("duplicate ids in ranked trends")
    return errors


def to_legacy_trend(candidate: Candidate) -> Dict[str, Any]:
    return {
        "topic": candidate.title,
        "explainer": f"{candidate.content[:200]}... (Score: {candidate.score.overall:.3f}, Source: {candidate.source_label})",
        "link": candidate.url,
        "confidence": candidate.score.overall,
        "timestamp": candidate.timestamp,
        "category": candidate.category,
        "sources": [candidate.source_label],
    }


def build_ranked_payload(
    ranked: Sequence[Candidate],
    *,
    config: RankingConfig,
    policy: ScoringPolicy = DEFAULT_POLICY,
    now: Optional[datetime] = None,
    include_global: bool = True,
    total_sources: int = 0,
) -> Dict[str, Any]:
    now = now or utc_now()
    keywords = extract_trending_topics("\n".join(f"{c.title}\n{c.content}" for c in ranked), limit=10)
    return {
        "trends": [to_legacy_trend(c) for c in ranked],
        "rankedTrends": [c.to_dict() for c in ranked],
        "metadata": {
            "totalSources": total_sources,
            "globalIncluded": include_global,
            "rankedTrendsFound": len(ranked),
            "timeWindow": f"{config.time_window_hours:g} hours",
            "categories": list(config.categories) if config.categories else "all",
            "minScore": config.min_score,
            "maxResults": config.max_results,
            "keywords": keywords,
            "timestamp": now.isoformat(),
            "scoring": {
                "recencyWeight": policy.recency_weight,
                "popularityWeight": policy.popularity_weight,
                "engagementWeight": policy.engagement_weight,
                "topScore": ranked[0].score.overall if ranked else 0,
            },
        },
    }
