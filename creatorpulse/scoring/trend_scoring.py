"""Trend scoring.

Each candidate gets three sub-scores in [0,1] and a weighted overall score:
- recency: exp(-age_hours / 24); future timestamps count as age 0
- popularity: log10(likes + shares + comments + retweets + views/100 + 1) / 6
- engagement: (comments + shares + retweets) / max(views, likes) * 100
- overall: 0.4 * recency + 0.4 * popularity + 0.2 * engagement

The constants live in ScoringPolicy so callers can tune them. Everything is a
pure function of the candidate and an explicit `now`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, List, Optional

from creatorpulse.ingestion.candidate_types import Candidate, TrendMetrics, TrendScore


@dataclass(frozen=True)
class ScoringPolicy:
    recency_weight: float = 0.4
    popularity_weight: float = 0.4
    engagement_weight: float = 0.2
    recency_decay_hours: float = 24.0
    # Passive views count 1/100 of an active interaction.
    view_discount: float = 100.0
    # log10(1_000_000) == 6, so ~1M weighted interactions saturate popularity.
    popularity_log_divisor: float = 6.0
    engagement_rate_scale: float = 100.0

    def validate(self) -> List[str]:
        errors = []
        for name in ("recency_weight", "popularity_weight", "engagement_weight"):
            if getattr(self, name) < 0:
                errors.append(f"{name} must be >= 0")
        for name in ("recency_decay_hours", "view_discount", "popularity_log_divisor", "engagement_rate_scale"):
            if getattr(self, name) <= 0:
                errors.append(f"{name} must be > 0")
        return errors


DEFAULT_POLICY = ScoringPolicy()


def _clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


def _count(value: Optional[int]) -> float:
    if not value or value < 0:
        return 0.0
    return float(value)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse ISO-8601 or RFC-2822 timestamps; naive values are taken as UTC."""
    if not value:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        s = str(value).strip()
        if not s:
            return None
        try:
            dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
        except ValueError:
            try:
                dt = parsedate_to_datetime(s)
            except (TypeError, ValueError, IndexError):
                return None
            if dt is None:
                return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def age_hours(timestamp: Any, now: datetime) -> float:
    """Age in hours, never negative.

    Missing or unparseable timestamps are treated as "now" (age 0) so such
    items get full recency instead of breaking the run.
    """
    dt = parse_timestamp(timestamp)
    if dt is None:
        return 0.0
    ref = now if now.tzinfo is not None else now.replace(tzinfo=timezone.utc)
    return max(0.0, (ref - dt).total_seconds() / 3600.0)


def recency_score(timestamp: Any, *, now: datetime, policy: ScoringPolicy = DEFAULT_POLICY) -> float:
    return _clamp01(math.exp(-age_hours(timestamp, now) / policy.recency_decay_hours))


def popularity_score(metrics: Optional[TrendMetrics], *, policy: ScoringPolicy = DEFAULT_POLICY) -> float:
    m = metrics or TrendMetrics()
    total = (
        _count(m.likes)
        + _count(m.shares)
        + _count(m.comments)
        + _count(m.retweets)
        + _count(m.views) / policy.view_discount
    )
    return _clamp01(math.log10(total + 1.0) / policy.popularity_log_divisor)


def engagement_score(metrics: Optional[TrendMetrics], *, policy: ScoringPolicy = DEFAULT_POLICY) -> float:
    m = metrics or TrendMetrics()
    active = _count(m.comments) + _count(m.shares) + _count(m.retweets)
    impressions = max(_count(m.views), _count(m.likes))
    if impressions <= 0:
        return 0.0
    return _clamp01(active / impressions * policy.engagement_rate_scale)


def compute_trend_score(
    timestamp: Any,
    metrics: Optional[TrendMetrics],
    *,
    now: Optional[datetime] = None,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> TrendScore:
    now = now or utc_now()
    rec = recency_score(timestamp, now=now, policy=policy)
    pop = popularity_score(metrics, policy=policy)
    eng = engagement_score(metrics, policy=policy)
    overall = (
        policy.recency_weight * rec
        + policy.popularity_weight * pop
        + policy.engagement_weight * eng
    )
    return TrendScore(recency=rec, popularity=pop, engagement=eng, overall=_clamp01(overall))


def score_candidate(
    candidate: Candidate,
    *,
    now: Optional[datetime] = None,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> Candidate:
    return replace(
        candidate,
        score=compute_trend_score(candidate.timestamp, candidate.metrics, now=now, policy=policy),
    )
