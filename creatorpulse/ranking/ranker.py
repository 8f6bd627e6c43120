"""Combine user and global candidates into one ranked list.

Order of operations:
1. concatenate user then global candidates (no per-origin boost)
2. drop candidates older than the time window
3. keep only the requested categories, if any
4. drop candidates scoring below min_score
5. sort by overall score, descending; ties keep input order
6. truncate to max_results
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from creatorpulse.ingestion.candidate_types import CATEGORIES, Candidate
from creatorpulse.scoring.trend_scoring import age_hours, utc_now


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankingConfig:
    max_results: int = 50
    min_score: float = 0.1
    categories: Tuple[str, ...] = ()
    # Independent of ScoringPolicy.recency_decay_hours even though both default to 24.
    time_window_hours: float = 24.0

    def validate(self) -> List[str]:
        errors = []
        if self.max_results < 0:
            errors.append("max_results must be >= 0")
        if not 0.0 <= self.min_score <= 1.0:
            errors.append("min_score must be between 0 and 1")
        if self.time_window_hours <= 0:
            errors.append("time_window_hours must be > 0")
        unknown = [c for c in self.categories if c not in CATEGORIES]
        if unknown:
            errors.append(f"unknown categories: {', '.join(unknown)}")
        return errors


DEFAULT_RANKING = RankingConfig()


def _dedupe_ids(candidates: Iterable[Candidate]) -> List[Candidate]:
    seen = set()
    out = []
    for c in candidates:
        if c.id in seen:
            logger.debug(f"Dropping duplicate candidate id {c.id}")
            continue
        seen.add(c.id)
        out.append(c)
    return out


def rank_candidates(
    user_candidates: Sequence[Candidate],
    global_candidates: Sequence[Candidate],
    config: Optional[RankingConfig] = None,
    *,
    now: Optional[datetime] = None,
) -> List[Candidate]:
    config = config or DEFAULT_RANKING
    now = now or utc_now()
    max_results = max(0, int(config.max_results))

    user_candidates = list(user_candidates or [])
    global_candidates = list(global_candidates or [])
    logger.info(f"Combining {len(user_candidates)} user trends with {len(global_candidates)} global trends")

    combined = _dedupe_ids(user_candidates + global_candidates)
    in_window = [c for c in combined if age_hours(c.timestamp, now) <= config.time_window_hours]
    if config.categories:
        wanted = set(config.categories)
        in_window = [c for c in in_window if c.category in wanted]
    eligible = [c for c in in_window if c.score.overall >= config.min_score]

    # sorted() is stable, so equal scores keep their combined-list order.
    ranked = sorted(eligible, key=lambda c: c.score.overall, reverse=True)

    logger.info(f"Ranked {len(ranked)} trends, returning top {max_results}")
    return ranked[:max_results]
