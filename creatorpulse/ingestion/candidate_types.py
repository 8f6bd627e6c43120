"""Shared trend data types.

A Candidate is the unified, scored record every origin (X posts, YouTube
videos, crawled pages) is normalized into before ranking. Candidates are
pure values: re-ranking the same raw item later builds a new Candidate with
a recomputed recency score.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional


SOURCE_KINDS = ("social", "video", "web", "aggregate")

CATEGORIES = ("technology", "business", "social", "entertainment", "science", "general")

DEFAULT_CATEGORY = "general"


@dataclass(frozen=True)
class TrendMetrics:
    """Raw engagement counters; None means the origin does not report it."""

    likes: Optional[int] = None
    shares: Optional[int] = None
    comments: Optional[int] = None
    views: Optional[int] = None
    retweets: Optional[int] = None

    def to_dict(self) -> Dict[str, int]:
        out: Dict[str, int] = {}
        for key in ("likes", "shares", "comments", "views", "retweets"):
            value = getattr(self, key)
            if value is not None:
                out[key] = int(value)
        return out


@dataclass(frozen=True)
class TrendScore:
    recency: float
    popularity: float
    engagement: float
    overall: float

    @classmethod
    def zero(cls) -> "TrendScore":
        return cls(recency=0.0, popularity=0.0, engagement=0.0, overall=0.0)

    def to_dict(self) -> Dict[str, float]:
        return {
            "recency": self.recency,
            "popularity": self.popularity,
            "engagement": self.engagement,
            "overall": self.overall,
        }


@dataclass(frozen=True)
class Candidate:
    id: str
    title: str
    content: str
    source_label: str
    source_kind: str
    url: str
    timestamp: str
    metrics: TrendMetrics = field(default_factory=TrendMetrics)
    score: TrendScore = field(default_factory=TrendScore.zero)
    tags: FrozenSet[str] = frozenset()
    category: str = DEFAULT_CATEGORY

    def to_dict(self) -> Dict[str, Any]:
        """Presentation/persistence shape (every field a renderer needs)."""
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "sourceLabel": self.source_label,
            "sourceKind": self.source_kind,
            "url": self.url,
            "timestamp": self.timestamp,
            "metrics": self.metrics.to_dict(),
            "score": self.score.to_dict(),
            "tags": sorted(self.tags),
            "category": self.category,
        }


@dataclass(frozen=True)
class PageRecord:
    """Crawled page, or several posts/videos flattened into one document.

    This is the raw shape the web collectors produce and the output of the
    batch-to-single-document conversions used for downstream text analysis.
    """

    url: str
    content: str
    timestamp: str
    title: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
