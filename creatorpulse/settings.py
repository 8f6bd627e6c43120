"""Runtime configuration loaded from the environment (.env supported)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from dotenv import load_dotenv

from creatorpulse.ranking.ranker import RankingConfig
from creatorpulse.scoring.trend_scoring import ScoringPolicy


logger = logging.getLogger(__name__)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str) -> Tuple[str, ...]:
    raw = os.getenv(name, "")
    return tuple(p.strip().lower() for p in raw.split(",") if p.strip())


@dataclass
class Settings:
    # API credentials (each origin is skipped when its key is missing)
    x_bearer_token: str = ""
    youtube_api_key: str = ""
    firecrawl_api_key: str = ""

    # Optional persistence
    pg_dsn: str = ""

    # Ranking
    max_results: int = 20
    min_score: float = 0.1
    time_window_hours: float = 24.0
    categories: Tuple[str, ...] = field(default_factory=tuple)
    include_global: bool = True

    # Scoring policy overrides
    recency_weight: float = 0.4
    popularity_weight: float = 0.4
    engagement_weight: float = 0.2
    recency_decay_hours: float = 24.0

    # Collection
    youtube_region: str = "US"
    request_timeout: int = 30
    sources_file: str = "sources.json"

    # Worker
    mode: str = "once"
    schedule_minutes: int = 60

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> "Settings":
        """Load and validate configuration from environment variables."""
        if dotenv:
            load_dotenv()
        settings = cls(
            x_bearer_token=os.getenv("X_BEARER_TOKEN", "").strip(),
            youtube_api_key=os.getenv("YOUTUBE_API_KEY", "").strip(),
            firecrawl_api_key=os.getenv("FIRECRAWL_API_KEY", "").strip(),
            pg_dsn=os.getenv("PG_DSN", "").strip(),
            max_results=int(os.getenv("TREND_MAX_RESULTS", "20")),
            min_score=float(os.getenv("TREND_MIN_SCORE", "0.1")),
            time_window_hours=float(os.getenv("TREND_TIME_WINDOW_HOURS", "24")),
            categories=_env_list("TREND_CATEGORIES"),
            include_global=_env_bool("TREND_INCLUDE_GLOBAL", "true"),
            recency_weight=float(os.getenv("TREND_RECENCY_WEIGHT", "0.4")),
            popularity_weight=float(os.getenv("TREND_POPULARITY_WEIGHT", "0.4")),
            engagement_weight=float(os.getenv("TREND_ENGAGEMENT_WEIGHT", "0.2")),
            recency_decay_hours=float(os.getenv("TREND_RECENCY_DECAY_HOURS", "24")),
            youtube_region=os.getenv("YOUTUBE_REGION", "US").strip().upper(),
            request_timeout=int(os.getenv("REQUEST_TIMEOUT", "30")),
            sources_file=os.getenv("SOURCES_FILE", "sources.json"),
            mode=(os.getenv("TREND_MODE") or "once").strip().lower(),
            schedule_minutes=int(os.getenv("TREND_SCHEDULE_MINUTES", "60")),
        )
        settings._validate()
        return settings

    def ranking_config(self) -> RankingConfig:
        return RankingConfig(
            max_results=self.max_results,
            min_score=self.min_score,
            categories=tuple(self.categories),
            time_window_hours=self.time_window_hours,
        )

    def scoring_policy(self) -> ScoringPolicy:
        return ScoringPolicy(
            recency_weight=self.recency_weight,
            popularity_weight=self.popularity_weight,
            engagement_weight=self.engagement_weight,
            recency_decay_hours=self.recency_decay_hours,
        )

    def _validate(self) -> None:
        errors = []
        errors.extend(self.ranking_config().validate())
        errors.extend(self.scoring_policy().validate())

        if self.mode not in ("once", "scheduled", "daemon"):
            errors.append("TREND_MODE must be 'once' or 'scheduled'")
        if self.schedule_minutes < 1:
            errors.append("TREND_SCHEDULE_MINUTES must be >= 1")
        if self.request_timeout < 5 or self.request_timeout > 300:
            errors.append("REQUEST_TIMEOUT should be between 5 and 300 seconds")
        if len(self.youtube_region) != 2:
            errors.append("YOUTUBE_REGION must be a two-letter region code")

        if errors:
            raise ValueError("Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

        configured = [
            name
            for name, key in (("X", self.x_bearer_token), ("YouTube", self.youtube_api_key), ("Firecrawl", self.firecrawl_api_key))
            if key
        ]
        if not configured:
            logger.warning("No platform API keys configured; only RSS and direct page sources will produce trends")
        else:
            logger.info(f"Configuration validated. Platforms: {', '.join(configured)}")

    def weights_note(self) -> Optional[str]:
        total = self.recency_weight + self.popularity_weight + self.engagement_weight
        if abs(total - 1.0) > 1e-9:
            return f"scoring weights sum to {total:g}; overall scores are clamped to [0,1]"
        return None
