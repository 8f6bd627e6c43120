"""Trend detection pipeline: user sources + global trends -> ranked candidates.

Fetching is the only part that can fail. Each source (and each global
origin) is fetched inside its own try block; a failure is logged and
contributes nothing, so the ranking step always runs.

Source dicts follow the stored-source shape: {"type", "url", "content"}.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from creatorpulse.collectors.firecrawl_client import FirecrawlClient
from creatorpulse.collectors.page_fetcher import fetch_page
from creatorpulse.collectors.rss import RSSCollector
from creatorpulse.collectors.x_client import XClient
from creatorpulse.collectors.youtube_client import YouTubeClient
from creatorpulse.ingestion.candidate_types import Candidate, PageRecord
from creatorpulse.ingestion.normalizers import pages_to_candidates, tweets_to_candidates, videos_to_candidates
from creatorpulse.ingestion.url_utils import domain_label, x_username_from_url, youtube_channel_from_url
from creatorpulse.ranking.ranker import RankingConfig, rank_candidates
from creatorpulse.scoring.trend_scoring import DEFAULT_POLICY, ScoringPolicy, utc_now


logger = logging.getLogger(__name__)

SOURCE_TYPES = ("x", "x_hashtag", "twitter", "youtube", "rss", "hashtag", "url")


def validate_source(source: Dict[str, Any]) -> Optional[str]:
    """Return an error message for a malformed source, or None."""
    stype = (source or {}).get("type")
    if stype not in SOURCE_TYPES:
        return f"Invalid source type. Must be one of: {', '.join(SOURCE_TYPES)}"
    if not source.get("url") and not source.get("content"):
        return "Either url or content is required"
    return None


class PageSequence:
    """Running page counter shared by every origin of one detection run.

    Page ids embed the run's `now` plus this sequence, so the same URL seen
    from a user source and from the trending-site crawl still gets two ids.
    """

    def __init__(self, start: int = 0):
        self._next = start
        self._lock = threading.Lock()

    def take(self, n: int) -> int:
        with self._lock:
            start = self._next
            self._next += max(0, n)
            return start


class TrendPipeline:
    def __init__(
        self,
        *,
        x_client: Optional[XClient] = None,
        youtube_client: Optional[YouTubeClient] = None,
        firecrawl_client: Optional[FirecrawlClient] = None,
        rss_collector_factory: Callable[[List[Tuple[str, str]]], RSSCollector] = RSSCollector,
        page_fetcher: Callable[..., Any] = fetch_page,
        policy: ScoringPolicy = DEFAULT_POLICY,
        youtube_region: str = "US",
        items_per_source: int = 10,
    ):
        self.x_client = x_client
        self.youtube_client = youtube_client
        self.firecrawl_client = firecrawl_client
        self.rss_collector_factory = rss_collector_factory
        self.page_fetcher = page_fetcher
        self.policy = policy
        self.youtube_region = youtube_region
        self.items_per_source = items_per_source

    # -----------------------------
    # Per-origin fetch + normalize
    # -----------------------------
    def _x_user(self, username: str, now: datetime) -> List[Candidate]:
        if self.x_client is None:
            logger.warning(f"No X client configured; skipping @{username}")
            return []
        tweets = self.x_client.get_user_tweets(username.lstrip("@"), self.items_per_source)
        return tweets_to_candidates(tweets, now=now, policy=self.policy)

    def _x_hashtag(self, hashtag: str, now: datetime) -> List[Candidate]:
        if self.x_client is None:
            logger.warning(f"No X client configured; skipping #{hashtag}")
            return []
        tweets = self.x_client.search_tweets(f"#{hashtag.lstrip('#')}", self.items_per_source)
        return tweets_to_candidates(tweets, now=now, policy=self.policy)

    def _youtube_channel(self, identifier: str, now: datetime) -> List[Candidate]:
        if self.youtube_client is None:
            logger.warning(f"No YouTube client configured; skipping {identifier}")
            return []
        channel_id = self.youtube_client.resolve_channel_id(identifier)
        if not channel_id:
            return []
        videos = self.youtube_client.get_channel_videos(channel_id, self.items_per_source)
        return videos_to_candidates(videos, now=now, policy=self.policy)

    def _web_pages(self, url: str) -> List[PageRecord]:
        if self.firecrawl_client is not None:
            return self.firecrawl_client.batch_crawl([url], limit=5, concurrency=1)
        result = self.page_fetcher(url)
        if result.page is None:
            logger.warning(f"Could not fetch {url}: {result.status} {result.error or ''}".strip())
            return []
        return [result.page]

    def _rss(self, feed_url: str) -> List[PageRecord]:
        collector = self.rss_collector_factory([(domain_label(feed_url), feed_url)])
        return collector.fetch(limit=self.items_per_source)

    def _page_candidates(self, pages: Sequence[PageRecord], now: datetime, seq: PageSequence) -> List[Candidate]:
        pages = list(pages or [])
        start = seq.take(len(pages))
        return pages_to_candidates(pages, sequence_start=start, now=now, policy=self.policy)

    def _source_candidates(self, source: Dict[str, Any], now: datetime, seq: PageSequence) -> List[Candidate]:
        stype = (source.get("type") or "").lower()
        content = (source.get("content") or "").strip()
        url = (source.get("url") or "").strip()

        if stype in ("x", "twitter") and content:
            return self._x_user(content, now)
        if stype in ("x_hashtag", "hashtag") and content:
            return self._x_hashtag(content, now)
        if stype == "youtube" and content:
            return self._youtube_channel(content, now)
        if not url:
            logger.warning(f"Unrecognized source or missing content: {source}")
            return []
        if stype == "rss":
            return self._page_candidates(self._rss(url), now, seq)

        username = x_username_from_url(url)
        if username:
            return self._x_user(username, now)
        channel = youtube_channel_from_url(url)
        if channel:
            return self._youtube_channel(channel, now)
        return self._page_candidates(self._web_pages(url), now, seq)

    # -----------------------------
    # Public API
    # -----------------------------
    def collect_user_candidates(
        self,
        sources: Iterable[Dict[str, Any]],
        *,
        now: Optional[datetime] = None,
        page_sequence: Optional[PageSequence] = None,
    ) -> List[Candidate]:
        now = now or utc_now()
        seq = page_sequence or PageSequence()
        sources = list(sources or [])
        logger.info(f"Processing {len(sources)} user sources")
        out: List[Candidate] = []
        for source in sources:
            try:
                out.extend(self._source_candidates(source, now, seq))
            except Exception as e:
                logger.error(f"Error processing source {source.get('type')}:{source.get('content') or source.get('url')}: {e}")
        logger.info(f"Collected {len(out)} user candidates")
        return out

    def collect_global_candidates(
        self,
        *,
        now: Optional[datetime] = None,
        page_sequence: Optional[PageSequence] = None,
    ) -> List[Candidate]:
        now = now or utc_now()
        seq = page_sequence or PageSequence()
        out: List[Candidate] = []

        if self.x_client is not None:
            try:
                topics = self.x_client.get_trending_topics(1)
                if topics and topics[0].get("name"):
                    top = topics[0]["name"]
                    logger.info(f"Searching X for trending topic: {top}")
                    tweets = self.x_client.search_tweets(top, 15)
                    out.extend(tweets_to_candidates(tweets, now=now, policy=self.policy))
            except Exception as e:
                logger.error(f"Error fetching X trends: {e}")

        if self.youtube_client is not None:
            try:
                videos = self.youtube_client.get_trending_videos(self.youtube_region, 10)
                out.extend(videos_to_candidates(videos, now=now, policy=self.policy))
            except Exception as e:
                logger.error(f"Error fetching YouTube trends: {e}")

        if self.firecrawl_client is not None:
            try:
                out.extend(self._page_candidates(self.firecrawl_client.crawl_trending_sites(), now, seq))
            except Exception as e:
                logger.error(f"Error crawling trending sites: {e}")

        logger.info(f"Collected {len(out)} global candidates")
        return out

    def get_ranked_trends(
        self,
        sources: Iterable[Dict[str, Any]],
        config: Optional[RankingConfig] = None,
        *,
        include_global: bool = True,
        now: Optional[datetime] = None,
    ) -> List[Candidate]:
        config = config or RankingConfig(max_results=20)
        now = now or utc_now()
        seq = PageSequence()
        logger.info(
            f"Starting trend detection: {config.max_results} results, "
            f"{config.time_window_hours}h window, global: {include_global}"
        )
        user = self.collect_user_candidates(sources, now=now, page_sequence=seq)
        global_ = self.collect_global_candidates(now=now, page_sequence=seq) if include_global else []
        ranked = rank_candidates(user, global_, config, now=now)
        if ranked:
            logger.info(f"Top trend: {ranked[0].title} (score: {ranked[0].score.overall:.3f})")
        return ranked
