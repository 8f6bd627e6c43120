"""Firecrawl v1 crawl/scrape client.

Every public method returns a (possibly empty) list of PageRecords and logs
failures instead of raising, so one blocked site never aborts a run.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

import requests

from creatorpulse.collectors.http_utils import CollectorError, build_session, json_or_raise
from creatorpulse.ingestion.candidate_types import PageRecord
from creatorpulse.ingestion.url_utils import is_social_media_url


logger = logging.getLogger(__name__)

TRENDING_SITES = [
    # News
    "https://techcrunch.com",
    "https://www.theverge.com",
    "https://www.wired.com",
    "https://arstechnica.com",
    "https://www.engadget.com",
    # Tech blogs and platforms
    "https://medium.com/topic/technology",
    "https://substack.com/discover/technology",
    "https://www.producthunt.com",
    "https://news.ycombinator.com",
    "https://dev.to",
    # Engineering blogs
    "https://github.blog",
    "https://stackoverflow.blog",
    "https://css-tricks.com",
    "https://smashingmagazine.com",
    "https://alistapart.com",
]

ONE_HOUR_MS = 3_600_000


def _document_to_page(doc: Dict[str, Any], fallback_url: str, fetched_at: str) -> PageRecord:
    meta = doc.get("metadata") or {}
    published = meta.get("publishedTime") or meta.get("article:published_time")
    return PageRecord(
        url=meta.get("sourceURL") or meta.get("url") or fallback_url,
        title=meta.get("title") or "Untitled",
        content=doc.get("markdown") or "",
        timestamp=str(published or fetched_at),
        metadata=dict(meta),
    )


class FirecrawlClient:
    base_url = "https://api.firecrawl.dev"

    def __init__(
        self,
        api_key: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: int = 60,
        poll_interval: float = 10.0,
        max_polls: int = 30,
        batch_pause: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_key = (api_key or "").strip()
        self.session = session or build_session()
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.batch_pause = batch_pause
        self._sleep = sleep

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

    def _now_iso(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    def crawl(
        self,
        url: str,
        *,
        limit: int = 10,
        only_main_content: bool = True,
        max_age_ms: int = ONE_HOUR_MS,
        use_crawl: bool = True,
    ) -> List[PageRecord]:
        if not self.api_key:
            logger.error(f"FIRECRAWL_API_KEY is required to crawl {url}")
            return []
        if is_social_media_url(url):
            logger.warning(f"Skipping social media URL {url}: these sites block scraping, use their APIs instead")
            return []
        if not use_crawl:
            return self.scrape(url, only_main_content=only_main_content, max_age_ms=max_age_ms)

        logger.info(f"Crawling URL with Firecrawl: {url}")
        try:
            resp = self.session.post(
                f"{self.base_url}/v1/crawl",
                json={
                    "url": url,
                    "limit": limit,
                    "scrapeOptions": {
                        "formats": ["markdown"],
                        "onlyMainContent": only_main_content,
                        "maxAge": max_age_ms,
                    },
                },
                headers=self._headers(),
                timeout=self.timeout,
            )
            data = json_or_raise(resp, f"crawl {url}") or {}
        except (CollectorError, requests.RequestException) as e:
            logger.warning(f"Crawl failed, falling back to scrape: {e}")
            return self.scrape(url, only_main_content=only_main_content, max_age_ms=max_age_ms)

        if not data.get("success"):
            logger.warning(f"Crawl unsuccessful, falling back to scrape: {data.get('error')}")
            return self.scrape(url, only_main_content=only_main_content, max_age_ms=max_age_ms)

        if data.get("data"):
            logger.info(f"Crawl completed with {len(data['data'])} pages")
            fetched_at = self._now_iso()
            return [_document_to_page(doc, url, fetched_at) for doc in data["data"]]

        if data.get("id"):
            return self._wait_for_crawl(str(data["id"]), url)

        return self.scrape(url, only_main_content=only_main_content, max_age_ms=max_age_ms)

    def _wait_for_crawl(self, crawl_id: str, url: str) -> List[PageRecord]:
        logger.info(f"Async crawl started with ID: {crawl_id}")
        for attempt in range(self.max_polls):
            try:
                resp = self.session.get(
                    f"{self.base_url}/v1/crawl/{crawl_id}",
                    headers=self._headers(),
                    timeout=self.timeout,
                )
                status = json_or_raise(resp, "check crawl status") or {}
            except (CollectorError, requests.RequestException) as e:
                logger.error(f"Error checking crawl status for {url}: {e}")
                return []
            state = status.get("status")
            logger.debug(f"Crawl {crawl_id} status={state} completed={status.get('completed')}/{status.get('total')}")
            if state == "completed":
                fetched_at = self._now_iso()
                return [_document_to_page(doc, url, fetched_at) for doc in status.get("data") or []]
            if state == "failed":
                logger.error(f"Crawl failed for {url}: {status.get('error')}")
                return []
            if attempt < self.max_polls - 1:
                self._sleep(self.poll_interval)
        logger.error(f"Crawl {crawl_id} for {url} timed out after {self.max_polls} status checks")
        return []

    def scrape(self, url: str, *, only_main_content: bool = True, max_age_ms: int = ONE_HOUR_MS) -> List[PageRecord]:
        if not self.api_key:
            logger.error(f"FIRECRAWL_API_KEY is required to scrape {url}")
            return []
        logger.info(f"Scraping single URL: {url}")
        try:
            resp = self.session.post(
                f"{self.base_url}/v1/scrape",
                json={
                    "url": url,
                    "formats": ["markdown"],
                    "onlyMainContent": only_main_content,
                    "maxAge": max_age_ms,
                },
                headers=self._headers(),
                timeout=self.timeout,
            )
            data = json_or_raise(resp, f"scrape {url}") or {}
        except (CollectorError, requests.RequestException) as e:
            logger.error(f"Error scraping {url} with Firecrawl: {e}")
            return []
        if not data.get("success") or not data.get("data"):
            logger.error(f"Failed to scrape {url}: {data.get('error') or 'no data returned'}")
            return []
        return [_document_to_page(data["data"], url, self._now_iso())]

    def batch_crawl(
        self,
        urls: Sequence[str],
        *,
        limit: int = 5,
        max_age_ms: int = ONE_HOUR_MS,
        concurrency: int = 3,
    ) -> List[PageRecord]:
        """Scrape URLs in batches of `concurrency`, pausing between batches."""
        concurrency = max(1, concurrency)
        urls = list(urls)
        logger.info(f"Batch crawling {len(urls)} URLs with concurrency {concurrency}")
        out: List[PageRecord] = []
        for start in range(0, len(urls), concurrency):
            batch = urls[start:start + concurrency]
            with ThreadPoolExecutor(max_workers=len(batch)) as pool:
                for pages in pool.map(lambda u: self.crawl(u, limit=limit, max_age_ms=max_age_ms, use_crawl=False), batch):
                    out.extend(pages)
            if start + concurrency < len(urls):
                self._sleep(self.batch_pause)
        logger.info(f"Batch crawl completed: {len(out)} total results")
        return out

    def crawl_trending_sites(
        self,
        sites: Optional[Sequence[str]] = None,
        *,
        max_sites: int = 10,
        pages_per_site: int = 2,
        max_results: int = 20,
    ) -> List[PageRecord]:
        targets = list(sites or TRENDING_SITES)[:max_sites]
        if not targets:
            return []
        logger.info(f"Starting trending sites crawl over {len(targets)} sites")
        out: List[PageRecord] = []
        with ThreadPoolExecutor(max_workers=min(5, len(targets))) as pool:
            results = pool.map(
                lambda u: self.crawl(u, limit=pages_per_site, max_age_ms=ONE_HOUR_MS // 2, use_crawl=True),
                targets,
            )
            for pages in results:
                if len(out) >= max_results:
                    break
                out.extend(pages[: max_results - len(out)])
        logger.info(f"Crawled {len(out)} pages from trending sites")
        return out
