"""X (Twitter) API v2 client.

Returns raw tweet dicts; normalization happens in creatorpulse.ingestion.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from creatorpulse.collectors.http_utils import (
    CollectorError,
    RateLimiter,
    build_session,
    json_or_raise,
    retry_with_backoff,
)


logger = logging.getLogger(__name__)

TWEET_FIELDS = "created_at,public_metrics,entities,author_id"


class XClient:
    base_url = "https://api.x.com"

    def __init__(
        self,
        bearer_token: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: int = 30,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self.bearer_token = (bearer_token or "").strip()
        self.session = session or build_session()
        self.timeout = timeout
        # Recent search allows 450 requests / 15 min on app auth.
        self.rate_limiter = rate_limiter or RateLimiter(max_calls=450, time_window=900)

    @retry_with_backoff(max_retries=3)
    def _get(self, path: str, what: str, params: Optional[Dict[str, Any]] = None) -> Any:
        if not self.bearer_token:
            raise CollectorError("X_BEARER_TOKEN is required to call the X API", status_code=401)
        self.rate_limiter.wait_if_needed()
        resp = self.session.get(
            f"{self.base_url}{path}",
            params=params,
            headers={"Authorization": f"Bearer {self.bearer_token}"},
            timeout=self.timeout,
        )
        return json_or_raise(resp, what)

    def get_user_id(self, username: str) -> str:
        username = (username or "").lstrip("@").strip()
        data = self._get(f"/2/users/by/username/{username}", "get user") or {}
        user = data.get("data") or {}
        if not user.get("id"):
            raise CollectorError(f"X user not found: @{username}", status_code=404)
        return str(user["id"])

    def get_user_tweets(self, username: str, max_results: int = 10) -> List[Dict[str, Any]]:
        username = (username or "").lstrip("@").strip()
        logger.info(f"Fetching tweets from @{username}")
        user_id = self.get_user_id(username)
        data = self._get(
            f"/2/users/{user_id}/tweets",
            "get tweets",
            params={
                # API minimum is 5
                "max_results": max(5, min(int(max_results), 100)),
                "tweet.fields": TWEET_FIELDS,
                "exclude": "retweets,replies",
            },
        ) or {}
        tweets = data.get("data") or []
        for t in tweets:
            t.setdefault("author_username", username)
        return tweets

    def search_tweets(self, query: str, max_results: int = 10) -> List[Dict[str, Any]]:
        logger.info(f"Searching tweets for: {query}")
        data = self._get(
            "/2/tweets/search/recent",
            "search tweets",
            params={
                "query": query,
                "max_results": max(10, min(int(max_results), 100)),
                "tweet.fields": TWEET_FIELDS,
            },
        ) or {}
        return data.get("data") or []

    def get_trending_topics(self, woeid: int = 1) -> List[Dict[str, Any]]:
        logger.info(f"Fetching trending topics for WOEID: {woeid}")
        data = self._get("/1.1/trends/place.json", "get trends", params={"id": woeid})
        if isinstance(data, list) and data:
            return list((data[0] or {}).get("trends") or [])
        return []

    def get_user_profile(self, username: str) -> Optional[Dict[str, Any]]:
        username = (username or "").lstrip("@").strip()
        data = self._get(
            f"/2/users/by/username/{username}",
            "get user profile",
            params={"user.fields": "description,public_metrics"},
        ) or {}
        return data.get("data") or None
