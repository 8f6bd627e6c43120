"""YouTube Data API v3 client."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from creatorpulse.collectors.http_utils import CollectorError, build_session, json_or_raise, retry_with_backoff


logger = logging.getLogger(__name__)

VIDEO_PARTS = "snippet,statistics,contentDetails"


class YouTubeClient:
    base_url = "https://www.googleapis.com/youtube/v3"

    def __init__(self, api_key: str, *, session: Optional[requests.Session] = None, timeout: int = 30):
        self.api_key = (api_key or "").strip()
        self.session = session or build_session()
        self.timeout = timeout

    @retry_with_backoff(max_retries=3)
    def _get(self, path: str, what: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key:
            raise CollectorError("YOUTUBE_API_KEY is required to call the YouTube API", status_code=401)
        resp = self.session.get(
            f"{self.base_url}/{path}",
            params={**params, "key": self.api_key},
            timeout=self.timeout,
        )
        return json_or_raise(resp, what) or {}

    def _video_details(self, search_items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        # search.list has no statistics; re-fetch the ids through videos.list
        ids = []
        for item in search_items:
            vid = (item.get("id") or {}).get("videoId") if isinstance(item.get("id"), dict) else None
            if vid:
                ids.append(vid)
        if not ids:
            return []
        data = self._get("videos", "get video details", {"part": VIDEO_PARTS, "id": ",".join(ids)})
        return data.get("items") or []

    def get_channel_videos(self, channel_id: str, max_results: int = 10) -> List[Dict[str, Any]]:
        logger.info(f"Fetching videos from channel: {channel_id}")
        data = self._get(
            "search",
            "get channel videos",
            {"part": "snippet", "channelId": channel_id, "maxResults": max_results, "order": "date", "type": "video"},
        )
        return self._video_details(data.get("items") or [])

    def search_videos(self, query: str, max_results: int = 10) -> List[Dict[str, Any]]:
        logger.info(f"Searching videos for: {query}")
        data = self._get(
            "search",
            "search videos",
            {"part": "snippet", "q": query, "maxResults": max_results, "order": "relevance", "type": "video"},
        )
        return self._video_details(data.get("items") or [])

    def get_trending_videos(self, region_code: str = "US", max_results: int = 10) -> List[Dict[str, Any]]:
        logger.info(f"Fetching trending videos for region: {region_code}")
        data = self._get(
            "videos",
            "get trending videos",
            {"part": VIDEO_PARTS, "chart": "mostPopular", "regionCode": region_code, "maxResults": max_results},
        )
        return data.get("items") or []

    def get_channel_info(self, channel_id: str) -> Optional[Dict[str, Any]]:
        data = self._get("channels", "get channel info", {"part": "snippet,statistics", "id": channel_id})
        items = data.get("items") or []
        return items[0] if items else None

    def resolve_channel_id(self, identifier: str) -> Optional[str]:
        """Channel id from an id, a channel name/handle, or a legacy username."""
        identifier = (identifier or "").strip().lstrip("@")
        if not identifier:
            return None
        if identifier.startswith("UC") and len(identifier) == 24:
            return identifier

        data = self._get("search", "search channels", {"part": "snippet", "q": identifier, "type": "channel", "maxResults": 1})
        items = data.get("items") or []
        if items:
            channel_id = (items[0].get("snippet") or {}).get("channelId")
            if channel_id:
                logger.info(f"Found channel ID via search: {channel_id}")
                return channel_id

        data = self._get("channels", "look up username", {"part": "id", "forUsername": identifier})
        items = data.get("items") or []
        if items and items[0].get("id"):
            logger.info(f"Found channel ID via username: {items[0]['id']}")
            return items[0]["id"]

        logger.warning(f"Could not find YouTube channel for: {identifier}")
        return None
