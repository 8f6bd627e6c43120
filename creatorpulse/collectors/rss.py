"""RSS/Atom feed collector."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence, Tuple

import feedparser

from creatorpulse.ingestion.candidate_types import PageRecord


logger = logging.getLogger(__name__)


def _entry_value(entry: Any, key: str) -> Optional[Any]:
    value = getattr(entry, key, None)
    if value is None and isinstance(entry, dict):
        value = entry.get(key)
    return value


def _entry_timestamp(entry: Any) -> Optional[str]:
    # feedparser normalizes dates into UTC struct_time fields
    parsed = _entry_value(entry, "published_parsed") or _entry_value(entry, "updated_parsed")
    if parsed:
        try:
            return datetime(*parsed[:6], tzinfo=timezone.utc).isoformat()
        except (TypeError, ValueError):
            pass
    raw = _entry_value(entry, "published") or _entry_value(entry, "updated")
    return str(raw) if raw else None


@dataclass(frozen=True)
class RSSCollector:
    feeds: Sequence[Tuple[str, str]]  # (feed_name, feed_url)

    def fetch(self, *, limit: int = 50) -> List[PageRecord]:
        out: List[PageRecord] = []
        fetched_at = datetime.now(timezone.utc).isoformat()
        for feed_name, feed_url in self.feeds:
            parsed = feedparser.parse(feed_url)
            if getattr(parsed, "bozo", False) and not parsed.entries:
                logger.warning(f"Feed {feed_url} could not be parsed: {getattr(parsed, 'bozo_exception', '')}")
                continue
            for entry in parsed.entries or []:
                link = _entry_value(entry, "link")
                title = _entry_value(entry, "title")
                if not link or not title:
                    continue
                summary = _entry_value(entry, "summary") or ""
                out.append(
                    PageRecord(
                        url=str(link).strip(),
                        title=str(title).strip(),
                        content=str(summary).strip(),
                        timestamp=_entry_timestamp(entry) or fetched_at,
                        metadata={"feed": feed_name, "feedUrl": feed_url},
                    )
                )
                if len(out) >= limit:
                    return out
        return out
