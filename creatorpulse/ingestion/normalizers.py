"""Normalize raw origin records into scored Candidates.

Raw shapes are the plain dicts the collectors return:
- X API v2 tweets: id, text, created_at, author_id, public_metrics, entities
- YouTube Data API v3 video items (snippet/statistics), or a flattened
  variant with title/description/channelTitle at the top level
- crawled pages as PageRecord

Two conversion modes exist for posts and videos:
- one candidate per item, for ranking
- batch to a single document (PageRecord) or aggregate candidate, for
  downstream text analysis

Normalization never raises on missing or malformed fields; numbers that do
not parse become 0 and missing text becomes empty.
"""

from __future__ import annotations

import itertools
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from creatorpulse.analytics.categorize import (
    categorize,
    extract_social_tags,
    extract_tags,
    extract_trending_topics,
)
from creatorpulse.ingestion.candidate_types import Candidate, PageRecord, TrendMetrics
from creatorpulse.ingestion.url_utils import domain_label, url_hash
from creatorpulse.scoring.trend_scoring import DEFAULT_POLICY, ScoringPolicy, score_candidate, utc_now


TITLE_MAX_CHARS = 100
PAGE_CONTENT_MAX_CHARS = 500
# Pages have no engagement counters; assume longer extracted text was read more.
PAGE_VIEWS_PER_CHAR = 10


def parse_count(value: Any) -> int:
    """Parse a counter (YouTube sends them as strings); bad input is 0."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        n = int(str(value).strip())
    except (TypeError, ValueError):
        try:
            n = int(float(str(value).strip()))
        except (TypeError, ValueError, OverflowError):
            return 0
    return max(0, n)


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _ellipsize(text: str, limit: int = TITLE_MAX_CHARS) -> str:
    text = text or ""
    return text[:limit] + ("..." if len(text) > limit else "")


def _iso(now: datetime) -> str:
    return now.isoformat()


def _finish(candidate: Candidate, now: datetime, policy: ScoringPolicy) -> Candidate:
    return score_candidate(candidate, now=now, policy=policy)


# -----------------------------
# X (Twitter) posts
# -----------------------------
def _tweet_metrics(tweet: Dict[str, Any]) -> TrendMetrics:
    pm = _as_dict(tweet.get("public_metrics"))
    return TrendMetrics(
        likes=parse_count(pm.get("like_count")),
        retweets=parse_count(pm.get("retweet_count")),
        comments=parse_count(pm.get("reply_count")),
        shares=parse_count(pm.get("quote_count")),
    )


def _entity_values(tweet: Dict[str, Any], kind: str, key: str) -> List[str]:
    entities = _as_dict(tweet.get("entities"))
    out = []
    for ent in entities.get(kind) or []:
        value = _as_dict(ent).get(key)
        if value:
            out.append(str(value))
    return out


def tweet_tags(tweet: Dict[str, Any]) -> List[str]:
    text = str(tweet.get("text") or "")
    tags = [f"#{t.lower()}" for t in _entity_values(tweet, "hashtags", "tag")]
    tags.extend(extract_social_tags(text))
    return tags


def tweets_to_candidates(
    tweets: Iterable[Dict[str, Any]],
    *,
    source_kind: str = "social",
    now: Optional[datetime] = None,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> List[Candidate]:
    now = now or utc_now()
    out: List[Candidate] = []
    for tweet in tweets or []:
        if not isinstance(tweet, dict):
            continue
        tweet_id = str(tweet.get("id") or "").strip()
        if not tweet_id:
            continue
        text = str(tweet.get("text") or "")
        author = tweet.get("author_username") or tweet.get("author_id") or "unknown"
        candidate = Candidate(
            id=f"x_{tweet_id}",
            title=_ellipsize(text),
            content=text,
            source_label=f"@{author}",
            source_kind=source_kind,
            url=f"https://x.com/i/status/{tweet_id}",
            timestamp=str(tweet.get("created_at") or _iso(now)),
            metrics=_tweet_metrics(tweet),
            tags=frozenset(tweet_tags(tweet)),
            category=categorize(text),
        )
        out.append(_finish(candidate, now, policy))
    return out


def tweets_to_document(
    tweets: Sequence[Dict[str, Any]],
    source_url: str,
    *,
    now: Optional[datetime] = None,
) -> PageRecord:
    """Flatten a batch of posts into one document for text analysis."""
    now = now or utc_now()
    tweets = [t for t in (tweets or []) if isinstance(t, dict)]
    blocks = []
    for tweet in tweets:
        hashtags = " ".join(f"#{t}" for t in _entity_values(tweet, "hashtags", "tag"))
        mentions = " ".join(f"@{m}" for m in _entity_values(tweet, "mentions", "username"))
        urls = " ".join(_entity_values(tweet, "urls", "expanded_url"))
        blocks.append(f"{tweet.get('text') or ''} {hashtags} {mentions} {urls}".strip())
    content = "\n\n".join(blocks)
    metrics = [_tweet_metrics(t) for t in tweets]
    return PageRecord(
        url=source_url,
        title=f"X Content: {len(tweets)} tweets",
        content=content,
        timestamp=_iso(now),
        metadata={
            "platform": "x",
            "tweetCount": len(tweets),
            "totalLikes": sum(m.likes or 0 for m in metrics),
            "totalRetweets": sum(m.retweets or 0 for m in metrics),
            "hashtags": list(itertools.chain.from_iterable(_entity_values(t, "hashtags", "tag") for t in tweets)),
            "mentions": list(itertools.chain.from_iterable(_entity_values(t, "mentions", "username") for t in tweets)),
            "keywords": extract_trending_topics(content),
        },
    )


def tweets_to_aggregate_candidate(
    tweets: Sequence[Dict[str, Any]],
    source_url: str,
    *,
    now: Optional[datetime] = None,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> Candidate:
    """One candidate for a whole batch: concatenated text, summed metrics."""
    now = now or utc_now()
    doc = tweets_to_document(tweets, source_url, now=now)
    tweets = [t for t in (tweets or []) if isinstance(t, dict)]
    metrics = [_tweet_metrics(t) for t in tweets]
    newest = max((str(t.get("created_at")) for t in tweets if t.get("created_at")), default=doc.timestamp)
    tags = set()
    for t in tweets:
        tags.update(tweet_tags(t))
    candidate = Candidate(
        id=f"agg_x_{url_hash(source_url)[:16]}",
        title=doc.title or "",
        content=doc.content,
        source_label=domain_label(source_url),
        source_kind="aggregate",
        url=source_url,
        timestamp=newest,
        metrics=TrendMetrics(
            likes=sum(m.likes or 0 for m in metrics),
            retweets=sum(m.retweets or 0 for m in metrics),
            comments=sum(m.comments or 0 for m in metrics),
            shares=sum(m.shares or 0 for m in metrics),
        ),
        tags=frozenset(tags),
        category=categorize(doc.content),
    )
    return _finish(candidate, now, policy)


# -----------------------------
# YouTube videos
# -----------------------------
def _video_id(video: Dict[str, Any]) -> str:
    vid = video.get("id")
    if isinstance(vid, dict):
        # search.list items carry {"kind": ..., "videoId": ...}
        vid = vid.get("videoId")
    return str(vid or "").strip()


def _video_field(video: Dict[str, Any], key: str) -> Any:
    snippet = _as_dict(video.get("snippet"))
    if key in snippet:
        return snippet.get(key)
    return video.get(key)


def _video_metrics(video: Dict[str, Any]) -> TrendMetrics:
    stats = _as_dict(video.get("statistics"))
    return TrendMetrics(
        views=parse_count(stats.get("viewCount")),
        likes=parse_count(stats.get("likeCount")),
        comments=parse_count(stats.get("commentCount")),
    )


def _video_tags(video: Dict[str, Any]) -> List[str]:
    tags = _video_field(video, "tags") or []
    if not isinstance(tags, (list, tuple)):
        return []
    return [str(t).strip().lower() for t in tags if str(t).strip()]


def videos_to_candidates(
    videos: Iterable[Dict[str, Any]],
    *,
    now: Optional[datetime] = None,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> List[Candidate]:
    now = now or utc_now()
    out: List[Candidate] = []
    for video in videos or []:
        if not isinstance(video, dict):
            continue
        vid = _video_id(video)
        if not vid:
            continue
        title = str(_video_field(video, "title") or "Untitled Video")
        description = str(_video_field(video, "description") or "")
        tags = set(_video_tags(video))
        tags.update(extract_tags(f"{title} {description}"))
        candidate = Candidate(
            id=f"yt_{vid}",
            title=title,
            content=description,
            source_label=str(_video_field(video, "channelTitle") or "Unknown Channel"),
            source_kind="video",
            url=f"https://youtube.com/watch?v={vid}",
            timestamp=str(_video_field(video, "publishedAt") or _iso(now)),
            metrics=_video_metrics(video),
            tags=frozenset(tags),
            category=categorize(description, title),
        )
        out.append(_finish(candidate, now, policy))
    return out


def videos_to_document(
    videos: Sequence[Dict[str, Any]],
    source_url: str,
    *,
    now: Optional[datetime] = None,
) -> PageRecord:
    now = now or utc_now()
    videos = [v for v in (videos or []) if isinstance(v, dict)]
    blocks = []
    for video in videos:
        stats = _as_dict(video.get("statistics"))
        stats_line = ""
        if stats:
            stats_line = f"Views: {stats.get('viewCount', 0)}, Likes: {stats.get('likeCount', 0)}"
        blocks.append(
            "\n".join(
                [
                    str(_video_field(video, "title") or ""),
                    str(_video_field(video, "description") or ""),
                    " ".join(_video_tags(video)),
                    stats_line,
                ]
            ).strip()
        )
    content = "\n\n".join(blocks)
    metrics = [_video_metrics(v) for v in videos]
    categories = []
    for v in videos:
        cat = _video_field(v, "categoryId")
        if cat and cat not in categories:
            categories.append(cat)
    return PageRecord(
        url=source_url,
        title=f"YouTube Content: {len(videos)} videos",
        content=content,
        timestamp=_iso(now),
        metadata={
            "platform": "youtube",
            "videoCount": len(videos),
            "totalViews": sum(m.views or 0 for m in metrics),
            "totalLikes": sum(m.likes or 0 for m in metrics),
            "categories": categories,
            "tags": list(itertools.chain.from_iterable(_video_tags(v) for v in videos)),
            "keywords": extract_trending_topics(content),
        },
    )


def videos_to_aggregate_candidate(
    videos: Sequence[Dict[str, Any]],
    source_url: str,
    *,
    now: Optional[datetime] = None,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> Candidate:
    now = now or utc_now()
    doc = videos_to_document(videos, source_url, now=now)
    videos = [v for v in (videos or []) if isinstance(v, dict)]
    metrics = [_video_metrics(v) for v in videos]
    published = [str(_video_field(v, "publishedAt")) for v in videos if _video_field(v, "publishedAt")]
    tags = set()
    for v in videos:
        tags.update(_video_tags(v))
    candidate = Candidate(
        id=f"agg_yt_{url_hash(source_url)[:16]}",
        title=doc.title or "",
        content=doc.content,
        source_label=domain_label(source_url),
        source_kind="aggregate",
        url=source_url,
        timestamp=max(published, default=doc.timestamp),
        metrics=TrendMetrics(
            views=sum(m.views or 0 for m in metrics),
            likes=sum(m.likes or 0 for m in metrics),
            comments=sum(m.comments or 0 for m in metrics),
        ),
        tags=frozenset(tags),
        category=categorize(doc.content),
    )
    return _finish(candidate, now, policy)


# -----------------------------
# Crawled pages
# -----------------------------
def page_candidate_id(url: str, *, now: datetime, sequence: int) -> str:
    """Synthetic id: URL hash + time + sequence, unique even for repeated URLs."""
    return f"news_{url_hash(url)[:12]}_{int(now.timestamp() * 1000)}_{sequence}"


def pages_to_candidates(
    pages: Iterable[PageRecord],
    *,
    sequence_start: int = 0,
    now: Optional[datetime] = None,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> List[Candidate]:
    now = now or utc_now()
    out: List[Candidate] = []
    for seq, page in enumerate(pages or [], start=sequence_start):
        if not isinstance(page, PageRecord):
            continue
        content = page.content or ""
        title = page.title or "Untitled Article"
        candidate = Candidate(
            id=page_candidate_id(page.url, now=now, sequence=seq),
            title=title,
            content=content[:PAGE_CONTENT_MAX_CHARS],
            source_label=domain_label(page.url),
            source_kind="web",
            url=page.url,
            timestamp=page.timestamp or _iso(now),
            metrics=TrendMetrics(views=len(content) * PAGE_VIEWS_PER_CHAR),
            tags=frozenset(extract_tags(content)),
            category=categorize(content, title),
        )
        out.append(_finish(candidate, now, policy))
    return out


def build_candidates(
    *,
    tweets: Optional[Iterable[Dict[str, Any]]] = None,
    videos: Optional[Iterable[Dict[str, Any]]] = None,
    pages: Optional[Sequence[PageRecord]] = None,
    now: Optional[datetime] = None,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> List[Candidate]:
    """Normalize every origin against one shared `now`."""
    now = now or utc_now()
    out: List[Candidate] = []
    out.extend(tweets_to_candidates(tweets or [], now=now, policy=policy))
    out.extend(videos_to_candidates(videos or [], now=now, policy=policy))
    out.extend(pages_to_candidates(pages or [], now=now, policy=policy))
    return out
