"""Lexical categorization and tagging.

Everything here is keyword matching against fixed, ordered tables:
- `categorize` walks CATEGORY_RULES in order; the first category with a
  keyword occurring at a word start wins (so "AI startup" is technology,
  not business, and "Startups" is business).
- `extract_tags` returns vocabulary hits in table order, capped at 5.
- `extract_social_tags` pulls #hashtags and @mentions out of post text.
Empty or non-matching text gives "general" / no tags, never an error.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Dict, List, Pattern, Sequence, Tuple


CATEGORY_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("technology", ("ai", "artificial intelligence", "machine learning")),
    ("business", ("startup", "funding", "business")),
    ("social", ("social", "viral", "trending")),
    ("entertainment", ("entertainment", "celebrity", "movie")),
    ("science", ("research", "study", "science")),
)

TAG_VOCABULARY: Tuple[str, ...] = (
    "ai",
    "artificial intelligence",
    "machine learning",
    "blockchain",
    "crypto",
    "startup",
    "funding",
    "ipo",
    "acquisition",
    "venture capital",
    "saas",
    "api",
    "cloud",
    "aws",
    "google",
    "microsoft",
    "react",
    "javascript",
    "python",
    "typescript",
    "nodejs",
)

TRENDING_KEYWORDS: Tuple[str, ...] = (
    # AI/Tech
    "artificial intelligence", "machine learning", "chatgpt", "openai", "claude",
    "generative ai", "llm", "transformer", "neural network",
    # Web3/Crypto
    "bitcoin", "ethereum", "defi", "nft", "web3", "blockchain", "crypto",
    "solana", "cardano", "polygon",
    # Business/Startup
    "funding round", "series a", "ipo", "acquisition", "merger", "valuation",
    "startup", "unicorn", "yc", "y combinator",
    # Technology
    "react", "next.js", "typescript", "python", "rust", "go", "kubernetes",
    "docker", "aws", "vercel", "supabase", "firebase",
    # Trends
    "viral", "trending", "breaking", "announcement", "launch", "release",
)

_HASHTAG_RE = re.compile(r"#\w+")
_MENTION_RE = re.compile(r"@\w+")
_PHRASE_RE = re.compile(r"\b[A-Z][a-z]+ [A-Z][a-z]+\b")


@lru_cache(maxsize=512)
def _keyword_pattern(keyword: str) -> Pattern[str]:
    # Lookarounds instead of \b so keywords like "next.js" still anchor on word edges.
    return re.compile(r"(?<!\w)" + re.escape(keyword) + r"(?!\w)", re.IGNORECASE)


def contains_keyword(text: str, keyword: str) -> bool:
    return bool(text) and _keyword_pattern(keyword).search(text) is not None


@lru_cache(maxsize=128)
def _category_pattern(keyword: str) -> Pattern[str]:
    # Containment anchored at a word start: "startups" and "researchers" match,
    # "said" does not match "ai". Trailing -y also accepts -ies ("studies").
    stem = re.escape(keyword)
    if keyword.endswith("y"):
        stem = re.escape(keyword[:-1]) + "(?:y|ies)"
    return re.compile(r"(?<!\w)" + stem, re.IGNORECASE)


def mentions_category_keyword(text: str, keyword: str) -> bool:
    return bool(text) and _category_pattern(keyword).search(text) is not None


def categorize(text: str, title: str = "") -> str:
    blob = f"{text or ''} {title or ''}"
    for category, keywords in CATEGORY_RULES:
        if any(mentions_category_keyword(blob, kw) for kw in keywords):
            return category
    return "general"


def extract_tags(text: str, *, limit: int = 5) -> List[str]:
    if not text:
        return []
    return [kw for kw in TAG_VOCABULARY if contains_keyword(text, kw)][: max(0, limit)]


def _unique(items: Sequence[str]) -> List[str]:
    seen = set()
    out = []
    for it in items:
        if it in seen:
            continue
        seen.add(it)
        out.append(it)
    return out


def extract_social_tags(text: str, *, mention_limit: int = 5) -> List[str]:
    """Lower-cased `#hashtags` (all) followed by the first `@mentions`."""
    if not text:
        return []
    hashtags = [h.lower() for h in _HASHTAG_RE.findall(text)]
    mentions = [m.lower() for m in _MENTION_RE.findall(text)][: max(0, mention_limit)]
    return _unique(hashtags + mentions)


def extract_trending_topics(content: str, *, limit: int = 15) -> List[str]:
    """Rank hashtags, mentions, known trending keywords and capitalized phrases.

    Keyword hits score by occurrence count, other hashtags 2, everything else 1.
    Ties keep discovery order.
    """
    if not content:
        return []
    found: List[str] = extract_social_tags(content)
    keyword_scores: Dict[str, int] = {}
    for kw in TRENDING_KEYWORDS:
        hits = len(_keyword_pattern(kw).findall(content))
        if hits:
            keyword_scores[kw] = hits
            found.append(kw)
    found.extend(p.lower() for p in _PHRASE_RE.findall(content)[:10])

    def _score(term: str) -> int:
        if term in keyword_scores:
            return keyword_scores[term]
        return 2 if term.startswith("#") else 1

    return sorted(_unique(found), key=_score, reverse=True)[: max(0, limit)]
