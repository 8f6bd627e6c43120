"""URL helpers for candidate ids, source labels and source routing."""

from __future__ import annotations

import hashlib
import re
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse


TRACKING_PARAMS = {
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "utm_id",
    "gclid",
    "fbclid",
    "mc_cid",
    "mc_eid",
    "ref",
    "ref_src",
    "s",
    "t",
    "si",
}

SOCIAL_MEDIA_HOSTS = (
    "twitter.com",
    "x.com",
    "youtube.com",
    "youtu.be",
    "instagram.com",
    "facebook.com",
    "linkedin.com",
)

X_HOSTS = ("x.com", "twitter.com")
YOUTUBE_HOSTS = ("youtube.com",)

_X_USER_RE = re.compile(r"^/([^/?#]+)")
_YOUTUBE_CHANNEL_RE = re.compile(r"^/(?:channel/|@|c/|user/)?([^/?#]+)")


def canonicalize_url(url: str) -> str:
    """Lowercase scheme/host, drop fragment and tracking params, sort the rest."""
    if not url:
        return ""
    p = urlparse(url.strip())
    scheme = (p.scheme or "https").lower()
    netloc = (p.netloc or "").lower()
    kept = [(k, v) for k, v in parse_qsl(p.query, keep_blank_values=True) if k.lower() not in TRACKING_PARAMS]
    kept.sort(key=lambda kv: (kv[0].lower(), kv[1]))
    return urlunparse((scheme, netloc, p.path or "/", "", urlencode(kept, doseq=True), ""))


def url_hash(url: str) -> str:
    """Stable sha256 hex digest of the canonical URL."""
    return hashlib.sha256(canonicalize_url(url).encode("utf-8")).hexdigest()


def domain_label(url: str) -> str:
    """Hostname without a leading `www.`, or 'unknown' when the URL has none."""
    try:
        host = (urlparse(url or "").hostname or "").lower()
    except ValueError:
        return "unknown"
    if host.startswith("www."):
        host = host[4:]
    return host or "unknown"


def _on_host(url: str, hosts) -> bool:
    host = domain_label(url)
    return any(host == h or host.endswith("." + h) for h in hosts)


def is_social_media_url(url: str) -> bool:
    return _on_host(url, SOCIAL_MEDIA_HOSTS)


def _url_path(url: str) -> str:
    try:
        return urlparse(url or "").path or ""
    except ValueError:
        return ""


def x_username_from_url(url: str) -> Optional[str]:
    if not _on_host(url, X_HOSTS):
        return None
    m = _X_USER_RE.match(_url_path(url))
    if not m:
        return None
    name = m.group(1)
    # x.com/search, x.com/i/... are not profiles
    if name.lower() in ("search", "i", "home", "explore", "hashtag"):
        return None
    return name


def youtube_channel_from_url(url: str) -> Optional[str]:
    if not _on_host(url, YOUTUBE_HOSTS):
        return None
    m = _YOUTUBE_CHANNEL_RE.match(_url_path(url))
    if not m:
        return None
    ident = m.group(1)
    if ident.lower() in ("watch", "results", "feed", "shorts"):
        return None
    return ident
