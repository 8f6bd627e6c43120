"""Direct page fetch + main-text extraction.

Used for web sources when no Firecrawl key is configured. URLs are checked
before fetching (scheme, localhost, private IP ranges) and responses are
capped in size.
"""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlparse

import requests
import trafilatura

from creatorpulse.collectors.http_utils import USER_AGENT
from creatorpulse.ingestion.candidate_types import PageRecord


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageFetchResult:
    page: Optional[PageRecord]
    status: str
    error: Optional[str] = None


_PRIVATE_NETS = [
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("0.0.0.0/8"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
]


def _is_private_ip(hostname: str) -> bool:
    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return any(ip in net for net in _PRIVATE_NETS)


def blocked_reason(url: str) -> Optional[str]:
    """Why a URL must not be fetched, or None if it is allowed."""
    try:
        p = urlparse(url)
    except ValueError:
        return "invalid_url"
    if p.scheme not in ("http", "https"):
        return "bad_scheme"
    host = (p.hostname or "").strip().lower()
    if not host:
        return "missing_host"
    if host in ("localhost", "localhost.localdomain"):
        return "blocked_host"
    if _is_private_ip(host):
        return "blocked_private_ip"
    return None


def _metadata_value(meta, key: str) -> Optional[str]:
    if meta is None:
        return None
    if isinstance(meta, dict):
        value = meta.get(key)
    else:
        value = getattr(meta, key, None)
    return str(value) if value else None


def fetch_page(
    url: str,
    *,
    session: Optional[requests.Session] = None,
    timeout: int = 25,
    max_bytes: int = 2_000_000,
) -> PageFetchResult:
    if not url:
        return PageFetchResult(page=None, status="error", error="empty_url")
    reason = blocked_reason(url)
    if reason:
        return PageFetchResult(page=None, status="blocked", error=reason)
    http = session or requests
    try:
        with http.get(
            url,
            headers={"User-Agent": USER_AGENT},
            timeout=(5, timeout),
            allow_redirects=True,
            stream=True,
        ) as resp:
            if resp.status_code >= 400:
                return PageFetchResult(page=None, status=f"http_{resp.status_code}", error=f"http_{resp.status_code}")
            content = b""
            for chunk in resp.iter_content(chunk_size=64 * 1024):
                if not chunk:
                    continue
                content += chunk
                if len(content) > max_bytes:
                    return PageFetchResult(page=None, status="too_large", error="too_large")
            encoding = resp.encoding or "utf-8"

        try:
            html = content.decode(encoding, errors="replace")
        except LookupError:
            # unknown charset label sent by the server
            html = content.decode("utf-8", errors="replace")
        if not html.strip():
            return PageFetchResult(page=None, status="empty", error="empty_html")
        text = trafilatura.extract(html, include_comments=False, include_tables=False)
        if not text:
            return PageFetchResult(page=None, status="no_extract", error="no_extract")
        meta = trafilatura.extract_metadata(html)
        page = PageRecord(
            url=url,
            title=_metadata_value(meta, "title"),
            content=text.strip(),
            timestamp=_metadata_value(meta, "date") or datetime.now(timezone.utc).isoformat(),
            metadata={
                "sitename": _metadata_value(meta, "sitename"),
                "description": _metadata_value(meta, "description"),
                "method": "trafilatura",
            },
        )
        return PageFetchResult(page=page, status="ok")
    except Exception as e:
        logger.warning(f"Page fetch failed for {url}: {e}")
        return PageFetchResult(page=None, status="error", error=str(e))
