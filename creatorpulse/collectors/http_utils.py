"""Shared HTTP plumbing for the platform collectors."""

from __future__ import annotations

import logging
import random
import threading
import time
from functools import wraps
from typing import Any, Dict, Optional

import requests


logger = logging.getLogger(__name__)

USER_AGENT = "CreatorPulse/1.0"


class CollectorError(RuntimeError):
    """A platform fetch failed (missing credentials, HTTP error, bad payload)."""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.status_code is None or self.status_code == 429 or self.status_code >= 500


def retry_with_backoff(max_retries: int = 3, base_delay: float = 1.0, max_delay: float = 30.0):
    """Retry transient failures with exponential backoff and jitter.

    Non-retryable CollectorErrors (4xx other than 429) are raised immediately.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(max_retries):
                try:
                    return func(*args, **kwargs)
                except (CollectorError, requests.RequestException) as e:
                    if isinstance(e, CollectorError) and not e.retryable:
                        raise
                    if attempt == max_retries - 1:
                        logger.error(f"{func.__name__} failed after {max_retries} attempts: {e}")
                        raise
                    delay = min(base_delay * (2 ** attempt) + random.uniform(0, 1), max_delay)
                    logger.warning(f"{func.__name__} attempt {attempt + 1} failed: {e}. Retrying in {delay:.1f}s")
                    time.sleep(delay)

        return wrapper
    return decorator


class RateLimiter:
    """Sliding-window limiter shared by the calls of one client."""

    def __init__(self, max_calls: int, time_window: float = 60):
        self.max_calls = max_calls
        self.time_window = time_window
        self.calls = []
        self.lock = threading.Lock()

    def wait_if_needed(self):
        with self.lock:
            now = time.time()
            self.calls = [t for t in self.calls if now - t < self.time_window]
            if len(self.calls) >= self.max_calls:
                sleep_time = self.time_window - (now - self.calls[0])
                if sleep_time > 0:
                    logger.info(f"Rate limit reached, waiting {sleep_time:.1f} seconds")
                    time.sleep(sleep_time)
                    now = time.time()
                    self.calls = [t for t in self.calls if now - t < self.time_window]
            self.calls.append(now)


def build_session(headers: Optional[Dict[str, str]] = None) -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT})
    if headers:
        session.headers.update(headers)
    return session


def json_or_raise(resp: Any, what: str) -> Any:
    """Decode a JSON response, turning HTTP and decode failures into CollectorError."""
    if resp.status_code >= 400:
        raise CollectorError(f"Failed to {what}: {resp.status_code} {getattr(resp, 'reason', '')}".strip(), status_code=resp.status_code)
    try:
        return resp.json()
    except ValueError as e:
        raise CollectorError(f"Failed to {what}: invalid JSON ({e})") from e
