"""
Element text loading.

Reads the 3-line element text once per session from an http(s) URL or a
local file. Fetched text may be cached in Redis when a REDIS_URL is
configured; the cache is skipped whenever Redis is unreachable.
"""

from pathlib import Path
from typing import Optional

import redis
import requests

from config import GlobeServiceConfig
from globe_service.errors import LoadFailure
from logging_config import get_logger

logger = get_logger(__name__)

config = GlobeServiceConfig()


class ElementTextCache:
    """Redis cache of raw element text keyed by source."""

    def __init__(self, redis_client=None, ttl: int = config.CACHE_TTL):
        self.redis_client = redis_client
        self.ttl = ttl

    @classmethod
    def from_url(cls, url: Optional[str], ttl: int = config.CACHE_TTL) -> "ElementTextCache":
        if not url:
            return cls(None, ttl)
        try:
            client = redis.from_url(url, decode_responses=True)
            client.ping()
            logger.info("Redis connection established")
        except redis.exceptions.RedisError as e:
            logger.warning(f"Redis connection failed: {e}. Caching will be disabled.")
            client = None
        return cls(client, ttl)

    @staticmethod
    def key(source: str) -> str:
        return f"element_text:{source}"

    def get(self, source: str) -> Optional[str]:
        if self.redis_client is None:
            return None
        try:
            return self.redis_client.get(self.key(source))
        except redis.exceptions.RedisError as e:
            logger.warning(f"Redis read failed: {e}. Caching will be disabled.")
            self.redis_client = None
            return None

    def set(self, source: str, text: str) -> None:
        if self.redis_client is None:
            return
        try:
            self.redis_client.setex(self.key(source), self.ttl, text)
        except redis.exceptions.RedisError as e:
            logger.warning(f"Could not cache element text to Redis: {e}")


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def read_source(source: str, timeout: Optional[float] = None) -> str:
    """
    Read element text from a URL or file path.

    Raises:
        LoadFailure: If the source cannot be read or holds no text
    """
    try:
        if is_url(source):
            response = requests.get(source, timeout=timeout)
            response.raise_for_status()
            text = response.text
        else:
            text = Path(source).read_text(encoding="utf-8")
    except (requests.RequestException, OSError, UnicodeDecodeError) as e:
        raise LoadFailure(f"Failed to fetch element text from {source}: {e}") from e

    if not text.strip():
        raise LoadFailure(f"Element text from {source} is empty")
    return text


def fetch_element_text(source: str, timeout: Optional[float] = None,
                       cache: Optional[ElementTextCache] = None) -> str:
    """Return the element text of ``source``, using the cache when available."""
    if cache is not None:
        cached = cache.get(source)
        if cached:
            logger.info(f"Using cached element text for {source}")
            return cached

    text = read_source(source, timeout)
    logger.info(f"Fetched element text from {source} ({len(text)} bytes)")

    if cache is not None:
        cache.set(source, text)
    return text
