from __future__ import annotations

import hashlib
import logging
import os
import re
from dataclasses import dataclass
from typing import Optional

import redis

from .base import TranslationBackend

logger = logging.getLogger(__name__)


@dataclass
class RedisTranslationBackend(TranslationBackend):
    """Shares translated patterns between processes through Redis.

    Errors talking to Redis are logged and behave like a miss, so a Redis
    outage only costs re-translation.
    """

    redis_url: str = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
    key_prefix: str = os.environ.get("EXTGLOB_PREFIX", "extglob:")

    def __post_init__(self) -> None:
        try:
            self._client = redis.from_url(self.redis_url)
        except Exception as e:
            safe_url = re.sub(r"://:[^@]+@", "://***@", self.redis_url)
            logger.error(f"Failed to connect to Redis at {safe_url}: {e}")
            raise

    def _k(self, key: str) -> str:
        # patterns are arbitrary user text, keep keys fixed-size
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return f"{self.key_prefix}{digest}"

    def get(self, key: str) -> Optional[bytes]:
        try:
            return self._client.get(self._k(key))
        except Exception as e:
            logger.error(f"Redis GET error for key {key!r}: {e}")
            return None

    def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        try:
            self._client.set(self._k(key), value, ex=ttl_seconds or None)
        except Exception as e:
            logger.error(f"Redis SET error for key {key!r}: {e}")

    def delete(self, key: str) -> None:
        try:
            self._client.delete(self._k(key))
        except Exception as e:
            logger.error(f"Redis DELETE error for key {key!r}: {e}")

    def health_check(self) -> bool:
        try:
            return bool(self._client.ping())
        except Exception:
            return False

    def clear(self) -> None:
        """Delete every entry under ``key_prefix``."""
        try:
            keys = list(self._client.scan_iter(match=f"{self.key_prefix}*"))
            if keys:
                self._client.delete(*keys)
                logger.info(f"Cleared {len(keys)} translated patterns")
        except Exception as e:
            logger.error(f"Error clearing translated patterns: {e}")

    def close(self) -> None:
        try:
            self._client.close()
        except Exception as e:
            logger.error(f"Error closing Redis connection: {e}")
