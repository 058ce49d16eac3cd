import os
from typing import Dict, Optional, Protocol

import redis

from logger import get_logger

logger = get_logger(__name__)


class PreferenceStore(Protocol):
    """String-keyed get/set storage used for sessions and settings."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class InMemoryPreferenceStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class RedisPreferenceStore:
    """Keeps every preference as a plain Redis string under a common prefix."""

    def __init__(self, redis_url: Optional[str] = None, key_prefix: str = ""):
        redis_url = redis_url or os.getenv("REDIS_URL")
        if not redis_url:
            raise EnvironmentError("REDIS_URL environment variable is not set and no URL was provided.")

        self._client: redis.Redis = redis.Redis.from_url(redis_url, decode_responses=True)
        self._client.ping()
        self._prefix = key_prefix
        logger.info("Successfully connected to Redis.")

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> Optional[str]:
        try:
            return self._client.get(self._key(key))
        except redis.RedisError as e:
            # an unreadable value loads as missing
            logger.error("Failed to read %s from Redis: %s", key, e)
            return None

    def set(self, key: str, value: str) -> None:
        try:
            self._client.set(self._key(key), value)
        except redis.RedisError as e:
            # writes are fire-and-forget; the in-memory state stays authoritative
            logger.error("Failed to persist %s to Redis: %s", key, e)
