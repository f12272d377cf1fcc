"""Shared Redis connection handling for the puzzle stores."""

import logging
import json
from typing import Any, Dict, List, Optional
import redis

from ..config import settings

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when a write that must not fail silently cannot be completed."""


class RedisStore:
    """Base class wrapping a Redis client with JSON helpers."""

    def __init__(self, redis_url: Optional[str] = None, redis_client: Optional[redis.Redis] = None):
        """Initialize Redis connection."""
        self.redis_url = redis_url or settings.redis_url
        self.redis_client = redis_client or redis.from_url(self.redis_url, decode_responses=True)

    def set_json(self, key: str, value: Dict[str, Any]) -> bool:
        """Store a JSON-serializable value without expiry."""
        try:
            return bool(self.redis_client.set(key, json.dumps(value, default=str)))
        except redis.RedisError as e:
            logger.error(f"Error setting JSON key {key}: {e}")
            return False

    def get_json(self, key: str) -> Optional[Dict[str, Any]]:
        """Get a JSON value."""
        try:
            json_value = self.redis_client.get(key)

            if json_value is None:
                return None

            # Decode if bytes
            if isinstance(json_value, bytes):
                json_value = json_value.decode("utf-8")

            return json.loads(json_value)

        except (redis.RedisError, ValueError) as e:
            logger.error(f"Error getting JSON key {key}: {e}")
            return None

    def get_many_json(self, keys: List[str], strict: bool = False) -> List[Optional[Dict[str, Any]]]:
        """Get several JSON values in one round trip, preserving key order.

        With ``strict`` a read failure raises StoreError instead of yielding
        all-None results.
        """
        if not keys:
            return []
        try:
            raw_values = self.redis_client.mget(keys)
        except redis.RedisError as e:
            logger.error(f"Error reading {len(keys)} JSON keys: {e}")
            if strict:
                raise StoreError(f"Could not read {len(keys)} keys: {e}") from e
            return [None] * len(keys)

        values: List[Optional[Dict[str, Any]]] = []
        for key, raw in zip(keys, raw_values):
            if raw is None:
                values.append(None)
                continue
            try:
                values.append(json.loads(raw.decode("utf-8") if isinstance(raw, bytes) else raw))
            except ValueError as e:
                logger.warning(f"Skipping undecodable value at {key}: {e}")
                values.append(None)
        return values

    def health_check(self) -> bool:
        """Check if Redis connection is healthy."""
        try:
            self.redis_client.ping()
            return True
        except redis.RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False

    def close(self):
        """Close Redis connection."""
        try:
            self.redis_client.close()
        except redis.RedisError as e:
            logger.error(f"Error closing Redis connection: {e}")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
