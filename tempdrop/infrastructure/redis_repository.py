"""
Redis Repository Base Class

Provides TTL-aware key/value operations and distributed locking on top of a
pooled Redis client. Connection problems and timeouts are raised as
TransientStoreError so callers can tell "not found" from "could not check".
"""

import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Sequence

import redis
from redis.exceptions import LockError, RedisError

from tempdrop.domain.errors import TransientStoreError

logger = logging.getLogger(__name__)


class RedisRepository:
    """Base Redis repository with TTL-aware writes and distributed locking."""

    def __init__(self, redis_client: redis.Redis, key_prefix: str = ""):
        self.redis = redis_client
        self.key_prefix = key_prefix

    def _make_key(self, key: str) -> str:
        """Create a prefixed key for Redis storage."""
        return f"{self.key_prefix}:{key}" if self.key_prefix else key

    def set_value(self, key: str, value: str, ttl_ms: Optional[int] = None,
                  only_if_absent: bool = False) -> bool:
        """
        Set a string value with optional millisecond TTL.

        Args:
            key: Redis key
            value: Value to store
            ttl_ms: Time to live in milliseconds
            only_if_absent: Only write if the key does not exist (SET NX)

        Returns:
            True if the value was written, False if NX prevented the write

        Raises:
            TransientStoreError: If Redis cannot be reached
        """
        try:
            result = self.redis.set(
                self._make_key(key),
                value,
                px=ttl_ms or None,
                nx=only_if_absent,
            )
            return bool(result)
        except RedisError as e:
            raise TransientStoreError(f"Error setting key {key}: {e}", e) from e

    def set_json(self, key: str, data: Dict[str, Any], ttl_ms: Optional[int] = None) -> bool:
        """
        Set JSON data with optional millisecond TTL.

        Raises:
            TransientStoreError: If Redis cannot be reached
        """
        return self.set_value(key, json.dumps(data), ttl_ms=ttl_ms)

    def get_value(self, key: str) -> Optional[str]:
        """
        Get a string value.

        Returns:
            The value, or None if the key does not exist

        Raises:
            TransientStoreError: If Redis cannot be reached
        """
        try:
            data = self.redis.get(self._make_key(key))
        except RedisError as e:
            raise TransientStoreError(f"Error getting key {key}: {e}", e) from e

        return _decode(data)

    def get_json(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Get JSON data from Redis.

        Returns:
            Dictionary if found and valid JSON, None otherwise

        Raises:
            TransientStoreError: If Redis cannot be reached
        """
        data = self.get_value(key)
        if data is None:
            return None

        try:
            return json.loads(data)
        except json.JSONDecodeError as e:
            logger.warning(f"Discarding malformed JSON for key {key}: {e}")
            return None

    def get_many(self, keys: Sequence[str]) -> List[Optional[str]]:
        """
        Get several string values in one round trip (MGET).

        Returns:
            Values in the same order as keys, None for missing keys

        Raises:
            TransientStoreError: If Redis cannot be reached
        """
        if not keys:
            return []

        try:
            values = self.redis.mget([self._make_key(key) for key in keys])
        except RedisError as e:
            raise TransientStoreError(f"Error getting {len(keys)} keys: {e}", e) from e

        return [_decode(value) for value in values]

    def delete(self, key: str) -> bool:
        """
        Delete a key from Redis.

        Returns:
            True if key was deleted, False otherwise

        Raises:
            TransientStoreError: If Redis cannot be reached
        """
        try:
            return self.redis.delete(self._make_key(key)) > 0
        except RedisError as e:
            raise TransientStoreError(f"Error deleting key {key}: {e}", e) from e

    def exists(self, key: str) -> bool:
        """
        Check if a key exists in Redis.

        Raises:
            TransientStoreError: If Redis cannot be reached
        """
        try:
            return self.redis.exists(self._make_key(key)) > 0
        except RedisError as e:
            raise TransientStoreError(f"Error checking existence of key {key}: {e}", e) from e

    @contextmanager
    def distributed_lock(self, lock_name: str, timeout: int = 10, blocking_timeout: Optional[float] = None):
        """
        Distributed lock context manager using Redis.

        Args:
            lock_name: Name of the lock
            timeout: Lock timeout in seconds; the lock frees itself after this
            blocking_timeout: How long to wait for the lock; None or 0 fails immediately

        Yields:
            Lock object if acquired successfully

        Raises:
            LockError: If lock cannot be acquired
            TransientStoreError: If Redis cannot be reached
        """
        lock_key = self._make_key(f"lock:{lock_name}")
        lock = self.redis.lock(lock_key, timeout=timeout)

        try:
            if blocking_timeout:
                acquired = lock.acquire(blocking=True, blocking_timeout=blocking_timeout)
            else:
                acquired = lock.acquire(blocking=False)
        except RedisError as e:
            raise TransientStoreError(f"Error acquiring lock {lock_name}: {e}", e) from e

        if not acquired:
            raise LockError(f"Could not acquire lock: {lock_name}")

        try:
            yield lock
        finally:
            try:
                lock.release()
            except LockError:
                # Lock may have expired, which is fine
                logger.warning(f"Lock {lock_name} expired before release")
            except RedisError as e:
                logger.warning(f"Could not release lock {lock_name}: {e}")


class RedisConnectionManager:
    """Manages Redis connection with connection pooling."""

    def __init__(self, host: str = 'localhost', port: int = 6379, db: int = 0,
                 password: Optional[str] = None, max_connections: int = 20,
                 socket_timeout: Optional[float] = 10.0, decode_responses: bool = False):
        self.connection_pool = redis.ConnectionPool(
            host=host,
            port=port,
            db=db,
            password=password,
            max_connections=max_connections,
            decode_responses=decode_responses,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
            socket_keepalive=True,
        )
        self._client = None

    @property
    def client(self) -> redis.Redis:
        """Get Redis client instance with connection pooling."""
        if self._client is None:
            self._client = redis.Redis(connection_pool=self.connection_pool)
        return self._client

    def health_check(self) -> bool:
        """Check if Redis connection is healthy."""
        try:
            return self.client.ping()
        except RedisError:
            return False

    def close(self):
        """Close the connection pool."""
        if self.connection_pool:
            self.connection_pool.disconnect()


def _decode(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode('utf-8')
    return value
