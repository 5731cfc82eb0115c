"""
Genre metadata caches.

Artist and album genres rarely change, so lookups are memoized. Two
backends share one interface: a bounded in-process LRU (the default) and
a Redis cache with TTLs for deployments that run several workers.
"""

import json
import logging
import threading
from collections import OrderedDict
from typing import Any, List, Optional, Protocol

import redis

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 2048
DEFAULT_GENRE_TTL = 86400


class GenreCache(Protocol):
    """Memo of genre lists keyed by artist id and album id."""

    def get_artist_genres(self, artist_id: str) -> Optional[List[str]]: ...

    def set_artist_genres(self, artist_id: str, genres: List[str]) -> bool: ...

    def get_album_genres(self, album_id: str) -> Optional[List[str]]: ...

    def set_album_genres(self, album_id: str, genres: List[str]) -> bool: ...


class _LRU:
    """Thread-safe ordered map that evicts the least recently used key."""

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._data: "OrderedDict[str, List[str]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[List[str]]:
        with self._lock:
            if key not in self._data:
                return None
            self._data.move_to_end(key)
            return list(self._data[key])

    def set(self, key: str, value: List[str]) -> None:
        with self._lock:
            self._data[key] = list(value)
            self._data.move_to_end(key)
            while len(self._data) > self._capacity:
                self._data.popitem(last=False)


class LRUGenreCache:
    """
    In-process genre cache with a fixed capacity per map.

    Example:
        cache = LRUGenreCache(capacity=1000)
        cache.set_artist_genres("artist1", ["pop"])
        cache.get_artist_genres("artist1")  # ["pop"]
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        self._artists = _LRU(capacity)
        self._albums = _LRU(capacity)

    def get_artist_genres(self, artist_id: str) -> Optional[List[str]]:
        return self._artists.get(artist_id)

    def set_artist_genres(self, artist_id: str, genres: List[str]) -> bool:
        self._artists.set(artist_id, genres)
        return True

    def get_album_genres(self, album_id: str) -> Optional[List[str]]:
        return self._albums.get(album_id)

    def set_album_genres(self, album_id: str, genres: List[str]) -> bool:
        self._albums.set(album_id, genres)
        return True



class RedisGenreCache:
    """
    Redis-backed genre cache.

    Redis failures degrade to cache misses; they never fail a lookup.

    Example:
        cache = RedisGenreCache(redis.from_url('redis://localhost:6379/0'))
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        key_prefix: str = "songquiz:cache:",
        genre_ttl: int = DEFAULT_GENRE_TTL,
    ):
        """
        Initialize the cache.

        Args:
            redis_client: Redis client instance.
            key_prefix: Prefix for all cache keys.
            genre_ttl: TTL in seconds for artist and album genre entries.
        """
        self._redis = redis_client
        self._prefix = key_prefix
        self._genre_ttl = genre_ttl

    def _make_key(self, namespace: str, *parts: str) -> str:
        """Create a cache key from namespace and parts."""
        return f"{self._prefix}{namespace}:{':'.join(parts)}"

    def _serialize(self, data: Any) -> bytes:
        """Serialize data to bytes for storage."""
        return json.dumps(data).encode("utf-8")

    def _deserialize(self, data: bytes) -> Any:
        """Deserialize bytes to Python object."""
        if data is None:
            return None
        return json.loads(data.decode("utf-8"))

    def _get(self, namespace: str, item_id: str) -> Optional[List[str]]:
        try:
            data = self._redis.get(self._make_key(namespace, item_id))
            if data is None:
                logger.debug(f"Cache miss for {namespace}: {item_id}")
                return None
            return self._deserialize(data)
        except (redis.RedisError, ValueError) as e:
            logger.warning(f"Redis error getting {namespace} cache: {e}")
            return None

    def _set(self, namespace: str, item_id: str, genres: List[str]) -> bool:
        try:
            key = self._make_key(namespace, item_id)
            self._redis.setex(key, self._genre_ttl, self._serialize(list(genres)))
            return True
        except redis.RedisError as e:
            logger.warning(f"Redis error setting {namespace} cache: {e}")
            return False

    def get_artist_genres(self, artist_id: str) -> Optional[List[str]]:
        return self._get("artist_genres", artist_id)

    def set_artist_genres(self, artist_id: str, genres: List[str]) -> bool:
        return self._set("artist_genres", artist_id, genres)

    def get_album_genres(self, album_id: str) -> Optional[List[str]]:
        return self._get("album_genres", album_id)

    def set_album_genres(self, album_id: str, genres: List[str]) -> bool:
        return self._set("album_genres", album_id, genres)
