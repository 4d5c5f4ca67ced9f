"""Evidence cache keyed by (domain tag, normalized query) with lazy TTL expiry."""

import hashlib
import json
import re
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from workforce_lu.config import settings
from workforce_lu.types.evidence import RetrievalResult
from workforce_lu.utils.logging import setup_logger

logger = setup_logger(__name__)

Clock = Callable[[], datetime]
CacheKey = tuple[str, str]

_WHITESPACE = re.compile(r"\s+")


def normalize_query(query: str) -> str:
    """Lowercase, trim and collapse internal whitespace."""
    return _WHITESPACE.sub(" ", query.strip().lower())


def cache_key(domain_tag: str, query: str) -> CacheKey:
    """Build the cache key for a query against one domain."""
    return (str(domain_tag), normalize_query(query))


def format_key(key: CacheKey) -> str:
    """Human-readable form of a key, used in logs and stats."""
    return f"{key[0]}:{key[1]}"


@dataclass(frozen=True)
class CacheEntry:
    """Cached fetch results plus the time they were stored."""

    results: list[RetrievalResult]
    created_at: datetime = field(default_factory=datetime.now)

    def is_expired(self, now: datetime, ttl: timedelta) -> bool:
        return now - self.created_at >= ttl


class CacheStore(Protocol):
    """Storage interface the Retrieval Adapter depends on."""

    ttl: timedelta

    def get(self, key: CacheKey) -> CacheEntry | None:
        """Return a live entry, evicting it first if it has expired."""
        ...

    def put(self, key: CacheKey, results: list[RetrievalResult]) -> None:
        """Store results stamped with the current time (last writer wins)."""
        ...

    def evict_if_expired(self, key: CacheKey) -> bool:
        """Remove the entry if it has expired. Returns True if something was evicted."""
        ...

    def clear(self) -> int:
        """Remove every entry and return how many were removed."""
        ...

    def stats(self) -> dict[str, Any]:
        """Backend name, entry count and entry keys."""
        ...


class InMemoryCacheStore:
    """Process-wide dict cache guarded by a lock.

    Expired entries are only removed when they are read (lazy eviction).
    """

    def __init__(self, ttl_hours: int | None = None, clock: Clock | None = None):
        self.ttl = timedelta(hours=ttl_hours or settings.cache_ttl_hours)
        self._clock = clock or datetime.now
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: CacheKey) -> CacheEntry | None:
        if self.evict_if_expired(key):
            logger.debug(f"Cache expired: {format_key(key)}")
            return None

        with self._lock:
            entry = self._entries.get(key)

        if entry is None:
            logger.debug(f"Cache miss: {format_key(key)}")
            return None

        logger.info(
            f"Cache hit: {format_key(key)}",
            extra={"num_results": len(entry.results)},
        )
        return entry

    def put(self, key: CacheKey, results: list[RetrievalResult]) -> None:
        entry = CacheEntry(results=list(results), created_at=self._clock())
        with self._lock:
            self._entries[key] = entry

        logger.info(
            f"Cached retrieval results: {format_key(key)}",
            extra={"num_results": len(results)},
        )

    def evict_if_expired(self, key: CacheKey) -> bool:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.is_expired(now, self.ttl):
                del self._entries[key]
                return True
        return False

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()

        logger.info("Cleared cache", extra={"entries_deleted": count})
        return count

    def stats(self) -> dict[str, Any]:
        with self._lock:
            keys = [format_key(k) for k in self._entries]
        return {"backend": "memory", "size": len(keys), "entries": keys}


class JsonFileCacheStore:
    """File-based cache storing one JSON file per key.

    Survives process restarts; useful to save retrieval backend quota
    during development and demos.
    """

    def __init__(
        self,
        cache_dir: Path | None = None,
        ttl_hours: int | None = None,
        clock: Clock | None = None,
    ):
        """Initialize the file cache.

        Args:
            cache_dir: Directory to store cache files. If None, uses settings.cache_dir
            ttl_hours: Time-to-live for entries in hours. If None, uses settings.cache_ttl_hours
            clock: Time source. If None, uses datetime.now
        """
        self.cache_dir = cache_dir or settings.cache_dir
        self.ttl = timedelta(hours=ttl_hours or settings.cache_ttl_hours)
        self._clock = clock or datetime.now
        self._lock = threading.Lock()

        self.cache_dir.mkdir(parents=True, exist_ok=True)

        logger.info(
            "JsonFileCacheStore initialized",
            extra={"cache_dir": str(self.cache_dir), "ttl_hours": self.ttl.total_seconds() / 3600},
        )

    def _get_cache_path(self, key: CacheKey) -> Path:
        digest = hashlib.sha256(format_key(key).encode()).hexdigest()
        return self.cache_dir / f"{digest}.json"

    def _read(self, path: Path) -> tuple[CacheKey, CacheEntry] | None:
        """Load one cache file. Corrupted files are removed and reported as absent."""
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)

            key = (data["domain"], data["query"])
            entry = CacheEntry(
                results=[RetrievalResult.model_validate(r) for r in data["results"]],
                created_at=datetime.fromisoformat(data["timestamp"]),
            )
            return key, entry

        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, KeyError, ValueError, ValidationError) as e:
            logger.warning(f"Invalid cache file: {path}", extra={"error": str(e)})
            path.unlink(missing_ok=True)
            return None

    def get(self, key: CacheKey) -> CacheEntry | None:
        if self.evict_if_expired(key):
            logger.debug(f"Cache expired: {format_key(key)}")
            return None

        with self._lock:
            loaded = self._read(self._get_cache_path(key))

        if loaded is None:
            logger.debug(f"Cache miss: {format_key(key)}")
            return None

        _, entry = loaded
        logger.info(
            f"Cache hit: {format_key(key)}",
            extra={"num_results": len(entry.results)},
        )
        return entry

    def put(self, key: CacheKey, results: list[RetrievalResult]) -> None:
        path = self._get_cache_path(key)
        cache_data = {
            "domain": key[0],
            "query": key[1],
            "timestamp": self._clock().isoformat(),
            "results": [r.model_dump() for r in results],
        }

        try:
            with self._lock, path.open("w", encoding="utf-8") as f:
                json.dump(cache_data, f, indent=2, ensure_ascii=False)

            logger.info(
                f"Cached retrieval results: {format_key(key)}",
                extra={"num_results": len(results)},
            )
        except (OSError, TypeError) as e:
            logger.error(f"Failed to write cache: {path}", extra={"error": str(e)})

    def evict_if_expired(self, key: CacheKey) -> bool:
        path = self._get_cache_path(key)
        with self._lock:
            loaded = self._read(path)
            if loaded is None:
                return False
            _, entry = loaded
            if entry.is_expired(self._clock(), self.ttl):
                path.unlink(missing_ok=True)
                return True
        return False

    def clear(self) -> int:
        count = 0
        with self._lock:
            for cache_file in self.cache_dir.glob("*.json"):
                try:
                    cache_file.unlink()
                    count += 1
                except OSError as e:
                    logger.warning(
                        f"Failed to delete cache file: {cache_file}",
                        extra={"error": str(e)},
                    )

        logger.info("Cleared cache", extra={"files_deleted": count})
        return count

    def stats(self) -> dict[str, Any]:
        keys = []
        with self._lock:
            for cache_file in sorted(self.cache_dir.glob("*.json")):
                loaded = self._read(cache_file)
                if loaded is not None:
                    keys.append(format_key(loaded[0]))
        return {"backend": "file", "size": len(keys), "entries": keys}


_default_cache: CacheStore | None = None


def get_default_cache() -> CacheStore:
    """Get or create the process-wide cache chosen by settings.cache_backend."""
    global _default_cache
    if _default_cache is None:
        if settings.cache_backend == "file":
            _default_cache = JsonFileCacheStore()
        else:
            _default_cache = InMemoryCacheStore()
    return _default_cache
