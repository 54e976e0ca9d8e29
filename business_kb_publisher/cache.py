"""
Persistent cache layer using diskcache.

Keys are stored as "<namespace>:<key>" in a single SQLite-backed cache that
concurrent publish requests share across threads and processes. Writes are
plain overwrites, so the last writer wins.

Usage:
    from business_kb_publisher.cache import get_cache

    cache = get_cache()
    cache.set("qid_cache", "city:seattle, wa", record)
    record = cache.get("qid_cache", "city:seattle, wa")
"""

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any, Optional

import diskcache

from business_kb_publisher.config import get_cache_dir

logger = logging.getLogger(__name__)

_cache: Optional["AppCache"] = None

# Identifier mappings are tiny; 512 MB leaves plenty of headroom
DEFAULT_CACHE_SIZE_LIMIT = 512 * 1024 * 1024


class AppCache:
    """Namespaced key/value store on top of diskcache."""

    def __init__(
        self,
        cache_dir: Path,
        timeout: float = 30.0,
        size_limit: int = DEFAULT_CACHE_SIZE_LIMIT,
    ):
        """
        Args:
            cache_dir: Directory for cache files (created if missing)
            timeout: Seconds to wait for the SQLite lock under concurrent writers
            size_limit: Maximum cache size in bytes before eviction
        """
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._store = diskcache.Cache(str(self.cache_dir), timeout=timeout, size_limit=size_limit)
        logger.debug(f"Opened cache at {self.cache_dir}")

    @staticmethod
    def _full_key(namespace: str, key: str) -> str:
        return f"{namespace}:{key}"

    def _namespace_keys(self, namespace: str) -> list[str]:
        prefix = f"{namespace}:"
        return [k for k in self._store if isinstance(k, str) and k.startswith(prefix)]

    def get(self, namespace: str, key: str) -> Any | None:
        return self._store.get(self._full_key(namespace, key))

    def set(self, namespace: str, key: str, value: Any) -> None:
        self._store.set(self._full_key(namespace, key), value)

    def delete(self, namespace: str, key: str) -> bool:
        """Delete a key; returns whether it existed."""
        return bool(self._store.delete(self._full_key(namespace, key)))

    def iter_namespace(self, namespace: str) -> Iterator[tuple[str, Any]]:
        """Yield (key, value) pairs under a namespace, without the prefix."""
        offset = len(namespace) + 1
        for full_key in self._namespace_keys(namespace):
            value = self._store.get(full_key)
            # Skip keys deleted by another writer since the scan
            if value is not None:
                yield full_key[offset:], value

    def clear_namespace(self, namespace: str) -> int:
        """Remove every key in a namespace; returns how many were removed."""
        removed = 0
        for full_key in self._namespace_keys(namespace):
            removed += bool(self._store.delete(full_key))
        return removed

    def count(self, namespace: str | None = None) -> int:
        if namespace is None:
            return len(self._store)
        return len(self._namespace_keys(namespace))

    def stats(self) -> dict:
        """Entry counts per namespace plus on-disk size."""
        by_namespace: dict[str, int] = {}
        for full_key in self._store:
            namespace = full_key.partition(":")[0] if ":" in str(full_key) else "unknown"
            by_namespace[namespace] = by_namespace.get(namespace, 0) + 1

        return {
            "total": len(self._store),
            "by_namespace": by_namespace,
            "size_mb": round(self._store.volume() / (1024 * 1024), 2),
            "cache_dir": str(self.cache_dir),
        }

    def close(self):
        self._store.close()


def get_cache(cache_dir: Path | None = None, timeout: float = 30.0) -> AppCache:
    """
    Get or create the process-wide cache.

    Args:
        cache_dir: Directory for cache files (default: settings.cache_dir)
        timeout: Seconds to wait for the SQLite lock
    """
    global _cache
    if _cache is None:
        _cache = AppCache(cache_dir or get_cache_dir(), timeout=timeout)
    return _cache
