"""
Persistent identifier cache on top of AppCache.

Entries live in the "qid_cache" namespace keyed by "<entity_type>:<search_key>".
Values are stored as plain dicts so cached data survives model changes.
"""

import logging
import time
from collections.abc import Iterator
from dataclasses import asdict

from business_kb_publisher.cache import AppCache
from business_kb_publisher.constants import QID_CACHE_NAMESPACE
from business_kb_publisher.domain.models import (
    EntityType,
    IdentifierCacheEntry,
    ResolutionSource,
)

logger = logging.getLogger(__name__)


def _cache_key(entity_type: EntityType, search_key: str) -> str:
    return f"{entity_type.value}:{search_key}"


def _to_record(entry: IdentifierCacheEntry) -> dict:
    record = asdict(entry)
    record["entity_type"] = entry.entity_type.value
    record["source"] = entry.source.value
    return record


def _from_record(record: dict) -> IdentifierCacheEntry | None:
    try:
        return IdentifierCacheEntry(
            entity_type=EntityType(record["entity_type"]),
            search_key=record["search_key"],
            identifier=record["identifier"],
            source=ResolutionSource(record["source"]),
            query_count=int(record.get("query_count", 1)),
            last_queried_at=float(record.get("last_queried_at", 0.0)),
            last_validated_at=float(record.get("last_validated_at", 0.0)),
        )
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Discarding malformed identifier cache record {record!r}: {e}")
        return None


class IdentifierCache:
    """Stores IdentifierCacheEntry records; last writer wins."""

    def __init__(self, cache: AppCache, clock=time.time):
        self.cache = cache
        self.clock = clock

    def get(self, entity_type: EntityType, search_key: str) -> IdentifierCacheEntry | None:
        record = self.cache.get(QID_CACHE_NAMESPACE, _cache_key(entity_type, search_key))
        if not isinstance(record, dict):
            return None
        return _from_record(record)

    def put(self, entry: IdentifierCacheEntry) -> None:
        self.cache.set(
            QID_CACHE_NAMESPACE, _cache_key(entry.entity_type, entry.search_key), _to_record(entry)
        )

    def record_hit(self, entry: IdentifierCacheEntry) -> IdentifierCacheEntry:
        """Bump query statistics for a cache hit and persist them."""
        entry.query_count += 1
        entry.last_queried_at = self.clock()
        self.put(entry)
        return entry

    def store(
        self,
        entity_type: EntityType,
        search_key: str,
        identifier: str,
        source: ResolutionSource,
    ) -> IdentifierCacheEntry:
        """Create (or overwrite) an entry validated as of now."""
        now = self.clock()
        entry = IdentifierCacheEntry(
            entity_type=entity_type,
            search_key=search_key,
            identifier=identifier,
            source=source,
            query_count=1,
            last_queried_at=now,
            last_validated_at=now,
        )
        self.put(entry)
        return entry

    def delete(self, entity_type: EntityType, search_key: str) -> bool:
        return self.cache.delete(QID_CACHE_NAMESPACE, _cache_key(entity_type, search_key))

    def entries(self) -> Iterator[IdentifierCacheEntry]:
        for _, record in self.cache.iter_namespace(QID_CACHE_NAMESPACE):
            if isinstance(record, dict):
                entry = _from_record(record)
                if entry is not None:
                    yield entry

    def stale_entries(self, horizon_seconds: float) -> list[IdentifierCacheEntry]:
        now = self.clock()
        return [entry for entry in self.entries() if entry.is_stale(now, horizon_seconds)]

    def count(self) -> int:
        return self.cache.count(QID_CACHE_NAMESPACE)

    def clear(self) -> int:
        return self.cache.clear_namespace(QID_CACHE_NAMESPACE)
