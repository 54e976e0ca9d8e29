"""
Identifier resolver: free-text value -> canonical identifier.

Resolution order (first hit wins):
1. Static tables (in-process, no I/O)
2. Persistent identifier cache
3. Remote SPARQL lookup (result written back to the cache)

Stale cache entries are returned immediately and queued for revalidation;
the lookup never waits on it. A failed or empty lookup returns None and is
not cached, so the next call tries again.

resolve() never raises: cache and network failures degrade to None.
"""

import logging
import sqlite3
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import diskcache

from business_kb_publisher.config import Settings, get_settings
from business_kb_publisher.domain.models import (
    EntityType,
    IdentifierCacheEntry,
    ResolutionSource,
)
from business_kb_publisher.domain.validation import is_valid_identifier
from business_kb_publisher.resolution.cache import IdentifierCache
from business_kb_publisher.resolution.normalization import city_key, normalize_key
from business_kb_publisher.resolution.sparql import SparqlClient
from business_kb_publisher.resolution.static_tables import static_lookup

logger = logging.getLogger(__name__)

# Storage failures the resolver absorbs instead of raising
CACHE_ERRORS = (diskcache.Timeout, sqlite3.Error, OSError)


class IdentifierResolver:
    """Resolves cities, industries, legal forms and countries to identifiers."""

    def __init__(
        self,
        cache: IdentifierCache | None = None,
        lookup: SparqlClient | None = None,
        settings: Settings | None = None,
        remote_lookup: bool = True,
        background_revalidation: bool = True,
        clock=time.time,
    ):
        """
        Args:
            cache: Persistent identifier cache (None disables caching)
            lookup: SPARQL client (created from settings if omitted)
            settings: Settings for stale horizon and endpoints
            remote_lookup: Set False to resolve from static tables and cache only
            background_revalidation: Revalidate stale entries on a worker thread;
                when False they queue until revalidate_pending() is called
            clock: Time source returning epoch seconds
        """
        settings = settings or get_settings()
        self.cache = cache
        self.remote_lookup = remote_lookup
        self.lookup = lookup if lookup is not None else (
            SparqlClient(settings=settings) if remote_lookup else None
        )
        self.stale_after_seconds = settings.qid_cache_stale_days * 86400
        self.background_revalidation = background_revalidation
        self.clock = clock

        self._pending: set[tuple[EntityType, str]] = set()
        self._pending_lock = threading.Lock()
        self._executor: ThreadPoolExecutor | None = None

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def resolve(self, entity_type: EntityType | str, key: str | None) -> str | None:
        """
        Resolve a value to an identifier.

        Args:
            entity_type: Kind of value ("city", "industry", "legal_form", "country")
            key: Raw or normalized value; normalized here

        Returns:
            Identifier like "Q5083", or None if unresolvable
        """
        entity_type = EntityType(entity_type)
        search_key = normalize_key(key)
        if not search_key:
            return None

        identifier = static_lookup(entity_type, search_key)
        if identifier:
            self._note_static_hit(entity_type, search_key, identifier)
            return identifier

        entry = self._cache_get(entity_type, search_key)
        if entry is not None:
            self._cache_call(self.cache.record_hit, entry)
            if entry.is_stale(self.clock(), self.stale_after_seconds):
                self._schedule_revalidation(entity_type, search_key)
            return entry.identifier

        if not self.remote_lookup or self.lookup is None:
            return None

        identifier = self.lookup.lookup(entity_type, search_key)
        if identifier:
            logger.debug(f"Resolved {entity_type.value} '{search_key}' -> {identifier} (remote)")
            self._cache_call(
                self.cache.store if self.cache else None,
                entity_type,
                search_key,
                identifier,
                ResolutionSource.REMOTE_LOOKUP,
            )
        return identifier

    def resolve_city(self, city: str | None, state: str | None = None) -> str | None:
        return self.resolve(EntityType.CITY, city_key(city, state))

    def resolve_industry(self, industry: str | None) -> str | None:
        return self.resolve(EntityType.INDUSTRY, industry)

    def resolve_legal_form(self, legal_form: str | None) -> str | None:
        return self.resolve(EntityType.LEGAL_FORM, legal_form)

    def resolve_country(self, country: str | None) -> str | None:
        return self.resolve(EntityType.COUNTRY, country)

    def record_manual(self, entity_type: EntityType | str, key: str, identifier: str) -> None:
        """Pin a mapping chosen by an operator; overwrites any cached value."""
        if not is_valid_identifier(identifier):
            raise ValueError(f"Invalid identifier: {identifier!r}")
        entity_type = EntityType(entity_type)
        search_key = normalize_key(key)
        if not search_key:
            raise ValueError("Empty search key")
        if self.cache is None:
            raise ValueError("Manual mappings need a persistent cache")
        self.cache.store(entity_type, search_key, identifier, ResolutionSource.MANUAL)
        logger.info(f"Pinned {entity_type.value} '{search_key}' -> {identifier}")

    # ------------------------------------------------------------------
    # Revalidation
    # ------------------------------------------------------------------

    def pending_revalidations(self) -> int:
        with self._pending_lock:
            return len(self._pending)

    def revalidate_pending(self) -> int:
        """
        Revalidate every queued stale entry synchronously.

        Returns:
            Number of entries whose identifier changed
        """
        with self._pending_lock:
            queued = list(self._pending)
        changed = 0
        for entity_type, search_key in queued:
            if self._revalidate(entity_type, search_key):
                changed += 1
        return changed

    def revalidate_stale(self, limit: int | None = None) -> tuple[int, int]:
        """
        Revalidate stale cache entries now (used by the qid-cache command).

        Returns:
            (checked, changed)
        """
        if self.cache is None:
            return 0, 0
        stale = self.cache.stale_entries(self.stale_after_seconds)
        if limit is not None:
            stale = stale[:limit]
        changed = sum(1 for entry in stale if self._revalidate(entry.entity_type, entry.search_key))
        return len(stale), changed

    def close(self) -> None:
        """Wait for background revalidation to finish."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def _schedule_revalidation(self, entity_type: EntityType, search_key: str) -> None:
        with self._pending_lock:
            if (entity_type, search_key) in self._pending:
                return
            self._pending.add((entity_type, search_key))
            if not self.background_revalidation:
                return
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix="qid-revalidate"
                )
            self._executor.submit(self._revalidate, entity_type, search_key)

    def _revalidate(self, entity_type: EntityType, search_key: str) -> bool:
        """Refresh one cache entry. Returns True if its identifier changed."""
        try:
            return self._refresh_entry(entity_type, search_key)
        except CACHE_ERRORS as e:
            logger.warning(f"Revalidation of {entity_type.value} '{search_key}' failed: {e}")
            return False
        finally:
            with self._pending_lock:
                self._pending.discard((entity_type, search_key))

    def _refresh_entry(self, entity_type: EntityType, search_key: str) -> bool:
        entry = self.cache.get(entity_type, search_key) if self.cache else None
        if entry is None:
            return False

        if entry.source == ResolutionSource.STATIC_TABLE:
            current = static_lookup(entity_type, search_key)
        elif entry.source == ResolutionSource.MANUAL:
            exists = self.lookup.validate_identifier(entry.identifier) if self.lookup else None
            if exists is False:
                logger.warning(
                    f"Pinned {entity_type.value} '{search_key}' -> {entry.identifier} "
                    "no longer exists; keeping it until an operator replaces it"
                )
                return False
            current = entry.identifier if exists else None
        else:
            current = self.lookup.lookup(entity_type, search_key) if self.lookup else None

        if not current:
            # Unreachable or no match: keep the old mapping and retry on a later hit
            logger.debug(f"Could not revalidate {entity_type.value} '{search_key}'")
            return False

        changed = current != entry.identifier
        if changed:
            logger.info(
                f"{entity_type.value} '{search_key}' moved {entry.identifier} -> {current}"
            )
        entry.identifier = current
        entry.last_validated_at = self.clock()
        self.cache.put(entry)
        return changed

    # ------------------------------------------------------------------
    # Cache access that never raises
    # ------------------------------------------------------------------

    def _cache_get(self, entity_type: EntityType, search_key: str) -> IdentifierCacheEntry | None:
        if self.cache is None:
            return None
        try:
            return self.cache.get(entity_type, search_key)
        except CACHE_ERRORS as e:
            logger.warning(f"Identifier cache read failed for '{search_key}': {e}")
            return None

    def _cache_call(self, method, *args) -> None:
        if self.cache is None or method is None:
            return
        try:
            method(*args)
        except CACHE_ERRORS as e:
            logger.warning(f"Identifier cache write failed: {e}")

    def _note_static_hit(self, entity_type: EntityType, search_key: str, identifier: str) -> None:
        entry = self._cache_get(entity_type, search_key)
        if entry is None:
            self._cache_call(
                self.cache.store if self.cache else None,
                entity_type,
                search_key,
                identifier,
                ResolutionSource.STATIC_TABLE,
            )
        else:
            self._cache_call(self.cache.record_hit, entry)
