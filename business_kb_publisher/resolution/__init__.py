"""
Identifier resolution: static tables, persistent cache, remote lookup.

Usage:
    from business_kb_publisher.resolution import IdentifierResolver

    resolver = IdentifierResolver(cache=IdentifierCache(get_cache()))
    resolver.resolve_city("Seattle", "WA")  # "Q5083"
"""

from business_kb_publisher.resolution.cache import IdentifierCache
from business_kb_publisher.resolution.normalization import city_key, normalize_key
from business_kb_publisher.resolution.resolver import IdentifierResolver
from business_kb_publisher.resolution.sparql import SparqlClient

__all__ = [
    "IdentifierCache",
    "IdentifierResolver",
    "SparqlClient",
    "city_key",
    "normalize_key",
]
