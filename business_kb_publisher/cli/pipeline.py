"""
Wiring and input loading shared by the publish scripts.

Input record format (one JSON object per business):

    {
      "business": {"name": "...", "url": "...", "industry": "...", "legal_form": "...",
                   "identifier": "Q123",
                   "location": {"city": "...", "state": "...", "country": "...",
                                "address": "...", "latitude": 47.6, "longitude": -122.3}},
      "crawl": {"description": "...", "phone": "...", "email": "...", "address": "...",
                "services": ["..."], "founded": "2015", "employee_count": 12,
                "social": {"twitter": "..."}, "source_url": "..."},
      "references": [{"url": "...", "title": "...", "source": "...", "retrieved": "2024-05-01"}]
    }
"""

import json
import logging
from datetime import date
from pathlib import Path

from business_kb_publisher.cache import AppCache, get_cache
from business_kb_publisher.config import Settings, get_settings
from business_kb_publisher.domain.models import BusinessSubject, CrawlData, Location, Reference
from business_kb_publisher.entity.builder import EntityBuilder
from business_kb_publisher.notability.evaluator import NotabilityEvaluator
from business_kb_publisher.publishing.client import PublishClient
from business_kb_publisher.publishing.orchestrator import PublishOrchestrator
from business_kb_publisher.resolution.cache import IdentifierCache
from business_kb_publisher.resolution.resolver import IdentifierResolver


logger = logging.getLogger(__name__)


class InputError(ValueError):
    """Raised for malformed input records."""


def _location_from_dict(data: dict | None) -> Location | None:
    if not data:
        return None
    return Location(
        city=data.get("city"),
        state=data.get("state"),
        country=data.get("country"),
        address=data.get("address"),
        latitude=data.get("latitude"),
        longitude=data.get("longitude"),
    )


def subject_from_dict(data: dict) -> BusinessSubject:
    if not isinstance(data, dict) or not data.get("name"):
        raise InputError("business record needs a 'name'")
    return BusinessSubject(
        name=data["name"],
        url=data.get("url"),
        industry=data.get("industry") or data.get("category"),
        legal_form=data.get("legal_form"),
        location=_location_from_dict(data.get("location")),
        identifier=data.get("identifier"),
    )


def _employee_count(value) -> int | None:
    """Whole number of employees, or None when the value is not one ("12" -> 12)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    try:
        return int(str(value).strip().replace(",", ""))
    except ValueError:
        logger.debug(f"Ignoring employee_count {value!r}")
        return None


def crawl_from_dict(data: dict | None) -> CrawlData | None:
    if not data:
        return None
    return CrawlData(
        description=data.get("description"),
        phone=data.get("phone"),
        email=data.get("email"),
        address=data.get("address"),
        services=tuple(data.get("services") or ()),
        founded=str(data["founded"]) if data.get("founded") else None,
        employee_count=_employee_count(data.get("employee_count")),
        social=dict(data.get("social") or {}),
        source_url=data.get("source_url"),
    )


def references_from_list(items: list | None) -> list[Reference]:
    references = []
    for item in items or []:
        if not isinstance(item, dict) or not item.get("url"):
            continue
        retrieved = item.get("retrieved")
        try:
            retrieved_date = date.fromisoformat(retrieved) if retrieved else None
        except ValueError as e:
            raise InputError(f"bad 'retrieved' date {retrieved!r}") from e
        references.append(
            Reference(
                url=item["url"],
                title=item.get("title", ""),
                source=item.get("source", ""),
                snippet=item.get("snippet", ""),
                retrieved=retrieved_date,
            )
        )
    return references


def parse_record(record: dict) -> tuple[BusinessSubject, CrawlData | None, list[Reference]]:
    if not isinstance(record, dict):
        raise InputError("record must be a JSON object")
    return (
        subject_from_dict(record.get("business")),
        crawl_from_dict(record.get("crawl")),
        references_from_list(record.get("references")),
    )


def load_record(path: Path) -> dict:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def iter_jsonl(path: Path):
    """Yield (line_number, record) pairs, skipping blank lines."""
    with open(path, encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            if line.strip():
                yield line_number, json.loads(line)


def build_orchestrator(
    settings: Settings | None = None,
    cache: AppCache | None = None,
    remote_lookup: bool = True,
    logger: logging.Logger | None = None,
) -> tuple[PublishOrchestrator, IdentifierResolver]:
    """
    Wire resolver, builder, evaluator and client from settings.

    Returns the resolver too so callers can drain revalidation and close it.
    """
    settings = settings or get_settings()
    cache = cache or get_cache(settings.cache_dir)
    resolver = IdentifierResolver(
        cache=IdentifierCache(cache),
        settings=settings,
        remote_lookup=remote_lookup,
    )
    if logger:
        logger.info(f"Identifier cache: {cache.count()} entries in {cache.cache_dir}")
    orchestrator = PublishOrchestrator(
        builder=EntityBuilder(resolver),
        client=PublishClient(settings),
        evaluator=NotabilityEvaluator(),
        settings=settings,
    )
    return orchestrator, resolver
