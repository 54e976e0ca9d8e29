"""
Data models for entity construction and publishing.

These dataclasses represent the business being published, the structured
entity built from it, the notability verdict, and the final publish outcome.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any

from business_kb_publisher.constants import (
    EARTH_GLOBE,
    GREGORIAN_CALENDAR,
    P_REFERENCE_URL,
    P_RETRIEVED,
    P_TITLE,
)

# ---------------------------------------------------------------------------
# Inputs (owned by the external business/crawl store, read-only here)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Location:
    """Where a business is located."""

    city: str | None = None
    state: str | None = None
    country: str | None = None
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass(frozen=True)
class BusinessSubject:
    """The business being published."""

    name: str
    url: str | None = None
    industry: str | None = None
    legal_form: str | None = None
    location: Location | None = None
    identifier: str | None = None  # Canonical ID if already published


@dataclass(frozen=True)
class CrawlData:
    """Attributes crawled from the business website."""

    description: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    services: tuple[str, ...] = ()
    founded: str | None = None  # "2015" or "2015-06-01"
    employee_count: int | None = None
    social: dict[str, str] = field(default_factory=dict)  # twitter/facebook/instagram
    source_url: str | None = None


@dataclass(frozen=True)
class Reference:
    """A citation supporting a claim or the subject's notability."""

    url: str
    title: str = ""
    source: str = ""  # Source tag: domain or source type
    snippet: str = ""
    retrieved: date | None = None

    def to_snaks(self) -> dict[str, list[dict]]:
        """Serialize as Wikibase reference snaks (P854 URL, P1476 title, P813 retrieved)."""
        snaks: dict[str, list[dict]] = {
            P_REFERENCE_URL: [_value_snak(P_REFERENCE_URL, ClaimValue.string(self.url))]
        }
        if self.title:
            snaks[P_TITLE] = [_value_snak(P_TITLE, ClaimValue.monolingual(self.title[:400]))]
        if self.retrieved is not None:
            snaks[P_RETRIEVED] = [_value_snak(P_RETRIEVED, ClaimValue.date(self.retrieved))]
        return snaks


# ---------------------------------------------------------------------------
# Structured entity (build target)
# ---------------------------------------------------------------------------


class ValueType(str, Enum):
    """Wikibase datavalue types."""

    STRING = "string"
    QUANTITY = "quantity"
    GLOBE_COORDINATE = "globecoordinate"
    TIME = "time"
    ITEM = "wikibase-entityid"
    MONOLINGUAL_TEXT = "monolingualtext"


class Rank(str, Enum):
    """Statement rank."""

    PREFERRED = "preferred"
    NORMAL = "normal"
    DEPRECATED = "deprecated"


@dataclass(frozen=True)
class ClaimValue:
    """A typed claim value, serialized as a Wikibase datavalue."""

    type: ValueType
    value: Any

    @classmethod
    def string(cls, text: str) -> ClaimValue:
        return cls(ValueType.STRING, text)

    @classmethod
    def monolingual(cls, text: str, language: str = "en") -> ClaimValue:
        return cls(ValueType.MONOLINGUAL_TEXT, {"text": text, "language": language})

    @classmethod
    def item(cls, identifier: str) -> ClaimValue:
        return cls(ValueType.ITEM, {"entity-type": "item", "id": identifier})

    @classmethod
    def quantity(cls, amount: int | float, unit: str = "1") -> ClaimValue:
        sign = "+" if amount >= 0 else ""
        return cls(ValueType.QUANTITY, {"amount": f"{sign}{amount}", "unit": unit})

    @classmethod
    def coordinate(cls, latitude: float, longitude: float, precision: float = 0.0001) -> ClaimValue:
        return cls(
            ValueType.GLOBE_COORDINATE,
            {
                "latitude": latitude,
                "longitude": longitude,
                "altitude": None,
                "precision": precision,
                "globe": EARTH_GLOBE,
            },
        )

    @classmethod
    def date(cls, when: date | str) -> ClaimValue:
        """
        Build a time value from a date or an ISO string.

        A bare year ("2015") gets year precision (9); full dates get day precision (11).

        Raises:
            ValueError: For any other string shape, or an impossible calendar date
        """
        if isinstance(when, date):
            text, precision = when.isoformat(), 11
        elif len(when) == 4 and when.isdigit():
            text, precision = f"{when}-00-00", 9
        else:
            text, precision = date.fromisoformat(when).isoformat(), 11
        return cls(
            ValueType.TIME,
            {
                "time": f"+{text}T00:00:00Z",
                "timezone": 0,
                "before": 0,
                "after": 0,
                "precision": precision,
                "calendarmodel": GREGORIAN_CALENDAR,
            },
        )

    def to_datavalue(self) -> dict:
        return {"value": self.value, "type": self.type.value}


def _value_snak(property_id: str, value: ClaimValue) -> dict:
    return {
        "snaktype": "value",
        "property": property_id,
        "datavalue": value.to_datavalue(),
    }


@dataclass(frozen=True)
class Claim:
    """One property-value assertion with optional references."""

    property_id: str
    value: ClaimValue
    references: tuple[Reference, ...] = ()
    rank: Rank = Rank.NORMAL

    def to_wikibase_json(self, include_references: bool = True) -> dict:
        statement: dict[str, Any] = {
            "mainsnak": _value_snak(self.property_id, self.value),
            "type": "statement",
            "rank": self.rank.value,
        }
        if include_references and self.references:
            statement["references"] = [{"snaks": ref.to_snaks()} for ref in self.references]
        return statement


@dataclass(frozen=True)
class LanguageValue:
    """A label or description in one language."""

    language: str
    value: str

    def to_json(self) -> dict:
        return {"language": self.language, "value": self.value}


@dataclass
class StructuredEntity:
    """
    Entity ready for publishing.

    Treated as immutable once handed to the publish client; the client
    serializes a copy and never mutates it.
    """

    labels: dict[str, LanguageValue] = field(default_factory=dict)
    descriptions: dict[str, LanguageValue] = field(default_factory=dict)
    claims: dict[str, list[Claim]] = field(default_factory=dict)
    quality_score: int = 0

    @property
    def claim_count(self) -> int:
        return sum(len(claims) for claims in self.claims.values())

    @property
    def reference_count(self) -> int:
        return sum(len(c.references) for claims in self.claims.values() for c in claims)

    def has_property(self, property_id: str) -> bool:
        return bool(self.claims.get(property_id))

    def label(self, language: str = "en") -> str | None:
        term = self.labels.get(language)
        return term.value if term else None

    def to_wikibase_json(self, include_references: bool = True) -> dict:
        """Serialize to the Wikibase JSON data model (wbeditentity ``data``)."""
        return {
            "labels": {lang: term.to_json() for lang, term in self.labels.items()},
            "descriptions": {lang: term.to_json() for lang, term in self.descriptions.items()},
            "claims": {
                pid: [claim.to_wikibase_json(include_references) for claim in claims]
                for pid, claims in self.claims.items()
                if claims
            },
        }


# ---------------------------------------------------------------------------
# Identifier cache
# ---------------------------------------------------------------------------


class EntityType(str, Enum):
    """Kinds of free-text values the resolver maps to identifiers."""

    CITY = "city"
    INDUSTRY = "industry"
    LEGAL_FORM = "legal_form"
    COUNTRY = "country"


class ResolutionSource(str, Enum):
    STATIC_TABLE = "static_table"
    REMOTE_LOOKUP = "remote_lookup"
    MANUAL = "manual"


@dataclass
class IdentifierCacheEntry:
    """Persisted mapping from (entity type, normalized key) to an identifier."""

    entity_type: EntityType
    search_key: str
    identifier: str
    source: ResolutionSource
    query_count: int = 1
    last_queried_at: float = 0.0  # epoch seconds
    last_validated_at: float = 0.0

    def is_stale(self, now: float, horizon_seconds: float) -> bool:
        return now - self.last_validated_at > horizon_seconds


# ---------------------------------------------------------------------------
# Notability
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NotabilityVerdict:
    """Advisory notability judgment; computed fresh on every evaluation."""

    is_notable: bool
    confidence: float
    reasons: tuple[str, ...] = ()
    serious_reference_count: int = 0
    top_references: tuple[Reference, ...] = ()


# ---------------------------------------------------------------------------
# Publishing
# ---------------------------------------------------------------------------


class PublishTarget(str, Enum):
    SANDBOX = "sandbox"
    PRODUCTION = "production"


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    TOKEN_EXPIRED = "token_expired"
    CONFLICT = "conflict"
    NETWORK = "network"
    UNSUPPORTED_TARGET = "unsupported_target"
    UNKNOWN_REMOTE = "unknown_remote"
    NOT_NOTABLE = "not_notable"


@dataclass(frozen=True)
class PublishFailure:
    """Error carried by a failed PublishOutcome."""

    kind: ErrorKind
    message: str
    existing_identifier: str | None = None  # Set for conflicts when the remote reports it


@dataclass(frozen=True)
class PublishOutcome:
    """Terminal result of a publish attempt; the caller persists it."""

    success: bool
    published_target: str  # Host of the deployment actually written to
    identifier: str | None = None
    error: PublishFailure | None = None
    operation: str = "create"  # "create" or "update"
    dry_run: bool = False

    @classmethod
    def succeeded(
        cls,
        identifier: str,
        published_target: str,
        operation: str = "create",
        dry_run: bool = False,
    ) -> PublishOutcome:
        return cls(
            success=True,
            identifier=identifier,
            published_target=published_target,
            operation=operation,
            dry_run=dry_run,
        )

    @classmethod
    def failed(
        cls, failure: PublishFailure, published_target: str, operation: str = "create"
    ) -> PublishOutcome:
        return cls(
            success=False,
            error=failure,
            published_target=published_target,
            operation=operation,
        )
