"""
Identifier lookups against the knowledge base's SPARQL endpoint.

Data Source: Wikidata Query Service (CC0/public domain)
Reference: https://www.wikidata.org/wiki/Wikidata:SPARQL_query_service

Lookups never raise: any transport or parse failure is logged and reported
as "not found" so callers can degrade to omitting the claim.
"""

import logging

import requests

from business_kb_publisher.config import Settings, get_settings
from business_kb_publisher.constants import SPARQL_RATE_LIMIT
from business_kb_publisher.domain.models import EntityType
from business_kb_publisher.domain.validation import is_valid_identifier
from business_kb_publisher.resolution.normalization import display_label, split_city_key
from business_kb_publisher.resolution.static_tables import state_qid
from business_kb_publisher.utils.rate_limiting import get_rate_limiter

logger = logging.getLogger(__name__)

_sparql_rate_limiter = get_rate_limiter("sparql", requests_per_second=SPARQL_RATE_LIMIT)

ENTITY_PREFIX = "http://www.wikidata.org/entity/"

# Class each entity type must be an instance (or subclass instance) of
CITY_CLASS = "Q515"
INDUSTRY_CLASS = "Q268592"
LEGAL_FORM_CLASS = "Q155076"
COUNTRY_CLASS = "Q6256"
DEFAULT_COUNTRY = "Q30"


def _literal(text: str) -> str:
    """Quote a value as a SPARQL string literal."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"@en'


def build_city_query(key: str, country_qid: str = DEFAULT_COUNTRY) -> str:
    """Query for a city by English label, narrowed by state when the key has one."""
    city, state = split_city_key(key)
    state_filter = ""
    state_item = state_qid(state)
    if state_item:
        state_filter = f"\n  ?item wdt:P131+ wd:{state_item} ."
    return f"""SELECT ?item WHERE {{
  ?item rdfs:label {_literal(display_label(city))} ;
        wdt:P31/wdt:P279* wd:{CITY_CLASS} ;
        wdt:P17 wd:{country_qid} .{state_filter}
}}
LIMIT 1"""


def build_class_query(key: str, class_qid: str, transitive: bool = True) -> str:
    """Query for an item with a given English label that is an instance of a class."""
    path = "wdt:P31/wdt:P279*" if transitive else "wdt:P31"
    return f"""SELECT ?item WHERE {{
  {{ ?item rdfs:label {_literal(key)} . }}
  UNION
  {{ ?item rdfs:label {_literal(display_label(key))} . }}
  ?item {path} wd:{class_qid} .
}}
LIMIT 1"""


def _bindings(data) -> list | None:
    """Bindings list from a SELECT result, or None when the body is not shaped like one."""
    results = data.get("results") if isinstance(data, dict) else None
    bindings = results.get("bindings") if isinstance(results, dict) else None
    return bindings if isinstance(bindings, list) else None


def _item_uri(binding) -> str:
    item = binding.get("item") if isinstance(binding, dict) else None
    value = item.get("value") if isinstance(item, dict) else None
    return value if isinstance(value, str) else ""


def build_query(entity_type: EntityType, key: str) -> str:
    if entity_type == EntityType.CITY:
        return build_city_query(key)
    if entity_type == EntityType.INDUSTRY:
        return build_class_query(key, INDUSTRY_CLASS)
    if entity_type == EntityType.LEGAL_FORM:
        return build_class_query(key, LEGAL_FORM_CLASS)
    return build_class_query(key, COUNTRY_CLASS, transitive=False)


class SparqlClient:
    """Thin SPARQL client: label lookups and existence checks."""

    def __init__(
        self,
        endpoint: str | None = None,
        session: requests.Session | None = None,
        timeout: float | None = None,
        user_agent: str | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        self.endpoint = endpoint or settings.sparql_endpoint
        self.timeout = timeout or settings.sparql_timeout
        self.session = session or requests.Session()
        # Wikimedia endpoints reject requests without a descriptive User-Agent
        self.headers = {
            "User-Agent": user_agent or settings.user_agent,
            "Accept": "application/sparql-results+json",
        }

    def _query(self, query: str) -> dict:
        _sparql_rate_limiter()
        response = self.session.get(
            self.endpoint,
            params={"query": query, "format": "json"},
            headers=self.headers,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    def lookup(self, entity_type: EntityType | str, key: str) -> str | None:
        """
        Find the identifier for a normalized key.

        Args:
            entity_type: Kind of value being resolved
            key: Normalized search key (see normalize_key)

        Returns:
            Identifier like "Q5083", or None if nothing matched or the
            endpoint could not be reached
        """
        entity_type = EntityType(entity_type)
        if not key:
            return None
        try:
            data = self._query(build_query(entity_type, key))
        except requests.exceptions.RequestException as e:
            logger.debug(f"SPARQL lookup failed for {entity_type.value} '{key}': {e}")
            return None
        except ValueError as e:
            logger.warning(f"Unparseable SPARQL response for {entity_type.value} '{key}': {e}")
            return None

        bindings = _bindings(data)
        if bindings is None:
            logger.warning(f"Unexpected SPARQL result shape for {entity_type.value} '{key}'")
            return None
        if not bindings:
            logger.debug(f"No {entity_type.value} match for '{key}'")
            return None
        uri = _item_uri(bindings[0])
        identifier = uri.rsplit("/", 1)[-1] if uri.startswith(ENTITY_PREFIX) else None
        if not is_valid_identifier(identifier):
            logger.warning(f"Ignoring malformed SPARQL binding for '{key}': {uri!r}")
            return None
        return identifier

    def validate_identifier(self, identifier: str) -> bool | None:
        """
        Check an identifier still exists.

        Returns:
            True/False from an ASK query, or None if the endpoint was unreachable
            or the answer was not a boolean
        """
        if not is_valid_identifier(identifier):
            return False
        query = f"ASK {{ wd:{identifier} ?p ?o . }}"
        try:
            data = self._query(query)
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.debug(f"SPARQL validation failed for {identifier}: {e}")
            return None
        answer = data.get("boolean") if isinstance(data, dict) else None
        if not isinstance(answer, bool):
            logger.warning(f"Unexpected ASK result for {identifier}: {str(data)[:200]}")
            return None
        return answer
