"""
Constants for business_kb_publisher package.

Centralizes magic numbers, property identifiers and configuration defaults.
"""

# Canonical type of every published entity: "business" (Q4830453)
BUSINESS_QID = "Q4830453"

# Globe and calendar model URIs used in datavalues
EARTH_GLOBE = "http://www.wikidata.org/entity/Q2"
GREGORIAN_CALENDAR = "http://www.wikidata.org/entity/Q1985727"

# Placeholder identifier returned by dry runs (never a real item)
DRY_RUN_IDENTIFIER = "Q0"

# Property identifiers used by the entity builder
P_INSTANCE_OF = "P31"
P_COUNTRY = "P17"
P_LOCATED_IN = "P131"
P_HEADQUARTERS = "P159"
P_INDUSTRY = "P452"
P_LEGAL_FORM = "P1454"
P_COORDINATES = "P625"
P_STREET_ADDRESS = "P6375"
P_OFFICIAL_WEBSITE = "P856"
P_OFFICIAL_NAME = "P1448"
P_PHONE = "P1329"
P_EMAIL = "P968"
P_SERVICES = "P1056"
P_INCEPTION = "P571"
P_EMPLOYEES = "P1128"
P_TWITTER = "P2002"
P_FACEBOOK = "P2013"
P_INSTAGRAM = "P2003"

# Reference snak properties
P_REFERENCE_URL = "P854"
P_RETRIEVED = "P813"
P_TITLE = "P1476"

# Label/description length limit enforced by Wikibase
MAX_TERM_LENGTH = 250

# Bounded lists
MAX_SERVICE_CLAIMS = 5
MAX_REFERENCES_PER_CLAIM = 3
MAX_TOP_REFERENCES = 5

# Notability defaults
MIN_SERIOUS_REFERENCES = 1
MIN_DISTINCT_SOURCES = 1
CONFIDENCE_SATURATION = 4  # serious refs above threshold needed for confidence 1.0

# API rate limits (requests per second)
SPARQL_RATE_LIMIT = 5.0  # WDQS asks clients to stay well below its per-IP budget
ACTION_API_RATE_LIMIT = 2.0  # Unflagged accounts should edit slowly

# Retry policy
NETWORK_RETRY_LIMIT = 1  # transient failures get one retry
TOKEN_REFRESH_LIMIT = 1  # expired edit token re-acquired once

# Identifier cache
QID_CACHE_NAMESPACE = "qid_cache"
