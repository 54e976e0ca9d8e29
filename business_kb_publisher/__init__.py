"""
Business KB Publisher - structured knowledge-base entities for local businesses.

This package provides utilities for:
- Resolving free-text values (city, industry, legal form) to canonical identifiers
- Building Wikibase-style entities with typed claims and references
- Evaluating whether a business is notable enough to publish
- Publishing entities to a sandbox or production Wikibase via the Action API
- Common CLI utilities for scripts
"""

import logging

# Set up NullHandler to prevent "No handler found" warnings
# when used as a library. Applications should configure their own handlers.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

# Re-export commonly used items
from business_kb_publisher.config import get_settings
from business_kb_publisher.constants import (
    BUSINESS_QID,
    DRY_RUN_IDENTIFIER,
    MAX_SERVICE_CLAIMS,
)
from business_kb_publisher.domain.models import (
    BusinessSubject,
    CrawlData,
    Location,
    NotabilityVerdict,
    PublishOutcome,
    Reference,
    StructuredEntity,
)

__all__ = [
    "__version__",
    # Config
    "get_settings",
    # Constants
    "BUSINESS_QID",
    "DRY_RUN_IDENTIFIER",
    "MAX_SERVICE_CLAIMS",
    # Models
    "BusinessSubject",
    "CrawlData",
    "Location",
    "Reference",
    "StructuredEntity",
    "NotabilityVerdict",
    "PublishOutcome",
]
