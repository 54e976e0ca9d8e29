"""
Reference source classification.

Classifies a citation into a source type from its domain (via tldextract)
and its source tag. Source types carry a rank (1 = strongest) and a trust
score used to order supporting references.
"""

from enum import Enum

import tldextract

from business_kb_publisher.domain.models import Reference
from business_kb_publisher.domain.validation import root_domain


class SourceType(str, Enum):
    GOVERNMENT = "government"
    NEWS = "news"
    ACADEMIC = "academic"
    DATABASE = "database"
    DIRECTORY = "directory"
    REVIEW = "review"
    OTHER = "other"
    COMPANY = "company"


SOURCE_RANK: dict[SourceType, int] = {
    SourceType.GOVERNMENT: 1,
    SourceType.NEWS: 2,
    SourceType.ACADEMIC: 3,
    SourceType.DATABASE: 4,
    SourceType.DIRECTORY: 5,
    SourceType.REVIEW: 6,
    SourceType.OTHER: 7,
    SourceType.COMPANY: 8,
}

TRUST_SCORES: dict[SourceType, int] = {
    SourceType.GOVERNMENT: 90,
    SourceType.NEWS: 85,
    SourceType.ACADEMIC: 85,
    SourceType.DATABASE: 80,
    SourceType.DIRECTORY: 75,
    SourceType.REVIEW: 70,
    SourceType.OTHER: 60,
    SourceType.COMPANY: 50,
}

SERIOUS_SOURCE_TYPES = frozenset(
    {
        SourceType.GOVERNMENT,
        SourceType.NEWS,
        SourceType.ACADEMIC,
        SourceType.DATABASE,
        SourceType.DIRECTORY,
        SourceType.REVIEW,
    }
)

# Well-known domains by source type (root domains)
KNOWN_DOMAINS: dict[str, SourceType] = {
    # News
    "nytimes.com": SourceType.NEWS,
    "washingtonpost.com": SourceType.NEWS,
    "wsj.com": SourceType.NEWS,
    "reuters.com": SourceType.NEWS,
    "apnews.com": SourceType.NEWS,
    "bloomberg.com": SourceType.NEWS,
    "bbc.co.uk": SourceType.NEWS,
    "bbc.com": SourceType.NEWS,
    "cnn.com": SourceType.NEWS,
    "npr.org": SourceType.NEWS,
    "forbes.com": SourceType.NEWS,
    "techcrunch.com": SourceType.NEWS,
    "geekwire.com": SourceType.NEWS,
    "bizjournals.com": SourceType.NEWS,
    "seattletimes.com": SourceType.NEWS,
    "latimes.com": SourceType.NEWS,
    "sfchronicle.com": SourceType.NEWS,
    # Business databases and registries
    "crunchbase.com": SourceType.DATABASE,
    "opencorporates.com": SourceType.DATABASE,
    "dnb.com": SourceType.DATABASE,
    "zoominfo.com": SourceType.DATABASE,
    "bloomberg.net": SourceType.DATABASE,
    "chamberofcommerce.com": SourceType.DATABASE,
    # Directories
    "yelp.com": SourceType.DIRECTORY,
    "yellowpages.com": SourceType.DIRECTORY,
    "bbb.org": SourceType.DIRECTORY,
    "manta.com": SourceType.DIRECTORY,
    "mapquest.com": SourceType.DIRECTORY,
    "foursquare.com": SourceType.DIRECTORY,
    "google.com": SourceType.DIRECTORY,
    # Review platforms
    "tripadvisor.com": SourceType.REVIEW,
    "trustpilot.com": SourceType.REVIEW,
    "glassdoor.com": SourceType.REVIEW,
    "angi.com": SourceType.REVIEW,
    "g2.com": SourceType.REVIEW,
    "capterra.com": SourceType.REVIEW,
}

# Substring hints checked against the domain and source tag, in priority order
_KEYWORD_HINTS: tuple[tuple[str, SourceType], ...] = (
    ("news", SourceType.NEWS),
    ("times", SourceType.NEWS),
    ("tribune", SourceType.NEWS),
    ("gazette", SourceType.NEWS),
    ("herald", SourceType.NEWS),
    ("journal", SourceType.NEWS),
    ("directory", SourceType.DIRECTORY),
    ("yellowpages", SourceType.DIRECTORY),
    ("review", SourceType.REVIEW),
    ("database", SourceType.DATABASE),
    ("registry", SourceType.DATABASE),
    ("chamber", SourceType.DATABASE),
)


def _suffix_type(domain: str) -> SourceType | None:
    suffix_parts = tldextract.extract(domain).suffix.split(".")
    if "gov" in suffix_parts or "mil" in suffix_parts:
        return SourceType.GOVERNMENT
    if "edu" in suffix_parts or ("ac" in suffix_parts and len(suffix_parts) > 1):
        return SourceType.ACADEMIC
    return None


def classify_source(reference: Reference, subject_domain: str | None = None) -> SourceType:
    """
    Classify a reference.

    Args:
        reference: Citation to classify
        subject_domain: Root domain of the subject's own website; matching
            references are self-published (COMPANY)

    Returns:
        SourceType
    """
    domain = root_domain(reference.url)
    if domain and subject_domain and domain == subject_domain:
        return SourceType.COMPANY

    if domain:
        by_suffix = _suffix_type(domain)
        if by_suffix:
            return by_suffix
        if domain in KNOWN_DOMAINS:
            return KNOWN_DOMAINS[domain]

    tag = (reference.source or "").strip().lower()
    try:
        tagged = SourceType(tag)
    except ValueError:
        tagged = None
    if tagged is not None and tagged != SourceType.COMPANY:
        return tagged

    haystack = f"{domain or ''} {tag}"
    for hint, source_type in _KEYWORD_HINTS:
        if hint in haystack:
            return source_type
    return SourceType.OTHER


def is_serious(source_type: SourceType) -> bool:
    return source_type in SERIOUS_SOURCE_TYPES


def reference_sort_key(source_type: SourceType) -> tuple[int, int]:
    """Sort key ordering strongest references first."""
    return SOURCE_RANK[source_type], -TRUST_SCORES[source_type]
