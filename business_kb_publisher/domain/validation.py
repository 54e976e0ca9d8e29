"""
Value validation and normalization using tldextract.

Crawled contact data is noisy. Every value the entity builder turns into a
claim passes through these functions first; anything malformed is dropped
rather than failing the build.

Uses tldextract with the Public Suffix List for authoritative TLD validation.
"""

import re
from datetime import date
from urllib.parse import urlparse

import tldextract

from business_kb_publisher.constants import MAX_TERM_LENGTH

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@([^\s@]+\.[^\s@]+)$")
_PHONE_PATTERN = re.compile(r"^\+?[\d\s().-]+$")
_SOCIAL_HANDLE_PATTERN = re.compile(r"^[A-Za-z0-9_.]{1,50}$")
_DATE_PATTERN = re.compile(r"^\d{4}(-\d{2}-\d{2})?$")
_QID_PATTERN = re.compile(r"^Q[1-9]\d*$")


def root_domain(value: str) -> str | None:
    """
    Extract root domain using tldextract for proper TLD handling.

    Handles complex TLDs like .co.uk correctly.

    Examples:
        "https://www.example.com/about" -> "example.com"
        "news.bbc.co.uk" -> "bbc.co.uk"

    Returns:
        Root domain, or None if the value has no recognised public suffix
    """
    if not value:
        return None

    domain_clean = re.sub(r"^[a-z][a-z0-9+.-]*://", "", value.strip().lower())
    domain_clean = re.sub(r"^www\.", "", domain_clean)
    domain_clean = domain_clean.split("/")[0].split(":")[0]

    ext = tldextract.extract(domain_clean)
    if ext.domain and ext.suffix:
        return f"{ext.domain}.{ext.suffix}"
    return None


def is_valid_url(url: str | None) -> bool:
    """
    Check a website URL is well-formed.

    Requirements:
    - http or https scheme (a bare "example.com" is rejected)
    - host with a valid public suffix
    - no whitespace
    """
    if not url or any(ch.isspace() for ch in url.strip()):
        return False
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return False
    return root_domain(parsed.netloc) is not None


def is_valid_email(email: str | None) -> bool:
    """Check an email address has a local part and a domain with a valid suffix."""
    if not email:
        return False
    match = _EMAIL_PATTERN.match(email.strip())
    return bool(match) and root_domain(match.group(1)) is not None


def normalize_phone(phone: str | None) -> str | None:
    """
    Normalize a phone number, or return None if it is not one.

    Keeps the original formatting (Wikibase stores phone numbers as strings)
    but requires 7-15 digits.
    """
    if not phone:
        return None
    phone = " ".join(phone.split())
    if not _PHONE_PATTERN.match(phone):
        return None
    digits = sum(ch.isdigit() for ch in phone)
    if digits < 7 or digits > 15:
        return None
    return phone


def normalize_social_handle(handle: str | None) -> str | None:
    """Strip a leading '@' or profile URL and validate the remaining handle."""
    if not handle:
        return None
    handle = handle.strip().rstrip("/")
    if "/" in handle:
        handle = handle.rsplit("/", 1)[-1]
    handle = handle.lstrip("@")
    return handle if _SOCIAL_HANDLE_PATTERN.match(handle) else None


def is_valid_date(value: str | None) -> bool:
    """Accept "YYYY" or a real calendar date "YYYY-MM-DD"."""
    text = (value or "").strip()
    if not _DATE_PATTERN.match(text):
        return False
    if len(text) == 4:
        return text != "0000"
    try:
        date.fromisoformat(text)
    except ValueError:
        return False
    return True


def is_valid_identifier(value: str | None) -> bool:
    """Check a canonical item identifier looks like Q<digits>."""
    return bool(value) and bool(_QID_PATTERN.match(value))


def clean_term(text: str | None) -> str:
    """Collapse whitespace and truncate to the label/description length limit."""
    if not text:
        return ""
    collapsed = " ".join(text.split())
    if len(collapsed) <= MAX_TERM_LENGTH:
        return collapsed
    return collapsed[: MAX_TERM_LENGTH - 3].rstrip() + "..."


def entity_structure_errors(entity) -> list[str]:
    """
    Return structural problems that must block publishing.

    The minimum is one non-empty label and one non-empty description.
    An empty list means the entity may be sent to the remote API.
    """
    errors = []
    labels = [term for term in entity.labels.values() if term.value and term.value.strip()]
    if not labels:
        errors.append("entity has no label")
    descriptions = [
        term for term in entity.descriptions.values() if term.value and term.value.strip()
    ]
    if not descriptions:
        errors.append("entity has no description")
    for lang, term in entity.labels.items():
        if len(term.value) > MAX_TERM_LENGTH:
            errors.append(f"label '{lang}' exceeds {MAX_TERM_LENGTH} characters")
    for lang, term in entity.descriptions.items():
        if len(term.value) > MAX_TERM_LENGTH:
            errors.append(f"description '{lang}' exceeds {MAX_TERM_LENGTH} characters")
    for lang in entity.labels:
        label = entity.labels[lang].value.strip()
        description = entity.descriptions.get(lang)
        if description and label and label == description.value.strip():
            errors.append(f"label and description '{lang}' must differ")
    return errors
