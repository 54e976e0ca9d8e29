"""
Property checklist for business entities.

EXPECTED_PROPERTIES is the canonical set a complete business entity carries;
quality scoring measures coverage against it.
"""

from business_kb_publisher.constants import (
    P_COORDINATES,
    P_COUNTRY,
    P_EMAIL,
    P_EMPLOYEES,
    P_FACEBOOK,
    P_HEADQUARTERS,
    P_INCEPTION,
    P_INDUSTRY,
    P_INSTAGRAM,
    P_INSTANCE_OF,
    P_LEGAL_FORM,
    P_LOCATED_IN,
    P_OFFICIAL_NAME,
    P_OFFICIAL_WEBSITE,
    P_PHONE,
    P_SERVICES,
    P_STREET_ADDRESS,
    P_TWITTER,
)

EXPECTED_PROPERTIES: tuple[str, ...] = (
    P_INSTANCE_OF,
    P_OFFICIAL_NAME,
    P_OFFICIAL_WEBSITE,
    P_COUNTRY,
    P_LOCATED_IN,
    P_HEADQUARTERS,
    P_COORDINATES,
    P_STREET_ADDRESS,
    P_INDUSTRY,
    P_LEGAL_FORM,
    P_PHONE,
    P_EMAIL,
    P_SERVICES,
    P_INCEPTION,
    P_EMPLOYEES,
)

# Claims that carry the subject's notability references
NOTABILITY_REFERENCE_PROPERTIES: tuple[str, ...] = (P_INSTANCE_OF, P_INDUSTRY, P_HEADQUARTERS)

SOCIAL_PROPERTIES: dict[str, str] = {
    "twitter": P_TWITTER,
    "facebook": P_FACEBOOK,
    "instagram": P_INSTAGRAM,
}

PROPERTY_LABELS: dict[str, str] = {
    P_INSTANCE_OF: "instance of",
    P_OFFICIAL_NAME: "official name",
    P_OFFICIAL_WEBSITE: "official website",
    P_COUNTRY: "country",
    P_LOCATED_IN: "located in the administrative territorial entity",
    P_HEADQUARTERS: "headquarters location",
    P_COORDINATES: "coordinate location",
    P_STREET_ADDRESS: "street address",
    P_INDUSTRY: "industry",
    P_LEGAL_FORM: "legal form",
    P_PHONE: "phone number",
    P_EMAIL: "email address",
    P_SERVICES: "product or service",
    P_INCEPTION: "inception",
    P_EMPLOYEES: "employees",
    P_TWITTER: "X username",
    P_FACEBOOK: "Facebook username",
    P_INSTAGRAM: "Instagram username",
}


def property_label(property_id: str) -> str:
    """Human-readable name of a property, falling back to its ID."""
    return PROPERTY_LABELS.get(property_id, property_id)
