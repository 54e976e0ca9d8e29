"""
Entity builder: business subject + crawl data -> StructuredEntity.

Every claim is independent and skipped when its data is missing,
malformed, or unresolvable. The only hard failure is a subject with no name.
"""

import logging
import re
from collections.abc import Iterable

from business_kb_publisher.constants import (
    BUSINESS_QID,
    MAX_REFERENCES_PER_CLAIM,
    MAX_SERVICE_CLAIMS,
    P_COORDINATES,
    P_COUNTRY,
    P_EMAIL,
    P_EMPLOYEES,
    P_HEADQUARTERS,
    P_INCEPTION,
    P_INDUSTRY,
    P_INSTANCE_OF,
    P_LEGAL_FORM,
    P_LOCATED_IN,
    P_OFFICIAL_NAME,
    P_OFFICIAL_WEBSITE,
    P_PHONE,
    P_SERVICES,
    P_STREET_ADDRESS,
)
from business_kb_publisher.domain.models import (
    BusinessSubject,
    ClaimValue,
    CrawlData,
    LanguageValue,
    Reference,
    StructuredEntity,
)
from business_kb_publisher.domain.validation import (
    clean_term,
    is_valid_date,
    is_valid_email,
    is_valid_url,
    normalize_phone,
    normalize_social_handle,
)
from business_kb_publisher.entity.claims import (
    ClaimMap,
    add_claim,
    attach_references,
    crawl_reference,
)
from business_kb_publisher.entity.properties import (
    NOTABILITY_REFERENCE_PROPERTIES,
    SOCIAL_PROPERTIES,
)
from business_kb_publisher.entity.quality import compute_quality_score

logger = logging.getLogger(__name__)

# Timestamp suffixes appended to names by test runs ("Acme 1712345678901")
_TEST_SUFFIX_PATTERN = re.compile(r"\s+\d{6,}$")


class EntityBuildError(ValueError):
    """Raised when a subject cannot be turned into an entity at all."""


class EntityBuilder:
    """
    Builds structured entities for businesses.

    Args:
        resolver: IdentifierResolver used for city/country/industry/legal form;
            None skips every resolved claim
        language: Language code for labels and descriptions
    """

    def __init__(self, resolver=None, language: str = "en"):
        self.resolver = resolver
        self.language = language

    def build(
        self,
        subject: BusinessSubject,
        crawl_data: CrawlData | None = None,
        notability_references: Iterable[Reference] | None = None,
    ) -> StructuredEntity:
        """
        Build an entity.

        Args:
            subject: Business being published
            crawl_data: Optional crawled attributes
            notability_references: Supporting citations, strongest first

        Returns:
            StructuredEntity with quality_score set

        Raises:
            EntityBuildError: If the subject has no usable name
        """
        label = self.build_label(subject.name)
        description = self.build_description(subject, crawl_data, label)
        crawl = crawl_data or CrawlData()
        source_ref = crawl_reference(crawl.source_url)
        crawl_refs = (source_ref,) if source_ref else ()

        claims: ClaimMap = {}
        add_claim(claims, P_INSTANCE_OF, ClaimValue.item(BUSINESS_QID))
        add_claim(claims, P_OFFICIAL_NAME, ClaimValue.monolingual(label, self.language))
        if subject.url and is_valid_url(subject.url):
            add_claim(claims, P_OFFICIAL_WEBSITE, ClaimValue.string(subject.url.strip()))
        elif subject.url:
            logger.debug(f"Dropping malformed website for {label!r}: {subject.url!r}")

        self._add_location_claims(claims, subject, crawl, crawl_refs)
        self._add_classification_claims(claims, subject)
        self._add_contact_claims(claims, crawl, crawl_refs)
        self._add_detail_claims(claims, crawl, crawl_refs)

        references = list(notability_references or ())[:MAX_REFERENCES_PER_CLAIM]
        attach_references(claims, NOTABILITY_REFERENCE_PROPERTIES, references)

        entity = StructuredEntity(
            labels={self.language: LanguageValue(self.language, label)},
            descriptions={self.language: LanguageValue(self.language, description)},
            claims=claims,
        )
        entity.quality_score = compute_quality_score(entity)
        logger.debug(
            f"Built entity {label!r}: {entity.claim_count} claims, "
            f"{entity.reference_count} references, quality {entity.quality_score}"
        )
        return entity

    # ------------------------------------------------------------------
    # Terms
    # ------------------------------------------------------------------

    @staticmethod
    def build_label(name: str | None) -> str:
        if not name or not name.strip():
            raise EntityBuildError("Business subject has no name; cannot label entity")
        stripped = _TEST_SUFFIX_PATTERN.sub("", name.strip())
        label = clean_term(stripped or name)
        if not label:
            raise EntityBuildError("Business subject has no name; cannot label entity")
        return label

    @staticmethod
    def build_description(
        subject: BusinessSubject, crawl_data: CrawlData | None, label: str
    ) -> str:
        """Crawled description if usable, otherwise a generated sentence."""
        if crawl_data and crawl_data.description:
            description = clean_term(crawl_data.description)
            if description and description.lower() != label.lower():
                return description
        return fallback_description(subject, label)

    # ------------------------------------------------------------------
    # Claims
    # ------------------------------------------------------------------

    def _resolve(self, method: str, *args) -> str | None:
        if self.resolver is None:
            return None
        return getattr(self.resolver, method)(*args)

    def _add_location_claims(
        self,
        claims: ClaimMap,
        subject: BusinessSubject,
        crawl: CrawlData,
        crawl_refs: tuple[Reference, ...],
    ) -> None:
        location = subject.location
        if location is not None:
            city_qid = self._resolve("resolve_city", location.city, location.state)
            if city_qid:
                add_claim(claims, P_LOCATED_IN, ClaimValue.item(city_qid))
                add_claim(claims, P_HEADQUARTERS, ClaimValue.item(city_qid))
                if location.has_coordinates:
                    add_claim(
                        claims,
                        P_COORDINATES,
                        ClaimValue.coordinate(location.latitude, location.longitude),
                    )
            elif location.city:
                logger.debug(f"City not resolved: {location.city!r}, {location.state!r}")

            country_qid = self._resolve("resolve_country", location.country)
            if country_qid:
                add_claim(claims, P_COUNTRY, ClaimValue.item(country_qid))

        if crawl.address:
            address = " ".join(crawl.address.split())
            add_claim(claims, P_STREET_ADDRESS, ClaimValue.monolingual(address), crawl_refs)
        elif location is not None and location.address:
            address = " ".join(location.address.split())
            add_claim(claims, P_STREET_ADDRESS, ClaimValue.monolingual(address))

    def _add_classification_claims(self, claims: ClaimMap, subject: BusinessSubject) -> None:
        industry_qid = self._resolve("resolve_industry", subject.industry)
        if industry_qid:
            add_claim(claims, P_INDUSTRY, ClaimValue.item(industry_qid))
        legal_form_qid = self._resolve("resolve_legal_form", subject.legal_form)
        if legal_form_qid:
            add_claim(claims, P_LEGAL_FORM, ClaimValue.item(legal_form_qid))

    def _add_contact_claims(
        self, claims: ClaimMap, crawl: CrawlData, crawl_refs: tuple[Reference, ...]
    ) -> None:
        phone = normalize_phone(crawl.phone)
        if phone:
            add_claim(claims, P_PHONE, ClaimValue.string(phone), crawl_refs)
        elif crawl.phone:
            logger.debug(f"Dropping malformed phone: {crawl.phone!r}")

        if is_valid_email(crawl.email):
            mailto = f"mailto:{crawl.email.strip()}"
            add_claim(claims, P_EMAIL, ClaimValue.string(mailto), crawl_refs)
        elif crawl.email:
            logger.debug(f"Dropping malformed email: {crawl.email!r}")

        for network, property_id in SOCIAL_PROPERTIES.items():
            handle = normalize_social_handle(crawl.social.get(network))
            if handle:
                add_claim(claims, property_id, ClaimValue.string(handle), crawl_refs)

    def _add_detail_claims(
        self, claims: ClaimMap, crawl: CrawlData, crawl_refs: tuple[Reference, ...]
    ) -> None:
        services = []
        for service in crawl.services:
            text = " ".join((service or "").split())
            if text and text.lower() not in {s.lower() for s in services}:
                services.append(text)
        for service in services[:MAX_SERVICE_CLAIMS]:
            add_claim(claims, P_SERVICES, ClaimValue.string(service[:400]), crawl_refs)

        inception = None
        if crawl.founded and is_valid_date(crawl.founded):
            try:
                inception = ClaimValue.date(crawl.founded.strip())
            except ValueError:
                inception = None
        if inception is not None:
            add_claim(claims, P_INCEPTION, inception, crawl_refs)
        elif crawl.founded:
            logger.debug(f"Dropping malformed founding date: {crawl.founded!r}")

        count = crawl.employee_count
        if isinstance(count, int) and not isinstance(count, bool):
            if count > 0:
                add_claim(claims, P_EMPLOYEES, ClaimValue.quantity(count), crawl_refs)
        elif count is not None:
            logger.debug(f"Dropping non-integer employee count: {count!r}")


def fallback_description(subject: BusinessSubject, label: str) -> str:
    """
    Generate a description from industry and location.

    Examples:
        industry="technology", Seattle/WA -> "Technology business in Seattle, WA"
        nothing known -> "Business"
    """
    industry = " ".join((subject.industry or "").split()).lower()
    description = f"{industry} business" if industry else "business"

    place = None
    location = subject.location
    if location is not None:
        if location.city and location.state:
            place = f"{location.city.strip()}, {location.state.strip()}"
        else:
            place = (location.city or location.state or location.country or "").strip() or None
    if place:
        description = f"{description} in {place}"

    description = clean_term(description[0].upper() + description[1:])
    if description.lower() == label.lower():
        description = f"{description} entity"
    return description
