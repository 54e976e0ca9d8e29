"""
Unit tests for the entity builder.

Identifiers come from the static tables; the SPARQL lookup is mocked to
find nothing.
"""

import pytest

from business_kb_publisher.domain.models import (
    BusinessSubject,
    ClaimValue,
    CrawlData,
    Location,
    Reference,
)
from business_kb_publisher.entity.builder import (
    EntityBuilder,
    EntityBuildError,
    fallback_description,
)

SEATTLE = Location(city="Seattle", state="WA", country="US")


def _subject(**overrides):
    values = {
        "name": "Acme Widgets",
        "url": "https://acmewidgets.com",
        "industry": "Technology",
        "location": SEATTLE,
    }
    values.update(overrides)
    return BusinessSubject(**values)


def _references(count=3):
    return [
        Reference(url=f"https://www.geekwire.com/2024/acme-{i}", title=f"Acme story {i}")
        for i in range(count)
    ]


@pytest.fixture
def builder(resolver):
    return EntityBuilder(resolver)


class TestLabelsAndDescriptions:
    """Terms built from the subject name and crawl description."""

    def test_label_from_name(self, builder):
        entity = builder.build(_subject())
        assert entity.label() == "Acme Widgets"

    def test_timestamp_suffix_removed(self):
        assert EntityBuilder.build_label("Acme Widgets 1712345678901") == "Acme Widgets"

    def test_short_number_kept(self):
        assert EntityBuilder.build_label("Studio 54") == "Studio 54"

    def test_label_truncated(self):
        assert len(EntityBuilder.build_label("A" * 400)) == 250

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_missing_name_raises(self, builder, name):
        with pytest.raises(EntityBuildError, match="no name"):
            builder.build(BusinessSubject(name=name))

    def test_description_from_crawl(self, builder):
        crawl = CrawlData(description="  Hand-made   widgets since 2015. ")
        entity = builder.build(_subject(), crawl)
        assert entity.descriptions["en"].value == "Hand-made widgets since 2015."

    def test_generated_description(self, builder):
        entity = builder.build(_subject())
        assert entity.descriptions["en"].value == "Technology business in Seattle, WA"

    def test_crawl_description_equal_to_label_is_ignored(self, builder):
        entity = builder.build(_subject(), CrawlData(description="acme widgets"))
        assert entity.descriptions["en"].value == "Technology business in Seattle, WA"


class TestFallbackDescription:
    """Generated descriptions are never empty and never equal the label."""

    def test_nothing_known(self):
        assert fallback_description(BusinessSubject(name="Acme"), "Acme") == "Business"

    def test_city_only(self):
        subject = BusinessSubject(name="Acme", location=Location(city="Tacoma"))
        assert fallback_description(subject, "Acme") == "Business in Tacoma"

    def test_differs_from_label(self):
        description = fallback_description(BusinessSubject(name="Business"), "Business")
        assert description == "Business entity"


class TestLocationClaims:
    """P131/P159/P625 depend on the city resolving; P17 on the country."""

    def test_resolved_city(self, builder):
        entity = builder.build(_subject())
        assert entity.claims["P131"][0].value == ClaimValue.item("Q5083")
        assert entity.claims["P159"][0].value == ClaimValue.item("Q5083")
        assert entity.claims["P17"][0].value == ClaimValue.item("Q30")
        assert not entity.has_property("P625")

    def test_coordinates_with_resolved_city(self, builder):
        location = Location(
            city="Seattle", state="WA", country="US", latitude=47.6062, longitude=-122.3321
        )
        entity = builder.build(_subject(location=location))
        assert entity.claims["P625"][0].value.value["latitude"] == 47.6062

    def test_unresolved_city(self, builder, sparql_lookup):
        location = Location(city="Nowhere", state="ZZ", country="USA", latitude=1.0, longitude=2.0)
        entity = builder.build(_subject(location=location))

        for property_id in ("P131", "P159", "P625"):
            assert not entity.has_property(property_id)
        assert entity.has_property("P17")
        sparql_lookup.lookup.assert_called()

    def test_no_location(self, builder):
        entity = builder.build(_subject(location=None))
        for property_id in ("P131", "P159", "P17"):
            assert not entity.has_property(property_id)

    def test_address_from_location(self, builder):
        location = Location(city="Seattle", state="WA", address="123  Pike St")
        entity = builder.build(_subject(location=location))
        claim = entity.claims["P6375"][0]
        assert claim.value == ClaimValue.monolingual("123 Pike St")
        assert claim.references == ()


class TestClassificationClaims:
    def test_industry_and_legal_form(self, builder):
        entity = builder.build(_subject(legal_form="LLC"))
        assert entity.claims["P452"][0].value == ClaimValue.item("Q11016")
        assert entity.claims["P1454"][0].value == ClaimValue.item("Q1191951")

    def test_unresolved_industry_omitted(self, builder):
        entity = builder.build(_subject(industry="Underwater basket weaving"))
        assert not entity.has_property("P452")

    def test_without_resolver(self):
        """No resolver: only the claims that need no lookup."""
        entity = EntityBuilder().build(_subject())
        assert set(entity.claims) == {"P31", "P1448", "P856"}


class TestCrawlClaims:
    """Contact and detail claims from crawl data."""

    def _crawl(self, **overrides):
        values = {
            "phone": "(206) 555-0100",
            "email": "info@acmewidgets.com",
            "address": "123 Pike St, Seattle, WA 98101",
            "services": ("Widgets", "widgets", "Gadgets", "Gizmos", "Repairs", "Rentals", "Tours"),
            "founded": "2015",
            "employee_count": 12,
            "social": {"twitter": "@acmewidgets", "facebook": "not a handle!"},
            "source_url": "https://acmewidgets.com/about",
        }
        values.update(overrides)
        return CrawlData(**values)

    def test_contact_claims(self, builder):
        entity = builder.build(_subject(), self._crawl())
        assert entity.claims["P1329"][0].value == ClaimValue.string("(206) 555-0100")
        assert entity.claims["P968"][0].value == ClaimValue.string("mailto:info@acmewidgets.com")
        assert entity.claims["P2002"][0].value == ClaimValue.string("acmewidgets")
        assert not entity.has_property("P2013")

    def test_crawl_claims_cite_source_page(self, builder):
        entity = builder.build(_subject(), self._crawl())
        for property_id in ("P1329", "P968", "P6375", "P1056", "P571", "P1128"):
            references = entity.claims[property_id][0].references
            assert [ref.url for ref in references] == ["https://acmewidgets.com/about"]

    def test_services_bounded_and_deduplicated(self, builder):
        entity = builder.build(_subject(), self._crawl())
        services = [claim.value.value for claim in entity.claims["P1056"]]
        assert services == ["Widgets", "Gadgets", "Gizmos", "Repairs", "Rentals"]

    def test_details(self, builder):
        entity = builder.build(_subject(), self._crawl())
        assert entity.claims["P571"][0].value == ClaimValue.date("2015")
        assert entity.claims["P1128"][0].value == ClaimValue.quantity(12)

    def test_malformed_values_dropped(self, builder):
        crawl = self._crawl(
            phone="call us", email="info@", founded="sometime in 2015", employee_count=0
        )
        entity = builder.build(_subject(url="acmewidgets.com"), crawl)
        for property_id in ("P1329", "P968", "P571", "P1128", "P856"):
            assert not entity.has_property(property_id)

    @pytest.mark.parametrize("founded", ["2015-13-45", "2015-02-30", "0000"])
    def test_impossible_founding_date_dropped(self, builder, founded):
        entity = builder.build(_subject(), self._crawl(founded=founded))
        assert not entity.has_property("P571")
        assert entity.has_property("P1128")

    def test_full_founding_date(self, builder):
        entity = builder.build(_subject(), self._crawl(founded="2016-02-29"))
        assert entity.claims["P571"][0].value == ClaimValue.date("2016-02-29")

    @pytest.mark.parametrize("count", ["12", 12.5, True])
    def test_non_integer_employee_count_dropped(self, builder, count):
        """Anything but an int is ignored instead of failing the build."""
        entity = builder.build(_subject(), self._crawl(employee_count=count))
        assert not entity.has_property("P1128")
        assert entity.has_property("P571")

    def test_no_source_url_means_no_references(self, builder):
        entity = builder.build(_subject(), self._crawl(source_url=None))
        assert entity.claims["P1329"][0].references == ()


class TestNotabilityReferences:
    """Supporting references are attached to P31, P452 and P159."""

    def test_attached_to_first_claims(self, builder):
        entity = builder.build(_subject(), notability_references=_references(3))
        for property_id in ("P31", "P452", "P159"):
            assert len(entity.claims[property_id][0].references) == 3
        assert entity.claims["P131"][0].references == ()

    def test_at_most_three(self, builder):
        entity = builder.build(_subject(), notability_references=_references(5))
        assert len(entity.claims["P31"][0].references) == 3

    def test_quality_score_is_set(self, builder):
        entity = builder.build(_subject(), notability_references=_references(3))
        assert entity.quality_score > 0

    def test_build_is_deterministic(self, builder):
        """Same inputs, same entity."""
        first = builder.build(_subject(), notability_references=_references(3))
        second = builder.build(_subject(), notability_references=_references(3))
        assert first.to_wikibase_json() == second.to_wikibase_json()
        assert first.quality_score == second.quality_score
