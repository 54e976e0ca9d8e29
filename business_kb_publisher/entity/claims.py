"""Helpers for assembling claim maps."""

from collections.abc import Iterable
from dataclasses import replace

from business_kb_publisher.constants import MAX_REFERENCES_PER_CLAIM
from business_kb_publisher.domain.models import Claim, ClaimValue, Reference
from business_kb_publisher.domain.validation import root_domain

ClaimMap = dict[str, list[Claim]]


def add_claim(
    claims: ClaimMap,
    property_id: str,
    value: ClaimValue,
    references: Iterable[Reference] = (),
) -> None:
    """Append a claim, skipping exact duplicates of an existing value."""
    existing = claims.setdefault(property_id, [])
    if any(claim.value == value for claim in existing):
        return
    existing.append(Claim(property_id=property_id, value=value, references=tuple(references)))


def attach_references(
    claims: ClaimMap,
    property_ids: Iterable[str],
    references: Iterable[Reference],
    limit: int = MAX_REFERENCES_PER_CLAIM,
) -> None:
    """
    Add references to the first claim of each listed property.

    Existing references are kept; duplicates by URL are skipped and each claim
    ends up with at most ``limit`` references.
    """
    references = list(references)
    if not references:
        return
    for property_id in property_ids:
        if not claims.get(property_id):
            continue
        first = claims[property_id][0]
        merged = list(first.references)
        seen = {ref.url for ref in merged}
        for ref in references:
            if len(merged) >= limit:
                break
            if ref.url not in seen:
                merged.append(ref)
                seen.add(ref.url)
        claims[property_id][0] = replace(first, references=tuple(merged))


def crawl_reference(source_url: str | None) -> Reference | None:
    """Reference pointing at the page crawled data came from."""
    if not source_url:
        return None
    return Reference(url=source_url, source=root_domain(source_url) or "")
