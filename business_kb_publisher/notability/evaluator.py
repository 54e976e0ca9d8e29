"""
Notability evaluation.

Counts "serious" references (independent of the subject and from a reputable
source type) and compares them with a threshold. The verdict is advisory;
the orchestrator decides whether a failing verdict blocks publishing.
"""

import logging
from collections.abc import Iterable
from dataclasses import replace

from business_kb_publisher.constants import (
    CONFIDENCE_SATURATION,
    MAX_TOP_REFERENCES,
    MIN_DISTINCT_SOURCES,
    MIN_SERIOUS_REFERENCES,
)
from business_kb_publisher.domain.models import BusinessSubject, NotabilityVerdict, Reference
from business_kb_publisher.domain.validation import is_valid_url, root_domain
from business_kb_publisher.notability.sources import (
    SourceType,
    classify_source,
    is_serious,
    reference_sort_key,
)

logger = logging.getLogger(__name__)

# One reason per contributing signal
SIGNAL_REASONS: dict[SourceType, str] = {
    SourceType.GOVERNMENT: "has government record",
    SourceType.NEWS: "has independent press coverage",
    SourceType.ACADEMIC: "cited by academic source",
    SourceType.DATABASE: "listed in business database",
    SourceType.DIRECTORY: "has directory listing",
    SourceType.REVIEW: "has independent reviews",
}


def _url_key(url: str) -> str:
    return url.strip().rstrip("/").lower()


class NotabilityEvaluator:
    """
    Evaluates whether a business has enough independent evidence to publish.

    Args:
        min_serious_references: Serious references required for a notable verdict
        min_distinct_sources: Distinct domains those references must span
    """

    def __init__(
        self,
        min_serious_references: int = MIN_SERIOUS_REFERENCES,
        min_distinct_sources: int = MIN_DISTINCT_SOURCES,
    ):
        if min_serious_references < 1:
            raise ValueError("min_serious_references must be >= 1")
        self.min_serious_references = min_serious_references
        self.min_distinct_sources = max(1, min_distinct_sources)

    def evaluate(
        self, subject: BusinessSubject, references: Iterable[Reference] | None
    ) -> NotabilityVerdict:
        subject_domain = root_domain(subject.url) if subject.url else None
        reasons: list[str] = []
        if subject.url and is_valid_url(subject.url):
            reasons.append("has website")

        seen_urls: set[str] = set()
        serious: list[tuple[SourceType, Reference]] = []
        for ref in references or ():
            if not ref.url or _url_key(ref.url) in seen_urls:
                continue
            seen_urls.add(_url_key(ref.url))
            source_type = classify_source(ref, subject_domain)
            if is_serious(source_type):
                serious.append((source_type, ref))

        for source_type in SIGNAL_REASONS:
            if any(found == source_type for found, _ in serious):
                reasons.append(SIGNAL_REASONS[source_type])

        serious_count = len(serious)
        distinct_sources = len({root_domain(ref.url) or ref.url for _, ref in serious})
        threshold = self.min_serious_references
        is_notable = serious_count >= threshold and distinct_sources >= self.min_distinct_sources

        if is_notable:
            confidence = min(
                1.0, 0.5 + 0.5 * (serious_count - threshold + 1) / CONFIDENCE_SATURATION
            )
        else:
            confidence = min(0.5, serious_count / threshold * 0.5)
            reasons.append(
                f"insufficient independent references: {serious_count} serious from "
                f"{distinct_sources} source(s), need {threshold} from "
                f"{self.min_distinct_sources}"
            )

        ranked = sorted(serious, key=lambda pair: reference_sort_key(pair[0]))
        top_references = tuple(
            replace(ref, source=ref.source or source_type.value)
            for source_type, ref in ranked[:MAX_TOP_REFERENCES]
        )

        logger.debug(
            f"Notability for {subject.name!r}: notable={is_notable}, "
            f"serious={serious_count}, confidence={confidence:.2f}"
        )
        return NotabilityVerdict(
            is_notable=is_notable,
            confidence=round(confidence, 3),
            reasons=tuple(reasons),
            serious_reference_count=serious_count,
            top_references=top_references,
        )
