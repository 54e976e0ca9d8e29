"""
Entity quality scoring.

Score (0-100), deterministic for a given entity:
- 60 points: coverage of EXPECTED_PROPERTIES
- 30 points: share of EXPECTED_PROPERTIES whose claims carry a reference
- 10 points: location and industry both resolved

Both ratios use the checklist size as denominator, so adding a claim or a
reference can never lower the score.
"""

from business_kb_publisher.constants import P_HEADQUARTERS, P_INDUSTRY
from business_kb_publisher.domain.models import StructuredEntity
from business_kb_publisher.entity.properties import EXPECTED_PROPERTIES

COVERAGE_WEIGHT = 60
REFERENCE_WEIGHT = 30
RESOLUTION_BONUS = 10


def compute_quality_score(entity: StructuredEntity) -> int:
    expected = len(EXPECTED_PROPERTIES)
    present = [pid for pid in EXPECTED_PROPERTIES if entity.has_property(pid)]
    referenced = [
        pid for pid in present if any(claim.references for claim in entity.claims[pid])
    ]

    score = COVERAGE_WEIGHT * min(1.0, len(present) / expected)
    score += REFERENCE_WEIGHT * len(referenced) / expected
    if entity.has_property(P_HEADQUARTERS) and entity.has_property(P_INDUSTRY):
        score += RESOLUTION_BONUS
    return int(round(score))
