"""Entity construction and quality scoring."""

from business_kb_publisher.entity.builder import EntityBuildError, EntityBuilder
from business_kb_publisher.entity.quality import compute_quality_score

__all__ = ["EntityBuildError", "EntityBuilder", "compute_quality_score"]
