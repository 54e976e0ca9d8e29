"""Notability evaluation for businesses."""

from business_kb_publisher.notability.evaluator import NotabilityEvaluator
from business_kb_publisher.notability.sources import SourceType, classify_source

__all__ = ["NotabilityEvaluator", "SourceType", "classify_source"]
