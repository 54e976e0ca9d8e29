"""Publishing to the remote knowledge base."""

from business_kb_publisher.publishing.client import PublishClient, parse_target
from business_kb_publisher.publishing.errors import (
    AuthenticationError,
    ConflictError,
    NetworkError,
    PublishError,
    TokenExpiredError,
    UnknownRemoteError,
    UnsupportedTargetError,
    ValidationError,
)
from business_kb_publisher.publishing.orchestrator import PublishOrchestrator, PublishReport
from business_kb_publisher.publishing.session import PublishSession, PublishState

__all__ = [
    "AuthenticationError",
    "ConflictError",
    "NetworkError",
    "PublishClient",
    "PublishError",
    "PublishOrchestrator",
    "PublishReport",
    "PublishSession",
    "PublishState",
    "TokenExpiredError",
    "UnknownRemoteError",
    "UnsupportedTargetError",
    "ValidationError",
    "parse_target",
]
