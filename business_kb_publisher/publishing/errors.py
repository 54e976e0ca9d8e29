"""
Publish error types.

Each exception maps to one ErrorKind; the client converts them into
PublishOutcome.error rather than letting them escape.
"""

from business_kb_publisher.domain.models import ErrorKind, PublishFailure


class PublishError(Exception):
    """Base class for publish failures."""

    kind = ErrorKind.UNKNOWN_REMOTE

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code  # Remote API error code, when there is one

    def to_failure(self) -> PublishFailure:
        return PublishFailure(kind=self.kind, message=self.message)


class ValidationError(PublishError):
    """Entity fails the structural minimum; never retried."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, problems: list[str] | None = None):
        super().__init__(message)
        self.problems = problems or []


class AuthenticationError(PublishError):
    """Credentials rejected, or token re-acquisition failed twice."""

    kind = ErrorKind.AUTHENTICATION


class TokenExpiredError(PublishError):
    """Edit token rejected by the remote; retried once per token type."""

    kind = ErrorKind.TOKEN_EXPIRED


class ConflictError(PublishError):
    """An entity with the same label and description already exists."""

    kind = ErrorKind.CONFLICT

    def __init__(
        self, message: str, existing_identifier: str | None = None, code: str | None = None
    ):
        super().__init__(message, code=code)
        self.existing_identifier = existing_identifier

    def to_failure(self) -> PublishFailure:
        return PublishFailure(
            kind=self.kind, message=self.message, existing_identifier=self.existing_identifier
        )


class NetworkError(PublishError):
    """Transient transport failure (timeout, connection, 5xx, maxlag)."""

    kind = ErrorKind.NETWORK


class UnsupportedTargetError(PublishError):
    """Unknown target, or production requested without the allow flag."""

    kind = ErrorKind.UNSUPPORTED_TARGET


class UnknownRemoteError(PublishError):
    """Unexpected response from the remote API."""

    kind = ErrorKind.UNKNOWN_REMOTE
