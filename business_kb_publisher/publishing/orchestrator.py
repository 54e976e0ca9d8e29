"""
Publish orchestrator: notability -> build -> publish for one business.

Runs the whole sequence for one request and reports a single pass/fail with
a user-facing message. Whether a failing notability verdict blocks
publishing is decided here, not in the evaluator.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from business_kb_publisher.config import Settings, get_settings
from business_kb_publisher.domain.models import (
    BusinessSubject,
    CrawlData,
    ErrorKind,
    NotabilityVerdict,
    PublishFailure,
    PublishOutcome,
    PublishTarget,
    Reference,
    StructuredEntity,
)
from business_kb_publisher.entity.builder import EntityBuilder
from business_kb_publisher.notability.evaluator import NotabilityEvaluator
from business_kb_publisher.publishing.client import PublishClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublishReport:
    """Everything one publish request produced."""

    outcome: PublishOutcome
    verdict: NotabilityVerdict
    entity: StructuredEntity | None
    message: str

    @property
    def success(self) -> bool:
        return self.outcome.success


def user_message(outcome: PublishOutcome, verdict: NotabilityVerdict | None = None) -> str:
    """Short message for the person who asked to publish."""
    if outcome.success:
        if outcome.dry_run:
            return f"Dry run passed: entity is valid for {outcome.published_target}."
        verb = "Updated" if outcome.operation == "update" else "Published"
        return f"{verb} {outcome.identifier} on {outcome.published_target}."

    error = outcome.error
    if error is None:
        return "Publishing failed."
    if error.kind == ErrorKind.VALIDATION:
        return f"Entity is incomplete: {error.message}. Add the missing details and try again."
    if error.kind == ErrorKind.CONFLICT:
        if error.existing_identifier:
            return (
                f"This business already exists as {error.existing_identifier}. "
                "Update that entity instead of creating a new one."
            )
        return "An entity with this name and description already exists."
    if error.kind == ErrorKind.NOT_NOTABLE:
        missing = verdict.reasons[-1] if verdict and verdict.reasons else error.message
        return f"Not enough independent references to publish ({missing})."
    if error.kind in (ErrorKind.NETWORK, ErrorKind.TOKEN_EXPIRED, ErrorKind.UNKNOWN_REMOTE):
        return "The knowledge base could not be reached. Please try again later."
    if error.kind == ErrorKind.AUTHENTICATION:
        return "Publishing credentials were rejected. Check the bot account settings."
    return error.message


class PublishOrchestrator:
    """
    Coordinates the evaluator, builder and client for one business.

    Args:
        builder: EntityBuilder (with its IdentifierResolver)
        client: PublishClient
        evaluator: NotabilityEvaluator (default thresholds if omitted)
        settings: Settings (default: get_settings())
    """

    def __init__(
        self,
        builder: EntityBuilder,
        client: PublishClient,
        evaluator: NotabilityEvaluator | None = None,
        settings: Settings | None = None,
    ):
        self.builder = builder
        self.client = client
        self.evaluator = evaluator or NotabilityEvaluator()
        self.settings = settings or get_settings()

    def publish(
        self,
        subject: BusinessSubject,
        crawl_data: CrawlData | None = None,
        references: Iterable[Reference] | None = None,
        *,
        target: PublishTarget | str | None = None,
        dry_run: bool | None = None,
        require_notability: bool | None = None,
        identifier: str | None = None,
    ) -> PublishReport:
        """
        Evaluate, build and publish one business.

        Creates a new entity unless an identifier is known (argument or
        subject.identifier), in which case that entity is updated.

        Raises:
            EntityBuildError: If the subject has no name
        """
        references = list(references or ())
        require = (
            self.settings.require_notability if require_notability is None else require_notability
        )

        verdict = self.evaluator.evaluate(subject, references)
        if require and not verdict.is_notable:
            logger.info(f"Skipping {subject.name!r}: not notable ({'; '.join(verdict.reasons)})")
            failure = PublishFailure(
                kind=ErrorKind.NOT_NOTABLE,
                message=verdict.reasons[-1] if verdict.reasons else "not notable",
            )
            outcome = PublishOutcome.failed(failure, published_target="")
            return PublishReport(outcome, verdict, None, user_message(outcome, verdict))

        entity = self.builder.build(subject, crawl_data, verdict.top_references)
        outcome = self.client.publish_entity(
            entity,
            target=target,
            identifier=identifier or subject.identifier,
            dry_run=dry_run,
        )
        return PublishReport(outcome, verdict, entity, user_message(outcome, verdict))

    def publish_or_update(
        self,
        subject: BusinessSubject,
        crawl_data: CrawlData | None = None,
        references: Iterable[Reference] | None = None,
        *,
        target: PublishTarget | str | None = None,
        dry_run: bool | None = None,
        require_notability: bool | None = None,
        identifier: str | None = None,
    ) -> PublishReport:
        """
        Publish, and on a conflict that names the existing entity, update it instead.

        The update reuses the entity already built for the create attempt. When an
        identifier is known up front (argument or subject.identifier) that entity
        is updated directly and a conflict is reported as is.
        """
        references = list(references or ())
        report = self.publish(
            subject,
            crawl_data,
            references,
            target=target,
            dry_run=dry_run,
            require_notability=require_notability,
            identifier=identifier,
        )
        error = report.outcome.error
        if (
            report.outcome.success
            or report.outcome.operation != "create"
            or error is None
            or error.kind != ErrorKind.CONFLICT
            or not error.existing_identifier
            or report.entity is None
        ):
            return report

        logger.info(
            f"{subject.name!r} already exists as {error.existing_identifier}; updating instead"
        )
        outcome = self.client.publish_entity(
            report.entity,
            target=target,
            identifier=error.existing_identifier,
            dry_run=dry_run,
        )
        return PublishReport(
            outcome, report.verdict, report.entity, user_message(outcome, report.verdict)
        )
