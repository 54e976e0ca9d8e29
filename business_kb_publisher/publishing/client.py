"""
Publish client for the remote knowledge base (MediaWiki Action API + Wikibase).

Gates, in order, before any network call:
1. Target: production is honoured only with settings.allow_production;
   otherwise the request is downgraded to sandbox (logged, not an error)
2. Validation: structurally invalid entities fail with ErrorKind.VALIDATION
3. Dry run: success with the placeholder identifier, zero network calls

Retry policy:
- Network errors (timeouts, connection, HTTP 5xx, maxlag/ratelimited): one
  retry after settings.retry_backoff_seconds
- Login NeedToken: one retry with a fresh login token
- Expired edit token (badtoken): one re-acquisition; a second consecutive
  token failure is an AuthenticationError
- Everything else is terminal

Before the first write the payload is checked against the target's property
datatypes (settings.verify_property_types). Mismatched properties are dropped
on sandbox and fail the publish with ErrorKind.VALIDATION on production. If
the datatypes cannot be fetched the write goes ahead unchecked.

Remote failures never raise to the caller; they come back in
PublishOutcome.error.
"""

import logging
import time
import uuid
from collections.abc import Callable

from business_kb_publisher.config import Settings, get_bot_credentials, get_settings
from business_kb_publisher.constants import (
    DRY_RUN_IDENTIFIER,
    NETWORK_RETRY_LIMIT,
    TOKEN_REFRESH_LIMIT,
)
from business_kb_publisher.domain.models import (
    ErrorKind,
    PublishFailure,
    PublishOutcome,
    PublishTarget,
    StructuredEntity,
)
from business_kb_publisher.domain.validation import entity_structure_errors, is_valid_identifier
from business_kb_publisher.publishing.datatypes import (
    datatype_mismatches,
    drop_properties,
    payload_value_types,
)
from business_kb_publisher.publishing.errors import (
    AuthenticationError,
    NetworkError,
    PublishError,
    TokenExpiredError,
    UnsupportedTargetError,
    ValidationError,
)
from business_kb_publisher.publishing.responses import EntityWriteResult
from business_kb_publisher.publishing.session import PublishSession
from business_kb_publisher.publishing.transport import RequestsTransport, Transport, host_of

logger = logging.getLogger(__name__)

TransportFactory = Callable[[str], Transport]


def parse_target(target: PublishTarget | str | None) -> PublishTarget:
    """
    Parse a target name strictly.

    Raises:
        UnsupportedTargetError: For anything other than sandbox/production
    """
    if isinstance(target, PublishTarget):
        return target
    try:
        return PublishTarget((target or "").strip().lower())
    except ValueError:
        raise UnsupportedTargetError(
            f"Unknown publish target {target!r} (expected 'sandbox' or 'production')"
        ) from None


class PublishClient:
    """
    Publishes StructuredEntity objects.

    Args:
        settings: Settings (default: get_settings())
        transport_factory: Builds a Transport for an API URL; one transport
            (and so one cookie jar) per publish attempt
        sleep: Backoff sleep function (injectable for tests)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport_factory: TransportFactory | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings or get_settings()
        self.transport_factory = transport_factory or self._default_transport
        self.sleep = sleep

    def _default_transport(self, api_url: str) -> Transport:
        return RequestsTransport(
            api_url,
            timeout=self.settings.request_timeout,
            user_agent=self.settings.user_agent,
        )

    # ------------------------------------------------------------------
    # Target selection
    # ------------------------------------------------------------------

    def effective_target(self, requested: PublishTarget) -> PublishTarget:
        """Apply the production safety gate."""
        if requested == PublishTarget.PRODUCTION and not self.settings.allow_production:
            logger.warning(
                "Production publishing requested but ALLOW_PRODUCTION_PUBLISH is not set; "
                "publishing to sandbox instead"
            )
            return PublishTarget.SANDBOX
        return requested

    def api_url(self, target: PublishTarget) -> str:
        if target == PublishTarget.PRODUCTION:
            return self.settings.production_api_url
        return self.settings.sandbox_api_url

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def publish_entity(
        self,
        entity: StructuredEntity,
        target: PublishTarget | str | None = None,
        identifier: str | None = None,
        dry_run: bool | None = None,
        summary: str | None = None,
    ) -> PublishOutcome:
        """
        Create or update an entity.

        Args:
            entity: Entity to publish (not modified)
            target: "sandbox" or "production" (default: settings.default_target)
            identifier: Existing identifier; when given, the entity is updated
            dry_run: Validate only (default: settings.dry_run)
            summary: Edit summary

        Returns:
            PublishOutcome
        """
        operation = "update" if identifier else "create"
        dry_run = self.settings.dry_run if dry_run is None else dry_run

        if target is None:
            target = self.settings.default_target
        try:
            requested = parse_target(target)
        except UnsupportedTargetError as e:
            logger.error(str(e))
            return PublishOutcome.failed(e.to_failure(), published_target="", operation=operation)
        effective = self.effective_target(requested)
        api_url = self.api_url(effective)
        host = host_of(api_url)

        try:
            self._validate(entity, identifier, force=dry_run)
        except ValidationError as e:
            logger.warning(f"Entity failed validation: {e.message}")
            return PublishOutcome.failed(e.to_failure(), host, operation)

        if dry_run:
            logger.info(f"[DRY RUN] Would {operation} {entity.label()!r} on {host}")
            return PublishOutcome.succeeded(DRY_RUN_IDENTIFIER, host, operation, dry_run=True)

        try:
            username, password = get_bot_credentials(self.settings)
        except ValueError as e:
            failure = PublishFailure(kind=ErrorKind.AUTHENTICATION, message=str(e))
            return PublishOutcome.failed(failure, host, operation)

        data = self.build_payload(entity, effective)
        summary = summary or f"{operation.capitalize()} business entity: {entity.label()}"

        transport = self.transport_factory(api_url)
        session = PublishSession(transport)
        try:
            result = self._run(session, username, password, data, identifier, summary, effective)
        except PublishError as e:
            session.fail()
            logger.error(f"Publish to {host} failed ({e.kind.value}): {e.message}")
            return PublishOutcome.failed(e.to_failure(), host, operation)
        finally:
            transport.close()

        logger.info(f"Published {result.identifier} to {host} ({operation})")
        return PublishOutcome.succeeded(result.identifier, host, operation)

    def _validate(self, entity: StructuredEntity, identifier: str | None, force: bool) -> None:
        if identifier is not None and not is_valid_identifier(identifier):
            raise ValidationError(f"Invalid identifier {identifier!r}")
        if not (self.settings.validate_entities or force):
            return
        problems = entity_structure_errors(entity)
        if problems:
            raise ValidationError("; ".join(problems), problems=problems)

    def build_payload(self, entity: StructuredEntity, target: PublishTarget) -> dict:
        """Serialize an entity for wbeditentity; the entity itself is left untouched."""
        sandbox_quirks = target == PublishTarget.SANDBOX and self.settings.sandbox_unique_labels
        data = entity.to_wikibase_json(include_references=not sandbox_quirks)
        if sandbox_quirks:
            # Sandbox has many leftover test items with the same labels
            suffix = uuid.uuid4().hex[:8]
            for term in data["labels"].values():
                term["value"] = f"{term['value']} ({suffix})"
        return data

    # ------------------------------------------------------------------
    # State machine driver
    # ------------------------------------------------------------------

    def _run(
        self,
        session: PublishSession,
        username: str,
        password: str,
        data: dict,
        identifier: str | None,
        summary: str,
        target: PublishTarget,
    ) -> EntityWriteResult:
        self._with_network_retry(session.acquire_login_token)
        self._login(session, username, password)
        self._with_network_retry(session.acquire_edit_token)
        data = self._check_datatypes(session, data, target)
        return self._write(session, data, identifier, summary)

    def _with_network_retry(self, step, *args, **kwargs):
        attempt = 0
        while True:
            try:
                return step(*args, **kwargs)
            except NetworkError as e:
                if attempt >= NETWORK_RETRY_LIMIT:
                    raise
                attempt += 1
                delay = self.settings.retry_backoff_seconds * attempt
                logger.warning(f"{e.message}; retrying in {delay:.1f}s")
                self.sleep(delay)

    def _check_datatypes(
        self, session: PublishSession, data: dict, target: PublishTarget
    ) -> dict:
        """
        Compare the payload with the target's property datatypes.

        Returns:
            The payload, with mismatched properties removed on sandbox

        Raises:
            ValidationError: Production payload uses a property with the wrong value type
        """
        property_ids = payload_value_types(data)
        if not (self.settings.verify_property_types and property_ids):
            return data
        try:
            datatypes = self._with_network_retry(session.fetch_property_datatypes, property_ids)
        except PublishError as e:
            logger.warning(f"Could not fetch property datatypes from {session.host}: {e.message}")
            return data

        mismatches = datatype_mismatches(data, datatypes)
        if not mismatches:
            return data
        problems = [f"{pid}: {reason}" for pid, reason in mismatches.items()]
        if target == PublishTarget.PRODUCTION:
            raise ValidationError(
                f"Property datatype mismatch on {session.host}: {'; '.join(problems)}",
                problems=problems,
            )
        logger.warning(
            f"Dropping {len(mismatches)} properties that do not fit {session.host}: "
            f"{', '.join(mismatches)}"
        )
        for problem in problems:
            logger.debug(problem)
        return drop_properties(data, mismatches)

    def _login(self, session: PublishSession, username: str, password: str) -> None:
        refreshes = 0
        while True:
            try:
                self._with_network_retry(session.login, username, password)
                return
            except TokenExpiredError as e:
                if refreshes >= TOKEN_REFRESH_LIMIT:
                    raise AuthenticationError(
                        f"Login token rejected again after refresh: {e.message}", code=e.code
                    ) from e
                refreshes += 1
                logger.info("Login needs a fresh token; retrying once")
                self._with_network_retry(session.acquire_login_token)

    def _write(
        self, session: PublishSession, data: dict, identifier: str | None, summary: str
    ) -> EntityWriteResult:
        refreshes = 0
        while True:
            try:
                return self._with_network_retry(
                    session.write_entity,
                    data,
                    identifier=identifier,
                    summary=summary,
                    bot=self.settings.use_bot_flag,
                )
            except TokenExpiredError as e:
                if refreshes >= TOKEN_REFRESH_LIMIT:
                    raise AuthenticationError(
                        f"Edit token rejected again after refresh: {e.message}", code=e.code
                    ) from e
                refreshes += 1
                logger.info("Edit token expired; re-acquiring once")
                session.invalidate_edit_token()
                self._with_network_retry(session.acquire_edit_token)
