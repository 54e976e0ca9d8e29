"""
Per-attempt publish session: the Action API login/write state machine.

    UNAUTHENTICATED -> LOGIN_TOKEN_ACQUIRED -> LOGGED_IN -> EDIT_TOKEN_ACQUIRED -> PUBLISHED
                                                                 any state -> FAILED

Each step performs one request through the session's transport and raises a
PublishError subclass on failure. Retry policy lives in the client; the
session only knows which transitions are legal.

Cookies and tokens belong to one PublishSession, never to the process, so
concurrent publishes for different businesses do not interfere.
"""

import json
import logging
from enum import Enum

from business_kb_publisher.publishing.datatypes import MAX_IDS_PER_REQUEST
from business_kb_publisher.publishing.errors import (
    AuthenticationError,
    ConflictError,
    NetworkError,
    TokenExpiredError,
    UnknownRemoteError,
)
from business_kb_publisher.publishing.responses import (
    EntityWriteResult,
    ErrorResult,
    LoginResult,
    ResponseKind,
    parse_response,
)
from business_kb_publisher.publishing.transport import Transport

logger = logging.getLogger(__name__)

# Remote codes meaning the account is not allowed to write
AUTH_ERROR_CODES = frozenset(
    {"notloggedin", "assertuserfailed", "assertbotfailed", "permissiondenied", "blocked"}
)


class PublishState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    LOGIN_TOKEN_ACQUIRED = "login_token_acquired"
    LOGGED_IN = "logged_in"
    EDIT_TOKEN_ACQUIRED = "edit_token_acquired"
    PUBLISHED = "published"
    FAILED = "failed"


ALLOWED_TRANSITIONS: dict[PublishState, frozenset[PublishState]] = {
    PublishState.UNAUTHENTICATED: frozenset({PublishState.LOGIN_TOKEN_ACQUIRED}),
    # Re-entering LOGIN_TOKEN_ACQUIRED is the NeedToken retry
    PublishState.LOGIN_TOKEN_ACQUIRED: frozenset(
        {PublishState.LOGIN_TOKEN_ACQUIRED, PublishState.LOGGED_IN}
    ),
    PublishState.LOGGED_IN: frozenset({PublishState.EDIT_TOKEN_ACQUIRED}),
    # Falling back to LOGGED_IN drops an expired edit token for re-acquisition
    PublishState.EDIT_TOKEN_ACQUIRED: frozenset(
        {PublishState.PUBLISHED, PublishState.LOGGED_IN}
    ),
    PublishState.PUBLISHED: frozenset(),
    PublishState.FAILED: frozenset(),
}


def _raise_for_error(result: ErrorResult, step: str) -> None:
    if result.is_transient:
        raise NetworkError(f"{step}: remote busy ({result.code}): {result.info}", code=result.code)
    if result.is_token_error:
        raise TokenExpiredError(f"{step}: token rejected ({result.code})", code=result.code)
    if result.code in AUTH_ERROR_CODES:
        raise AuthenticationError(f"{step}: {result.info or result.code}", code=result.code)
    raise UnknownRemoteError(f"{step}: {result.code}: {result.info}", code=result.code)


class PublishSession:
    """State and tokens for one publish attempt against one deployment."""

    def __init__(self, transport: Transport):
        self.transport = transport
        self.state = PublishState.UNAUTHENTICATED
        self.login_token: str | None = None
        self.edit_token: str | None = None
        self.username: str | None = None
        self.history: list[PublishState] = [self.state]

    @property
    def host(self) -> str:
        return self.transport.host

    def advance(self, new_state: PublishState) -> None:
        if new_state == PublishState.FAILED:
            self.fail()
            return
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Illegal publish transition {self.state.value} -> {new_state.value}"
            )
        logger.debug(f"{self.host}: {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.history.append(new_state)

    def fail(self) -> None:
        if self.state != PublishState.FAILED:
            self.state = PublishState.FAILED
            self.history.append(PublishState.FAILED)
        self.login_token = None
        self.edit_token = None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def acquire_login_token(self) -> str:
        payload = self.transport.get({"action": "query", "meta": "tokens", "type": "login"})
        result = parse_response(ResponseKind.LOGIN_TOKEN, payload)
        if isinstance(result, ErrorResult):
            _raise_for_error(result, "login token")
        self.login_token = result.token
        self.advance(PublishState.LOGIN_TOKEN_ACQUIRED)
        return result.token

    def login(self, username: str, password: str) -> LoginResult:
        """
        Submit bot credentials with the current login token.

        Raises:
            TokenExpiredError: The remote asked for a fresh login token (NeedToken)
            AuthenticationError: Credentials rejected
        """
        if self.login_token is None:
            raise RuntimeError("login() called before acquire_login_token()")
        payload = self.transport.post(
            {
                "action": "login",
                "lgname": username,
                "lgpassword": password,
                "lgtoken": self.login_token,
            }
        )
        result = parse_response(ResponseKind.LOGIN, payload)
        if isinstance(result, ErrorResult):
            _raise_for_error(result, "login")

        if result.needs_token:
            self.login_token = None
            raise TokenExpiredError(
                f"login: remote asked for a new token ({result.status})", code=result.status
            )
        if not result.succeeded:
            raise AuthenticationError(
                f"Login rejected for {username}: {result.reason or result.status}",
                code=result.status,
            )
        self.username = result.username or username
        self.login_token = None
        self.advance(PublishState.LOGGED_IN)
        return result

    def acquire_edit_token(self) -> str:
        payload = self.transport.get({"action": "query", "meta": "tokens", "type": "csrf"})
        result = parse_response(ResponseKind.EDIT_TOKEN, payload)
        if isinstance(result, ErrorResult):
            _raise_for_error(result, "edit token")
        self.edit_token = result.token
        self.advance(PublishState.EDIT_TOKEN_ACQUIRED)
        return result.token

    def fetch_property_datatypes(self, property_ids) -> dict[str, str]:
        """
        Look up property datatypes on this deployment (read-only; state is unchanged).

        Returns:
            Property id -> datatype; ids that do not exist are left out
        """
        ids = sorted(set(property_ids))
        datatypes: dict[str, str] = {}
        for start in range(0, len(ids), MAX_IDS_PER_REQUEST):
            chunk = ids[start : start + MAX_IDS_PER_REQUEST]
            payload = self.transport.get(
                {"action": "wbgetentities", "ids": "|".join(chunk), "props": "datatype"}
            )
            result = parse_response(ResponseKind.PROPERTY_INFO, payload)
            if isinstance(result, ErrorResult):
                _raise_for_error(result, "property datatypes")
            datatypes.update(result.datatypes)
        return datatypes

    def invalidate_edit_token(self) -> None:
        """Drop an expired edit token so it can be re-acquired."""
        self.edit_token = None
        self.advance(PublishState.LOGGED_IN)

    def write_entity(
        self,
        data: dict,
        identifier: str | None = None,
        summary: str | None = None,
        bot: bool = False,
    ) -> EntityWriteResult:
        """
        Create (identifier=None) or update an entity.

        Raises:
            ConflictError: Create rejected because the label/description pair is taken
            TokenExpiredError: Edit token rejected
            NetworkError: maxlag/ratelimited
        """
        if self.edit_token is None:
            raise RuntimeError("write_entity() called before acquire_edit_token()")
        request = {
            "action": "wbeditentity",
            "data": json.dumps(data, ensure_ascii=False),
            "token": self.edit_token,
            "assert": "user",
        }
        if identifier:
            request["id"] = identifier
        else:
            request["new"] = "item"
        if summary:
            request["summary"] = summary
        if bot:
            request["bot"] = "1"

        payload = self.transport.post(request)
        result = parse_response(ResponseKind.ENTITY_WRITE, payload)
        if isinstance(result, ErrorResult):
            if result.is_conflict:
                message = "An item with this label and description already exists"
                if result.existing_identifier:
                    message += f" ({result.existing_identifier})"
                raise ConflictError(
                    message,
                    existing_identifier=result.existing_identifier,
                    code=result.code,
                )
            _raise_for_error(result, "write")
        self.advance(PublishState.PUBLISHED)
        return result
