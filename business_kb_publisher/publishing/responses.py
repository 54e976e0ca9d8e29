"""
Action API response parsing.

Raw JSON bodies are parsed into a closed set of result variants so each
state transition handles exactly the shapes it can receive:

    TokenResponse      login token (action=query&meta=tokens&type=login)
    LoginResult        action=login
    EditTokenResponse  csrf token (action=query&meta=tokens&type=csrf)
    EntityWriteResult  action=wbeditentity
    PropertyDatatypes  action=wbgetentities&props=datatype
    ErrorResult        any API-level error, or a body missing expected fields
"""

import re
from dataclasses import dataclass
from enum import Enum

# Token MediaWiki hands out to anonymous sessions
ANONYMOUS_TOKEN = "+\\"

CONFLICT_CODES = frozenset(
    {
        "wikibase-validator-label-with-description-conflict",
        "wikibase-validator-label-conflict",
    }
)
# Generic save failures; a conflict only when the message says the label is taken
SAVE_FAILURE_CODES = frozenset({"modification-failed", "failed-save"})
TOKEN_ERROR_CODES = frozenset({"badtoken", "notoken"})
TRANSIENT_ERROR_CODES = frozenset(
    {"maxlag", "ratelimited", "readonly", "internal_api_error_DBQueryError"}
)

_QID_PATTERN = re.compile(r"\b(Q[1-9]\d*)\b")


class ResponseKind(str, Enum):
    LOGIN_TOKEN = "login_token"
    LOGIN = "login"
    EDIT_TOKEN = "edit_token"
    ENTITY_WRITE = "entity_write"
    PROPERTY_INFO = "property_info"


@dataclass(frozen=True)
class TokenResponse:
    token: str


@dataclass(frozen=True)
class LoginResult:
    status: str  # "Success", "NeedToken", "Failed", "WrongToken", ...
    username: str | None = None
    reason: str | None = None
    token: str | None = None  # Fresh login token sent with NeedToken

    @property
    def succeeded(self) -> bool:
        return self.status == "Success"

    @property
    def needs_token(self) -> bool:
        return self.status in ("NeedToken", "WrongToken")


@dataclass(frozen=True)
class EditTokenResponse:
    token: str


@dataclass(frozen=True)
class EntityWriteResult:
    identifier: str
    revision_id: int | None = None


@dataclass(frozen=True)
class ErrorResult:
    code: str
    info: str = ""
    existing_identifier: str | None = None

    @property
    def is_conflict(self) -> bool:
        if self.code in CONFLICT_CODES:
            return True
        return self.code in SAVE_FAILURE_CODES and "already" in self.info.lower()

    @property
    def is_token_error(self) -> bool:
        return self.code in TOKEN_ERROR_CODES

    @property
    def is_transient(self) -> bool:
        return self.code in TRANSIENT_ERROR_CODES


@dataclass(frozen=True)
class PropertyDatatypes:
    datatypes: dict[str, str]  # Property id -> datatype; ids missing on the target are absent


ApiResponse = (
    TokenResponse
    | LoginResult
    | EditTokenResponse
    | EntityWriteResult
    | PropertyDatatypes
    | ErrorResult
)


def _unexpected(kind: ResponseKind, payload: object) -> ErrorResult:
    snippet = repr(payload)[:200]
    return ErrorResult(
        code="unexpected-response", info=f"Unexpected {kind.value} response: {snippet}"
    )


def _find_identifier(error: dict) -> str | None:
    """Pull the conflicting item's identifier out of an error body."""
    texts = [str(error.get("info", ""))]
    for message in error.get("messages", []) or []:
        if isinstance(message, dict):
            texts.append(str(message.get("name", "")))
            texts.extend(str(param) for param in message.get("parameters", []) or [])
    for text in texts:
        match = _QID_PATTERN.search(text)
        if match:
            return match.group(1)
    return None


def _parse_error(payload: dict) -> ErrorResult | None:
    error = payload.get("error")
    if error is None and isinstance(payload.get("errors"), list) and payload["errors"]:
        error = payload["errors"][0]
    if not isinstance(error, dict):
        return None
    code = str(error.get("code", "unknown"))
    info = str(error.get("info") or error.get("text") or "")
    # Conflicts may report a generic code with the specific validator message inside
    for message in error.get("messages", []) or []:
        if isinstance(message, dict) and message.get("name") in CONFLICT_CODES:
            code = message["name"]
            break
    return ErrorResult(code=code, info=info, existing_identifier=_find_identifier(error))


def parse_response(kind: ResponseKind, payload: object) -> ApiResponse:
    """
    Parse an Action API JSON body.

    Args:
        kind: Which request the body answers
        payload: Decoded JSON

    Returns:
        One of the response variants; never raises
    """
    if not isinstance(payload, dict):
        return _unexpected(kind, payload)

    error = _parse_error(payload)
    if error is not None:
        return error

    if kind in (ResponseKind.LOGIN_TOKEN, ResponseKind.EDIT_TOKEN):
        tokens = payload.get("query", {}).get("tokens", {})
        field = "logintoken" if kind == ResponseKind.LOGIN_TOKEN else "csrftoken"
        token = tokens.get(field) if isinstance(tokens, dict) else None
        if not token:
            return _unexpected(kind, payload)
        if kind == ResponseKind.LOGIN_TOKEN:
            return TokenResponse(token=token)
        if token == ANONYMOUS_TOKEN:
            return ErrorResult(code="notloggedin", info="Session is not logged in")
        return EditTokenResponse(token=token)

    if kind == ResponseKind.LOGIN:
        login = payload.get("login")
        if not isinstance(login, dict) or "result" not in login:
            return _unexpected(kind, payload)
        reason = login.get("reason")
        if isinstance(reason, dict):
            reason = reason.get("text") or reason.get("code")
        return LoginResult(
            status=str(login["result"]),
            username=login.get("lgusername"),
            reason=reason,
            token=login.get("token"),
        )

    if kind == ResponseKind.PROPERTY_INFO:
        entities = payload.get("entities")
        if not isinstance(entities, dict):
            return _unexpected(kind, payload)
        datatypes = {}
        for property_id, info in entities.items():
            if isinstance(info, dict) and "missing" not in info and info.get("datatype"):
                datatypes[str(info.get("id") or property_id)] = str(info["datatype"])
        return PropertyDatatypes(datatypes=datatypes)

    entity = payload.get("entity")
    if not isinstance(entity, dict) or not entity.get("id"):
        return _unexpected(kind, payload)
    revision = entity.get("lastrevid")
    return EntityWriteResult(
        identifier=str(entity["id"]),
        revision_id=int(revision) if isinstance(revision, int) else None,
    )
