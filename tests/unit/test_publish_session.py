"""
Unit tests for the per-attempt publish session state machine.

Each test drives a PublishSession through a scripted FakeTransport.
"""

import json

import pytest

from business_kb_publisher.publishing.errors import (
    AuthenticationError,
    ConflictError,
    NetworkError,
    TokenExpiredError,
    UnknownRemoteError,
)
from business_kb_publisher.publishing.session import (
    ALLOWED_TRANSITIONS,
    PublishSession,
    PublishState,
)
from fakes import (
    FakeTransport,
    conflict_response,
    edit_token_response,
    entity_response,
    error_response,
    login_failed_response,
    login_need_token_response,
    login_success_response,
    login_token_response,
    property_datatypes_response,
)

DATA = {"labels": {"en": {"language": "en", "value": "Acme Widgets"}}}


def _session(*responses):
    return PublishSession(FakeTransport(list(responses)))


def _logged_in_session(*responses):
    session = _session(login_token_response(), login_success_response(), *responses)
    session.acquire_login_token()
    session.login("TestUser@pytest", "secret")
    return session


class TestTransitions:
    """Legal and illegal state changes."""

    def test_initial_state(self):
        session = _session()
        assert session.state == PublishState.UNAUTHENTICATED
        assert session.history == [PublishState.UNAUTHENTICATED]

    def test_illegal_transition(self):
        session = _session()
        with pytest.raises(RuntimeError, match="Illegal publish transition"):
            session.advance(PublishState.LOGGED_IN)

    def test_terminal_states_have_no_exits(self):
        assert ALLOWED_TRANSITIONS[PublishState.PUBLISHED] == frozenset()
        assert ALLOWED_TRANSITIONS[PublishState.FAILED] == frozenset()

    def test_any_state_can_fail(self):
        session = _logged_in_session()
        session.advance(PublishState.FAILED)
        assert session.state == PublishState.FAILED
        with pytest.raises(RuntimeError):
            session.advance(PublishState.EDIT_TOKEN_ACQUIRED)

    def test_fail_clears_tokens(self):
        session = _logged_in_session(edit_token_response())
        session.acquire_edit_token()
        session.fail()
        assert session.edit_token is None
        assert session.history[-1] == PublishState.FAILED


class TestLogin:
    def test_happy_path(self):
        session = _logged_in_session()

        assert session.state == PublishState.LOGGED_IN
        assert session.username == "TestUser@pytest"
        assert session.login_token is None
        method, payload = session.transport.calls[1]
        assert method == "POST"
        assert payload["action"] == "login"
        assert payload["lgtoken"] == "login-token+\\"

    def test_login_before_token(self):
        with pytest.raises(RuntimeError):
            _session().login("user", "pw")

    def test_rejected_credentials(self):
        session = _session(login_token_response(), login_failed_response())
        session.acquire_login_token()
        with pytest.raises(AuthenticationError, match="Incorrect username"):
            session.login("TestUser@pytest", "wrong")

    def test_need_token(self):
        """NeedToken asks for a new login token; the session can re-acquire one."""
        session = _session(
            login_token_response("first+\\"),
            login_need_token_response(),
            login_token_response("second+\\"),
            login_success_response(),
        )
        session.acquire_login_token()
        with pytest.raises(TokenExpiredError):
            session.login("TestUser@pytest", "secret")

        session.acquire_login_token()
        session.login("TestUser@pytest", "secret")

        assert session.state == PublishState.LOGGED_IN
        assert session.transport.calls[3][1]["lgtoken"] == "second+\\"
        assert session.history == [
            PublishState.UNAUTHENTICATED,
            PublishState.LOGIN_TOKEN_ACQUIRED,
            PublishState.LOGIN_TOKEN_ACQUIRED,
            PublishState.LOGGED_IN,
        ]

    def test_transient_error_on_token(self):
        session = _session(error_response("maxlag", "Waiting for a database server"))
        with pytest.raises(NetworkError) as exc_info:
            session.acquire_login_token()
        assert exc_info.value.code == "maxlag"
        assert session.state == PublishState.UNAUTHENTICATED


class TestEditTokenAndWrite:
    def test_create(self):
        session = _logged_in_session(edit_token_response(), entity_response("Q42"))
        session.acquire_edit_token()

        result = session.write_entity(DATA, summary="Create business entity: Acme Widgets")

        assert result.identifier == "Q42"
        assert session.state == PublishState.PUBLISHED
        _, request = session.transport.calls[-1]
        assert request["action"] == "wbeditentity"
        assert request["new"] == "item"
        assert "id" not in request
        assert request["assert"] == "user"
        assert request["token"] == "csrf-token+\\"
        assert json.loads(request["data"]) == DATA
        assert "bot" not in request

    def test_update(self):
        session = _logged_in_session(edit_token_response(), entity_response("Q42"))
        session.acquire_edit_token()

        session.write_entity(DATA, identifier="Q42", bot=True)

        _, request = session.transport.calls[-1]
        assert request["id"] == "Q42"
        assert "new" not in request
        assert "clear" not in request
        assert request["bot"] == "1"

    def test_write_before_edit_token(self):
        session = _logged_in_session()
        with pytest.raises(RuntimeError):
            session.write_entity(DATA)

    def test_anonymous_edit_token(self):
        """A '+\\' csrf token means the login did not stick."""
        session = _logged_in_session(edit_token_response("+\\"))
        with pytest.raises(AuthenticationError):
            session.acquire_edit_token()

    def test_conflict(self):
        session = _logged_in_session(edit_token_response(), conflict_response("Q4115189"))
        session.acquire_edit_token()

        with pytest.raises(ConflictError) as exc_info:
            session.write_entity(DATA)

        assert exc_info.value.existing_identifier == "Q4115189"
        assert "Q4115189" in exc_info.value.message

    def test_bad_token(self):
        session = _logged_in_session(edit_token_response(), error_response("badtoken"))
        session.acquire_edit_token()
        with pytest.raises(TokenExpiredError):
            session.write_entity(DATA)

    def test_invalidate_and_reacquire(self):
        session = _logged_in_session(edit_token_response("old+\\"), edit_token_response("new+\\"))
        session.acquire_edit_token()

        session.invalidate_edit_token()
        assert session.state == PublishState.LOGGED_IN
        assert session.edit_token is None

        session.acquire_edit_token()
        assert session.edit_token == "new+\\"

    def test_unknown_error(self):
        session = _logged_in_session(
            edit_token_response(), error_response("invalid-claim", "Bad claim")
        )
        session.acquire_edit_token()
        with pytest.raises(UnknownRemoteError, match="invalid-claim"):
            session.write_entity(DATA)

    def test_sessions_do_not_share_tokens(self):
        """Two sessions hold independent state."""
        first = _logged_in_session(edit_token_response("one+\\"))
        second = _logged_in_session(edit_token_response("two+\\"))
        first.acquire_edit_token()
        second.acquire_edit_token()
        assert first.edit_token == "one+\\"
        assert second.edit_token == "two+\\"


class TestPropertyDatatypes:
    """Read-only datatype lookup."""

    def test_fetch_keeps_state(self):
        session = _logged_in_session(
            edit_token_response(),
            property_datatypes_response({"P31": "wikibase-item"}, missing=("P99999",)),
        )
        session.acquire_edit_token()

        datatypes = session.fetch_property_datatypes({"P99999", "P31"})

        assert datatypes == {"P31": "wikibase-item"}
        assert session.state == PublishState.EDIT_TOKEN_ACQUIRED
        method, request = session.transport.calls[-1]
        assert method == "GET"
        assert request["ids"] == "P31|P99999"
        assert request["props"] == "datatype"

    def test_large_lookups_are_split(self):
        ids = [f"P{n}" for n in range(1, 61)]
        first = {pid: "string" for pid in sorted(ids)[:50]}
        second = {pid: "string" for pid in sorted(ids)[50:]}
        session = _session(property_datatypes_response(first), property_datatypes_response(second))

        datatypes = session.fetch_property_datatypes(ids)

        assert len(datatypes) == 60
        assert len(session.transport.calls) == 2
        assert len(session.transport.calls[0][1]["ids"].split("|")) == 50

    def test_transient_error(self):
        session = _session(error_response("maxlag", "Waiting for a database server"))
        with pytest.raises(NetworkError):
            session.fetch_property_datatypes(["P31"])

    def test_unexpected_body(self):
        session = _session({"batchcomplete": ""})
        with pytest.raises(UnknownRemoteError, match="property datatypes"):
            session.fetch_property_datatypes(["P31"])
