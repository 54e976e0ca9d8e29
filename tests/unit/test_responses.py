"""
Unit tests for Action API response parsing.
"""

import pytest

from business_kb_publisher.publishing.responses import (
    EditTokenResponse,
    EntityWriteResult,
    ErrorResult,
    LoginResult,
    PropertyDatatypes,
    ResponseKind,
    TokenResponse,
    parse_response,
)
from fakes import (
    conflict_response,
    edit_token_response,
    entity_response,
    error_response,
    login_need_token_response,
    login_success_response,
    login_token_response,
    property_datatypes_response,
)


class TestTokenResponses:
    def test_login_token(self):
        result = parse_response(ResponseKind.LOGIN_TOKEN, login_token_response("abc+\\"))
        assert result == TokenResponse(token="abc+\\")

    def test_edit_token(self):
        result = parse_response(ResponseKind.EDIT_TOKEN, edit_token_response("csrf+\\"))
        assert result == EditTokenResponse(token="csrf+\\")

    def test_anonymous_edit_token(self):
        """The anonymous token means the session lost its login."""
        result = parse_response(ResponseKind.EDIT_TOKEN, edit_token_response("+\\"))
        assert isinstance(result, ErrorResult)
        assert result.code == "notloggedin"

    def test_missing_token(self):
        result = parse_response(ResponseKind.LOGIN_TOKEN, {"query": {"tokens": {}}})
        assert isinstance(result, ErrorResult)
        assert result.code == "unexpected-response"


class TestLoginResult:
    def test_success(self):
        result = parse_response(ResponseKind.LOGIN, login_success_response("Bot@pytest"))
        assert isinstance(result, LoginResult)
        assert result.succeeded
        assert result.username == "Bot@pytest"

    def test_need_token(self):
        result = parse_response(ResponseKind.LOGIN, login_need_token_response())
        assert result.needs_token
        assert not result.succeeded
        assert result.token == "fresh-login-token+\\"

    def test_structured_reason(self):
        payload = {"login": {"result": "Failed", "reason": {"code": "wrongpassword"}}}
        result = parse_response(ResponseKind.LOGIN, payload)
        assert result.reason == "wrongpassword"
        assert not result.needs_token

    def test_missing_result(self):
        result = parse_response(ResponseKind.LOGIN, {"login": {}})
        assert isinstance(result, ErrorResult)


class TestEntityWriteResult:
    def test_success(self):
        result = parse_response(ResponseKind.ENTITY_WRITE, entity_response("Q42", revision=7))
        assert result == EntityWriteResult(identifier="Q42", revision_id=7)

    def test_missing_entity(self):
        result = parse_response(ResponseKind.ENTITY_WRITE, {"success": 1})
        assert isinstance(result, ErrorResult)
        assert result.code == "unexpected-response"


class TestPropertyDatatypes:
    def test_datatypes(self):
        payload = property_datatypes_response(
            {"P31": "wikibase-item", "P856": "url"}, missing=("P99999",)
        )
        result = parse_response(ResponseKind.PROPERTY_INFO, payload)
        assert result == PropertyDatatypes(datatypes={"P31": "wikibase-item", "P856": "url"})

    def test_missing_entities(self):
        result = parse_response(ResponseKind.PROPERTY_INFO, {"success": 1})
        assert isinstance(result, ErrorResult)
        assert result.code == "unexpected-response"

    def test_no_such_entity_error(self):
        payload = error_response("no-such-entity", "Could not find an entity with the ID \"X\".")
        result = parse_response(ResponseKind.PROPERTY_INFO, payload)
        assert result.code == "no-such-entity"


class TestErrorResult:
    """Error bodies and their classification."""

    def test_conflict_from_messages(self):
        """Generic code, specific validator message: a conflict naming the item."""
        result = parse_response(ResponseKind.ENTITY_WRITE, conflict_response("Q4115189"))

        assert isinstance(result, ErrorResult)
        assert result.is_conflict
        assert result.code == "wikibase-validator-label-with-description-conflict"
        assert result.existing_identifier == "Q4115189"

    def test_generic_save_failure_mentioning_existing_label(self):
        payload = error_response("failed-save", "Item Q77 already has label 'Acme' in en")
        result = parse_response(ResponseKind.ENTITY_WRITE, payload)
        assert result.is_conflict
        assert result.existing_identifier == "Q77"

    def test_generic_save_failure_is_not_conflict(self):
        payload = error_response("modification-failed", "Malformed input")
        result = parse_response(ResponseKind.ENTITY_WRITE, payload)
        assert not result.is_conflict

    @pytest.mark.parametrize("code", ["badtoken", "notoken"])
    def test_token_errors(self, code):
        result = parse_response(ResponseKind.ENTITY_WRITE, error_response(code, "Invalid token"))
        assert result.is_token_error
        assert not result.is_transient

    @pytest.mark.parametrize("code", ["maxlag", "ratelimited", "readonly"])
    def test_transient_errors(self, code):
        result = parse_response(ResponseKind.ENTITY_WRITE, error_response(code))
        assert result.is_transient

    def test_errors_list_format(self):
        """errorformat=plaintext returns an 'errors' list."""
        payload = {"errors": [{"code": "permissiondenied", "text": "You may not edit."}]}
        result = parse_response(ResponseKind.ENTITY_WRITE, payload)
        assert result == ErrorResult(code="permissiondenied", info="You may not edit.")

    def test_error_wins_over_kind(self):
        result = parse_response(ResponseKind.LOGIN_TOKEN, error_response("readonly"))
        assert isinstance(result, ErrorResult)

    @pytest.mark.parametrize("payload", [None, [], "oops", 42])
    def test_non_object_body(self, payload):
        result = parse_response(ResponseKind.LOGIN, payload)
        assert isinstance(result, ErrorResult)
        assert result.code == "unexpected-response"
