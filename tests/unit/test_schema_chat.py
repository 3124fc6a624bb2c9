"""Unit tests for chat schemas, settings and the exception hierarchy."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from chatstream.exceptions import (
    ChatStreamError,
    DecodeError,
    PreconditionError,
    ProtocolError,
    StreamCancelledError,
    TransportError,
)
from chatstream.schema.chat import (
    ChatWithMessages,
    FeedbackRequest,
    OptimisticEntry,
    PersistedEntry,
    new_optimistic_message,
)
from chatstream.settings import Settings
from tests.helpers.backend import make_message, message_payload


class TestMessage:
    def test_parses_timestamp_and_defaults(self):
        message = make_message("m1")
        assert isinstance(message.created_at, datetime)
        assert message.citations == []

    def test_ignores_unknown_fields(self):
        message = make_message("m1", feedback_count=3)
        assert not hasattr(message, "feedback_count")

    def test_null_citations_become_empty(self):
        message = make_message("m1", citations=None)
        assert message.citations == []

    def test_rejects_unknown_role(self):
        payload = message_payload("m1")
        payload["role"] = "system"
        with pytest.raises(ValidationError):
            ChatWithMessages(id="c", messages=[payload])


class TestEntries:
    def test_entry_kinds(self):
        message = make_message("m1")
        assert PersistedEntry(message).kind == "persisted"
        assert OptimisticEntry(message).kind == "optimistic"
        assert PersistedEntry(message).id == "m1"

    def test_optimistic_ids_are_distinct_from_server_ids(self):
        message = new_optimistic_message("chat-1", "user_1", "Hi")
        assert message.id.startswith("temp-")
        assert message.chat_id == "chat-1"
        assert message.created_at.tzinfo is not None


class TestFeedbackRequest:
    def test_valid(self):
        request = FeedbackRequest(message_id="a1", rating="like")
        assert request.model_dump() == {
            "message_id": "a1",
            "rating": "like",
            "comment": None,
            "category": None,
        }

    def test_invalid_rating(self):
        with pytest.raises(ValidationError):
            FeedbackRequest(message_id="a1", rating="meh")


class TestSettings:
    def test_environment_overrides(self, test_settings):
        assert test_settings.backend_url == "http://backend.test"
        assert test_settings.api_token.get_secret_value() == "test-token"
        assert test_settings.rollback_on_cancel is True

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("BACKEND_URL")
        settings = Settings(_env_file=None)
        assert settings.backend_url == "http://localhost:8000"
        assert settings.stream_timeout == 900.0


class TestExceptions:
    @pytest.mark.parametrize(
        "error_cls",
        [PreconditionError, TransportError, ProtocolError, StreamCancelledError, DecodeError],
    )
    def test_hierarchy(self, error_cls):
        error = error_cls("boom")
        assert isinstance(error, ChatStreamError)
        assert error.correlation_id

    def test_transport_error_status(self):
        assert TransportError("nope", status_code=502).status_code == 502

    def test_explicit_correlation_id(self):
        assert ProtocolError("x", correlation_id="abc").correlation_id == "abc"
