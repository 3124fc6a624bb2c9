"""Unit tests for the SSE event parser.

Tests that parse_event_block() turns well-formed blocks into typed events
and silently drops blocks it cannot use.
"""

import json
import logging

import pytest

from chatstream.exceptions import DecodeError
from chatstream.streaming.events import DoneEvent, ErrorEvent, StatusEvent, TokenEvent
from chatstream.streaming.parser import decode_event, parse_event_block, split_block
from tests.helpers.backend import message_payload


class TestSplitBlock:
    """Tests for split_block() marker extraction."""

    def test_event_and_data(self):
        assert split_block('event: token\ndata: {"content": "hi"}') == (
            "token",
            '{"content": "hi"}',
        )

    def test_event_type_is_stripped(self):
        assert split_block("event: token  \ndata: {}") == ("token", "{}")

    def test_first_lines_win(self):
        block = 'event: status\nevent: token\ndata: {"status": "a"}\ndata: {"status": "b"}'
        assert split_block(block) == ("status", '{"status": "a"}')

    def test_missing_event_line(self):
        assert split_block('data: {"content": "hi"}') is None

    def test_missing_data_line(self):
        assert split_block("event: token") is None

    def test_prefix_requires_space(self):
        assert split_block('event:token\ndata:{"content": "hi"}') is None

    def test_other_lines_ignored(self):
        block = ': keep-alive\nid: 7\nevent: status\ndata: {"status": "thinking"}'
        assert split_block(block) == ("status", '{"status": "thinking"}')


class TestParseEventBlock:
    """Tests for parse_event_block()."""

    def test_token(self):
        event = parse_event_block('event: token\ndata: {"content":"hi"}')
        assert isinstance(event, TokenEvent)
        assert event.content == "hi"

    def test_status(self):
        event = parse_event_block('event: status\ndata: {"status": "thinking"}')
        assert isinstance(event, StatusEvent)
        assert event.status == "thinking"

    def test_error(self):
        event = parse_event_block('event: error\ndata: {"message": "rate limited"}')
        assert isinstance(event, ErrorEvent)
        assert event.message == "rate limited"

    def test_error_without_message_uses_default(self):
        event = parse_event_block("event: error\ndata: {}")
        assert isinstance(event, ErrorEvent)
        assert event.message == "Unknown error"

    def test_error_with_null_message_is_kept(self):
        event = parse_event_block('event: error\ndata: {"message": null}')
        assert isinstance(event, ErrorEvent)
        assert event.message is None

    def test_done(self):
        payload = {
            "userMessage": message_payload("u1", "user", "Hello"),
            "aiMessage": message_payload("a1", "assistant", "Hi there"),
        }
        event = parse_event_block(f"event: done\ndata: {json.dumps(payload)}")
        assert isinstance(event, DoneEvent)
        assert event.user_message.id == "u1"
        assert event.ai_message.id == "a1"
        assert event.ai_message.content == "Hi there"

    def test_done_with_citations(self):
        ai = message_payload("a1", "assistant", "See page 4")
        ai["citations"] = [{"filename": "report.pdf", "page": 4}]
        payload = {"userMessage": message_payload("u1"), "aiMessage": ai}
        event = parse_event_block(f"event: done\ndata: {json.dumps(payload)}")
        assert event.ai_message.citations[0].filename == "report.pdf"
        assert event.ai_message.citations[0].page == 4

    def test_invalid_json_yields_nothing(self, caplog):
        with caplog.at_level(logging.WARNING, logger="chatstream.streaming.parser"):
            event = parse_event_block('event: token\ndata: {"content": "hi"')
        assert event is None
        assert "Failed to parse SSE message" in caplog.text

    def test_wrong_shape_yields_nothing(self):
        assert parse_event_block('event: token\ndata: {"text": "hi"}') is None

    def test_done_missing_messages_yields_nothing(self):
        payload = {"userMessage": message_payload("u1")}
        assert parse_event_block(f"event: done\ndata: {json.dumps(payload)}") is None

    def test_non_object_payload_yields_nothing(self):
        assert parse_event_block('event: token\ndata: ["hi"]') is None

    def test_unknown_event_type_yields_nothing(self):
        assert parse_event_block('event: heartbeat\ndata: {"ts": 1}') is None

    def test_payload_type_key_cannot_override_event_line(self):
        event = parse_event_block('event: token\ndata: {"type": "status", "content": "x"}')
        assert isinstance(event, TokenEvent)

    def test_block_without_markers_yields_nothing(self):
        assert parse_event_block("just some text") is None


class TestDecodeEvent:
    """decode_event() raises DecodeError for the parser to swallow."""

    def test_raises_on_bad_json(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_event("token", "{nope")
        assert exc_info.value.event_type == "token"

    def test_raises_on_validation_failure(self):
        with pytest.raises(DecodeError):
            decode_event("status", '{"status": 5}')
