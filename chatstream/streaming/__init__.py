"""Streaming module: decomposed components for a streamed chat reply.

Provides independently testable pieces for SSE frame decoding, event
parsing, cooperative cancellation, transcript reconciliation and the
session state machine that ties them together.
"""

from chatstream.streaming.cancellation import CancellationToken
from chatstream.streaming.decoder import FrameDecoder
from chatstream.streaming.events import DoneEvent, ErrorEvent, StatusEvent, StreamEvent, TokenEvent
from chatstream.streaming.parser import parse_event_block
from chatstream.streaming.reconciler import ConversationReconciler, ConversationSnapshot
from chatstream.streaming.session import (
    SendOutcome,
    SessionPhase,
    SessionState,
    SessionView,
    StreamSession,
)

__all__ = [
    "CancellationToken",
    "ConversationReconciler",
    "ConversationSnapshot",
    "DoneEvent",
    "ErrorEvent",
    "FrameDecoder",
    "SendOutcome",
    "SessionPhase",
    "SessionState",
    "SessionView",
    "StatusEvent",
    "StreamEvent",
    "StreamSession",
    "TokenEvent",
    "parse_event_block",
]
