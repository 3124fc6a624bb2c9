"""Stream session: one send, from optimistic insert to reconciled transcript.

Drives the request lifecycle for a single user message::

    idle -> sending -> streaming -> completed | failed | cancelled

The session opens the streaming POST, feeds response bytes through the
:class:`FrameDecoder`, parses each block with :func:`parse_event_block`
and applies the resulting events to the :class:`ConversationReconciler`.
Listeners receive a :class:`SessionView` after every visible change
(streaming text, agent status, phase, error).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

import httpx

from chatstream.exceptions import (
    PreconditionError,
    ProtocolError,
    StreamCancelledError,
    TransportError,
)
from chatstream.schema.chat import Message, new_optimistic_message
from chatstream.settings import get_settings
from chatstream.streaming.cancellation import CancellationToken
from chatstream.streaming.decoder import FrameDecoder
from chatstream.streaming.events import DoneEvent, ErrorEvent, StatusEvent, TokenEvent
from chatstream.streaming.parser import parse_event_block

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from chatstream.client import ChatAPIClient
    from chatstream.streaming.events import StreamEvent
    from chatstream.streaming.reconciler import ConversationReconciler

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Failed to send message"


class SessionPhase(StrEnum):
    """Lifecycle phase of a stream session."""

    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class SessionState:
    """Resources owned by the send in flight.

    Attributes:
        optimistic_id: ID of the optimistic user message for this send.
        cancel_token: Abort signal for the in-flight request.
        is_streaming: Whether the read loop is still running.
        accumulated_text: Assistant text received so far.
        last_status: Most recent agent status text.
    """

    optimistic_id: str
    cancel_token: CancellationToken = field(default_factory=CancellationToken)
    is_streaming: bool = True
    accumulated_text: str = ""
    last_status: str = ""


@dataclass(frozen=True)
class SessionView:
    """What a presentation layer shows for the session."""

    phase: SessionPhase
    is_streaming: bool = False
    streaming_text: str = ""
    status: str = ""
    error: str | None = None


@dataclass(frozen=True)
class SendOutcome:
    """Terminal result of one send."""

    phase: SessionPhase
    user_message: Message | None = None
    ai_message: Message | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.phase == SessionPhase.COMPLETED


class StreamSession:
    """Sends messages to one chat and streams the replies.

    Sends must be serialized: a send issued while another is in flight
    fails immediately without touching the active one.

    Usage::

        session = StreamSession(client, reconciler, project_id="p1", user_id="user_1")
        session.subscribe(lambda view: render(view.streaming_text, view.status))
        outcome = await session.send("Hello")
    """

    def __init__(
        self,
        client: ChatAPIClient,
        reconciler: ConversationReconciler,
        *,
        project_id: str,
        user_id: str | None = None,
        rollback_on_cancel: bool | None = None,
        on_error: Callable[[str], None] | None = None,
    ) -> None:
        settings = get_settings()
        self._client = client
        self._reconciler = reconciler
        self.project_id = project_id
        self.user_id = user_id if user_id is not None else settings.user_id
        self.rollback_on_cancel = (
            settings.rollback_on_cancel if rollback_on_cancel is None else rollback_on_cancel
        )
        self._on_error = on_error
        self._listeners: list[Callable[[SessionView], None]] = []
        self._state: SessionState | None = None
        self._phase = SessionPhase.IDLE
        self._error: str | None = None

    # ─── Observation ──────────────────────────────────────────────────────

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def state(self) -> SessionState | None:
        """Resources of the send in flight, None when idle or finished."""
        return self._state

    @property
    def is_streaming(self) -> bool:
        return self._state is not None and self._state.is_streaming

    @property
    def view(self) -> SessionView:
        state = self._state
        return SessionView(
            phase=self._phase,
            is_streaming=self.is_streaming,
            streaming_text=state.accumulated_text if state else "",
            status=state.last_status if state else "",
            error=self._error,
        )

    def subscribe(self, listener: Callable[[SessionView], None]) -> Callable[[], None]:
        """Register a listener for view changes. Returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def dismiss_error(self) -> None:
        self._error = None
        self._publish()

    def _publish(self) -> None:
        view = self.view
        for listener in list(self._listeners):
            listener(view)

    # ─── Control ──────────────────────────────────────────────────────────

    def cancel(self, reason: str = "cancelled by user") -> bool:
        """Abort the send in flight.

        Returns:
            True if a stream was signalled, False if nothing was active.
        """
        state = self._state
        if state is None:
            return False
        state.cancel_token.cancel(reason)
        return True

    async def send(self, content: str) -> SendOutcome:
        """Send a user message and stream the assistant reply.

        Failures are reported through the returned outcome, the session
        view and ``on_error``; they are not raised. Cancellation is silent.

        Raises:
            asyncio.CancelledError: If the task running the send is itself
                cancelled. Session cleanup still runs first.
        """
        if self._state is not None:
            busy = PreconditionError("A message is already being sent")
            logger.warning("Send rejected: %s", busy)
            return SendOutcome(SessionPhase.FAILED, error=str(busy))

        snapshot = self._reconciler.snapshot
        if snapshot is None or not self.user_id:
            return self._fail(PreconditionError("Chat or user not found"))

        optimistic = new_optimistic_message(snapshot.chat_id, self.user_id, content)
        state = SessionState(optimistic_id=optimistic.id)
        self._state = state
        self._error = None
        self._phase = SessionPhase.SENDING

        try:
            self._reconciler.append_optimistic(optimistic)
            self._publish()
            return await self._stream(state, snapshot.chat_id, content)
        except StreamCancelledError:
            logger.info("Stream for %s cancelled", optimistic.id)
            self._rollback_cancelled(state)
            self._phase = SessionPhase.CANCELLED
            return SendOutcome(SessionPhase.CANCELLED)
        except asyncio.CancelledError:
            self._rollback_cancelled(state)
            self._phase = SessionPhase.CANCELLED
            raise
        except (PreconditionError, TransportError, ProtocolError) as e:
            self._reconciler.rollback(state.optimistic_id)
            return self._fail(e)
        except httpx.HTTPError as e:
            logger.warning("Stream transport failed: %s", e)
            self._reconciler.rollback(state.optimistic_id)
            return self._fail(TransportError(f"Connection lost: {type(e).__name__}"))
        except Exception:
            logger.exception("Unexpected error while streaming %s", optimistic.id)
            self._reconciler.rollback(state.optimistic_id)
            return self._fail(TransportError(GENERIC_ERROR))
        finally:
            self._release(state)

    # ─── Internals ────────────────────────────────────────────────────────

    async def _stream(self, state: SessionState, chat_id: str, content: str) -> SendOutcome:
        token = state.cancel_token
        async with contextlib.AsyncExitStack() as stack:
            response = await token.guard(
                stack.enter_async_context(
                    self._client.stream_message(self.project_id, chat_id, content)
                )
            )
            self._phase = SessionPhase.STREAMING
            self._publish()

            decoder = FrameDecoder()
            chunks = response.aiter_bytes()
            while (chunk := await token.guard(_read_chunk(chunks))) is not None:
                for block in decoder.feed(chunk):
                    event = parse_event_block(block)
                    if event is None:
                        continue
                    done = self._apply(state, event)
                    if done is not None:
                        self._phase = SessionPhase.COMPLETED
                        return SendOutcome(
                            SessionPhase.COMPLETED,
                            user_message=done.user_message,
                            ai_message=done.ai_message,
                        )
            decoder.close()

        raise TransportError("Stream ended before completion")

    def _apply(self, state: SessionState, event: StreamEvent) -> DoneEvent | None:
        """Apply one event. Returns the event if it completes the stream."""
        if isinstance(event, TokenEvent):
            state.accumulated_text += event.content
            self._publish()
        elif isinstance(event, StatusEvent):
            state.last_status = event.status
            self._publish()
        elif isinstance(event, ErrorEvent):
            raise ProtocolError(event.message or "Unknown error")
        elif isinstance(event, DoneEvent):
            if not self._reconciler.finalize(
                state.optimistic_id, event.user_message, event.ai_message
            ):
                logger.warning("Optimistic message %s was gone at completion", state.optimistic_id)
            return event
        return None

    def _rollback_cancelled(self, state: SessionState) -> None:
        if self.rollback_on_cancel:
            self._reconciler.rollback(state.optimistic_id)
        else:
            self._reconciler.interrupt(state.optimistic_id)

    def _fail(self, error: Exception) -> SendOutcome:
        message = str(error) or GENERIC_ERROR
        logger.warning("Send failed: %s", message)
        self._error = message
        self._phase = SessionPhase.FAILED
        if self._state is None:
            self._publish()
        if self._on_error is not None:
            self._on_error(message)
        return SendOutcome(SessionPhase.FAILED, error=message)

    def _release(self, state: SessionState) -> None:
        """Drop all per-send resources and publish the final view."""
        state.is_streaming = False
        state.accumulated_text = ""
        state.last_status = ""
        if self._state is state:
            self._state = None
        self._publish()


async def _read_chunk(chunks: AsyncIterator[bytes]) -> bytes | None:
    """Read the next chunk, or None at end of stream."""
    try:
        return await anext(chunks)
    except StopAsyncIteration:
        return None
