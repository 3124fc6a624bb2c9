"""Stream event types for the streaming pipeline.

StreamEvent is a closed tagged union over the four event types the chat
backend emits. Each variant validates its own payload; the ``type`` field
is the discriminator, so an unknown type never validates into a variant.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from chatstream.schema.chat import Message


class TokenEvent(BaseModel):
    """A chunk of assistant text."""

    type: Literal["token"] = "token"
    content: str


class StatusEvent(BaseModel):
    """A progress update from the agent (e.g. ``thinking``)."""

    type: Literal["status"] = "status"
    status: str


class ErrorEvent(BaseModel):
    """A server-side failure that ends the stream."""

    type: Literal["error"] = "error"
    message: str | None = "Unknown error"


class DoneEvent(BaseModel):
    """The persisted user/assistant pair that replaces the optimistic message."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["done"] = "done"
    user_message: Message = Field(alias="userMessage")
    ai_message: Message = Field(alias="aiMessage")


StreamEvent = Annotated[
    TokenEvent | StatusEvent | ErrorEvent | DoneEvent,
    Field(discriminator="type"),
]

EVENT_TYPES = frozenset({"token", "status", "error", "done"})

stream_event_adapter: TypeAdapter[StreamEvent] = TypeAdapter(StreamEvent)
