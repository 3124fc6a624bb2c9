"""Chat schemas.

Pydantic models for messages and conversations exchanged with the chat
backend, plus the entry union used to track optimistic messages locally.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

OPTIMISTIC_ID_PREFIX = "temp-"


class Citation(BaseModel):
    """A source document reference attached to an assistant message."""

    filename: str = Field(description="Source document name")
    page: int = Field(description="Page number within the document")


class Message(BaseModel):
    """A single chat message."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(description="Message ID (server-issued, or temporary for optimistic messages)")
    chat_id: str = Field(description="Parent chat ID")
    role: Literal["user", "assistant"] = Field(description="Message author role")
    content: str = Field(description="Message content")
    created_at: datetime = Field(description="Message timestamp")
    clerk_id: str = Field(description="Owning user identifier")
    citations: list[Citation] = Field(default_factory=list)

    @field_validator("citations", mode="before")
    @classmethod
    def _null_citations(cls, value: object) -> object:
        """The backend sends ``null`` for messages without sources."""
        return [] if value is None else value


class ChatWithMessages(BaseModel):
    """A chat snapshot with its full message history.

    Metadata beyond the declared fields is preserved as extra attributes.
    """

    model_config = ConfigDict(extra="allow")

    id: str = Field(description="Chat ID")
    title: str | None = None
    project_id: str | None = None
    clerk_id: str | None = None
    created_at: datetime | None = None
    messages: list[Message] = Field(default_factory=list)


class FeedbackRequest(BaseModel):
    """Body for ``POST /api/feedback``."""

    message_id: str = Field(min_length=1)
    rating: Literal["like", "dislike"]
    comment: str | None = None
    category: str | None = None


# ─── Conversation entries ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class PersistedEntry:
    """A message confirmed by the server."""

    message: Message
    kind: Literal["persisted"] = "persisted"

    @property
    def id(self) -> str:
        return self.message.id


@dataclass(frozen=True)
class OptimisticEntry:
    """A locally created message awaiting server confirmation."""

    message: Message
    kind: Literal["optimistic"] = "optimistic"

    @property
    def id(self) -> str:
        return self.message.id


@dataclass(frozen=True)
class InterruptedEntry:
    """A user message kept after its stream was cancelled.

    Stays in the transcript but is no longer pending, so it never blocks
    the next send.
    """

    message: Message
    kind: Literal["interrupted"] = "interrupted"

    @property
    def id(self) -> str:
        return self.message.id


ConversationEntry = PersistedEntry | OptimisticEntry | InterruptedEntry


def new_optimistic_message(chat_id: str, clerk_id: str, content: str) -> Message:
    """Build the user message shown before the server confirms it.

    The id is ``temp-<epoch-ms>``; server ids never carry that prefix.
    """
    return Message(
        id=f"{OPTIMISTIC_ID_PREFIX}{int(time.time() * 1000)}",
        chat_id=chat_id,
        role="user",
        content=content,
        created_at=datetime.now(UTC),
        clerk_id=clerk_id,
        citations=[],
    )
