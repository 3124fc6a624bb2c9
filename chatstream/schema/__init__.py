"""Chat data models shared by the client, reconciler and CLI."""

from chatstream.schema.chat import (
    OPTIMISTIC_ID_PREFIX,
    ChatWithMessages,
    Citation,
    ConversationEntry,
    FeedbackRequest,
    InterruptedEntry,
    Message,
    OptimisticEntry,
    PersistedEntry,
    new_optimistic_message,
)

__all__ = [
    "OPTIMISTIC_ID_PREFIX",
    "ChatWithMessages",
    "Citation",
    "ConversationEntry",
    "FeedbackRequest",
    "InterruptedEntry",
    "Message",
    "OptimisticEntry",
    "PersistedEntry",
    "new_optimistic_message",
]
