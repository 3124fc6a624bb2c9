"""Conversation reconciler: keep the local transcript in step with the server.

The message list is held as an immutable tuple of entries and every
mutation swaps in a new tuple under a lock, so a reader always sees either
the state before or after an operation, never a half-applied finalize.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from chatstream.exceptions import PreconditionError
from chatstream.schema.chat import (
    ChatWithMessages,
    ConversationEntry,
    InterruptedEntry,
    Message,
    OptimisticEntry,
    PersistedEntry,
)

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversationSnapshot:
    """Point-in-time view of a conversation.

    Attributes:
        chat_id: ID of the loaded chat.
        metadata: Chat fields other than ``id`` and ``messages``.
        entries: Ordered persisted and optimistic entries.
    """

    chat_id: str
    metadata: dict[str, Any] = field(default_factory=dict)
    entries: tuple[ConversationEntry, ...] = ()

    @property
    def messages(self) -> list[Message]:
        return [entry.message for entry in self.entries]

    @property
    def pending(self) -> OptimisticEntry | None:
        for entry in reversed(self.entries):
            if isinstance(entry, OptimisticEntry):
                return entry
        return None


class ConversationReconciler:
    """Applies optimistic-append, finalize and rollback to a conversation.

    Usage::

        reconciler = ConversationReconciler(chat)
        reconciler.append_optimistic(message)
        ...
        reconciler.finalize(message.id, user_message, ai_message)
    """

    def __init__(self, chat: ChatWithMessages | None = None) -> None:
        self._lock = threading.RLock()
        self._snapshot: ConversationSnapshot | None = None
        self._listeners: list[Callable[[ConversationSnapshot | None], None]] = []
        if chat is not None:
            self.load(chat)

    @property
    def snapshot(self) -> ConversationSnapshot | None:
        """The current conversation, or None before a chat is loaded."""
        return self._snapshot

    @property
    def messages(self) -> list[Message]:
        snapshot = self._snapshot
        return snapshot.messages if snapshot else []

    def subscribe(
        self, listener: Callable[[ConversationSnapshot | None], None]
    ) -> Callable[[], None]:
        """Register a listener called after every mutation.

        Returns:
            A function that removes the listener.
        """
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def load(self, chat: ChatWithMessages) -> None:
        """Replace the conversation with a freshly loaded chat."""
        metadata = chat.model_dump(exclude={"id", "messages"})
        entries = tuple(PersistedEntry(message) for message in chat.messages)
        with self._lock:
            self._snapshot = ConversationSnapshot(chat.id, metadata, entries)
            snapshot = self._snapshot
        self._notify(snapshot)

    def append_optimistic(self, message: Message) -> None:
        """Append a not-yet-confirmed user message at the end of the list.

        Raises:
            PreconditionError: If no chat is loaded or another optimistic
                message is still awaiting resolution.
        """
        with self._lock:
            current = self._require_snapshot()
            if current.pending is not None:
                raise PreconditionError(
                    f"Optimistic message {current.pending.id} is still pending"
                )
            snapshot = self._replace(current.entries + (OptimisticEntry(message),))
        self._notify(snapshot)

    def finalize(self, optimistic_id: str, user_message: Message, ai_message: Message) -> bool:
        """Swap the optimistic message for the persisted user/assistant pair.

        Returns:
            True if the swap happened, False if ``optimistic_id`` was no longer
            pending (already finalized or rolled back).
        """
        with self._lock:
            current = self._snapshot
            if current is None or not _has_optimistic(current, optimistic_id):
                logger.debug("finalize(%s) skipped: not pending", optimistic_id)
                return False
            entries = tuple(e for e in current.entries if not _is_optimistic(e, optimistic_id))
            snapshot = self._replace(
                entries + (PersistedEntry(user_message), PersistedEntry(ai_message))
            )
        self._notify(snapshot)
        return True

    def rollback(self, optimistic_id: str) -> bool:
        """Remove the optimistic message if it is still present.

        Returns:
            True if an entry was removed.
        """
        with self._lock:
            current = self._snapshot
            if current is None or not _has_optimistic(current, optimistic_id):
                return False
            snapshot = self._replace(
                tuple(e for e in current.entries if not _is_optimistic(e, optimistic_id))
            )
        self._notify(snapshot)
        return True

    def interrupt(self, optimistic_id: str) -> bool:
        """Keep the optimistic message in place but stop treating it as pending.

        Returns:
            True if an entry was converted.
        """
        with self._lock:
            current = self._snapshot
            if current is None or not _has_optimistic(current, optimistic_id):
                return False
            snapshot = self._replace(
                tuple(
                    InterruptedEntry(e.message) if _is_optimistic(e, optimistic_id) else e
                    for e in current.entries
                )
            )
        self._notify(snapshot)
        return True

    def _require_snapshot(self) -> ConversationSnapshot:
        if self._snapshot is None:
            raise PreconditionError("Chat or user not found")
        return self._snapshot

    def _replace(self, entries: tuple[ConversationEntry, ...]) -> ConversationSnapshot:
        current = self._require_snapshot()
        self._snapshot = ConversationSnapshot(current.chat_id, current.metadata, entries)
        return self._snapshot

    def _notify(self, snapshot: ConversationSnapshot | None) -> None:
        for listener in list(self._listeners):
            listener(snapshot)


def _is_optimistic(entry: ConversationEntry, entry_id: str) -> bool:
    return isinstance(entry, OptimisticEntry) and entry.id == entry_id


def _has_optimistic(snapshot: ConversationSnapshot, entry_id: str) -> bool:
    return any(_is_optimistic(e, entry_id) for e in snapshot.entries)
