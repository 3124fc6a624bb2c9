"""chatstream exception hierarchy.

Base exceptions for the streaming client with correlation ID support.

Usage:
    from chatstream.exceptions import ProtocolError, TransportError

    try:
        await client.get_chat(chat_id)
    except TransportError as e:
        logger.error("Chat load failed (%s): %s", e.correlation_id, e)
"""

import uuid


class ChatStreamError(Exception):
    """Base exception for all chatstream errors.

    Carries a correlation_id for tracing an error across layers.
    """

    def __init__(self, message: str, *, correlation_id: str | None = None):
        self.correlation_id = correlation_id or str(uuid.uuid4())
        super().__init__(message)


class PreconditionError(ChatStreamError):
    """A send was attempted without a conversation, a user, or while busy.

    Raised before any network call is made.
    """

    pass


class TransportError(ChatStreamError):
    """Errors from the HTTP transport.

    Covers non-success status codes, unreadable bodies and streams that
    end before the server signals completion.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        correlation_id: str | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, correlation_id=correlation_id)


class ProtocolError(ChatStreamError):
    """The server reported an error through an ``error`` stream event."""

    pass


class StreamCancelledError(ChatStreamError):
    """A stream was aborted through its cancellation token.

    Never shown to the end user.
    """

    pass


class DecodeError(ChatStreamError):
    """An event block carried a payload that could not be decoded."""

    def __init__(self, message: str, *, event_type: str | None = None, **kwargs):
        self.event_type = event_type
        super().__init__(message, **kwargs)


class ConfigurationError(ChatStreamError):
    """Errors from client configuration."""

    pass
