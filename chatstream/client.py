"""HTTP client for the chat backend.

Wraps a shared ``httpx.AsyncClient`` with bearer authentication and maps
transport failures onto :class:`~chatstream.exceptions.TransportError`.
"""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

import httpx
from pydantic import ValidationError

from chatstream.exceptions import ConfigurationError, TransportError
from chatstream.schema.chat import ChatWithMessages, FeedbackRequest
from chatstream.settings import get_settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

logger = logging.getLogger(__name__)


class ChatAPIClient:
    """Client for chat load, feedback and message streaming endpoints.

    Usage::

        async with ChatAPIClient() as client:
            chat = await client.get_chat("chat-1")
            async with client.stream_message("proj-1", chat.id, "Hello") as response:
                async for chunk in response.aiter_bytes():
                    ...
    """

    _ALLOWED_SCHEMES = {"http", "https"}

    def __init__(
        self,
        base_url: str | None = None,
        *,
        token_provider: Callable[[], Awaitable[str | None]] | None = None,
        timeout: float | None = None,
        stream_timeout: float | None = None,
        connect_timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        base_url = base_url or settings.backend_url

        parsed = urlparse(base_url)
        if parsed.scheme not in self._ALLOWED_SCHEMES:
            msg = f"Invalid URL scheme '{parsed.scheme}'. Only {self._ALLOWED_SCHEMES} allowed."
            raise ConfigurationError(msg)

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or settings.request_timeout
        self.stream_timeout = stream_timeout or settings.stream_timeout
        self.connect_timeout = connect_timeout or settings.connect_timeout
        self._token_provider = token_provider or _settings_token
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> ChatAPIClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout, connect=self.connect_timeout),
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        """Close the shared HTTP client and release connections."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = await self._token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> Any:
        """Send a request and return the decoded JSON body (or None if empty).

        Raises:
            TransportError: On connection failure, timeout or non-2xx status.
        """
        client = self._get_http_client()
        try:
            response = await client.request(method, path, json=json, headers=await self._headers())
        except httpx.TimeoutException as e:
            raise TransportError(f"Timeout after {self.timeout}s: {method} {path}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path} failed: {type(e).__name__}") from e

        if not response.is_success:
            raise TransportError(
                f"HTTP error! status: {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON response from {path}: {e}") from e

    async def get_chat(self, chat_id: str) -> ChatWithMessages:
        """Load a chat with its messages.

        The backend may wrap the chat in a ``data`` envelope.
        """
        body = await self._request("GET", f"/api/chat/{chat_id}")
        if isinstance(body, dict) and isinstance(body.get("data"), dict):
            body = body["data"]
        if not isinstance(body, dict):
            raise TransportError(f"Unexpected chat payload for {chat_id}")
        try:
            return ChatWithMessages.model_validate(body)
        except ValidationError as e:
            raise TransportError(
                f"Malformed chat payload for {chat_id}: {e.error_count()} error(s)"
            ) from e

    async def submit_feedback(self, feedback: FeedbackRequest) -> None:
        """Submit a like/dislike rating for a message."""
        await self._request("POST", "/api/feedback", json=feedback.model_dump())
        logger.info("Feedback '%s' submitted for message %s", feedback.rating, feedback.message_id)

    @contextlib.asynccontextmanager
    async def stream_message(
        self,
        project_id: str,
        chat_id: str,
        content: str,
    ) -> AsyncIterator[httpx.Response]:
        """Open the streaming reply for a new user message.

        Yields the response once headers have arrived with a success
        status. The body is read by the caller and the response is closed
        when the context exits.

        Raises:
            TransportError: If the request fails or the status is not 2xx.
        """
        client = self._get_http_client()
        path = f"/api/chat/{project_id}/chats/{chat_id}/messages/stream"
        request = client.build_request(
            "POST",
            path,
            json={"content": content},
            headers=await self._headers(),
            timeout=httpx.Timeout(self.stream_timeout, connect=self.connect_timeout),
        )

        try:
            response = await client.send(request, stream=True)
        except httpx.TimeoutException as e:
            raise TransportError(f"Timeout opening stream: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Failed to open stream: {type(e).__name__}") from e

        try:
            if not response.is_success:
                raise TransportError(
                    f"HTTP error! status: {response.status_code}",
                    status_code=response.status_code,
                )
            yield response
        finally:
            await response.aclose()


async def _settings_token() -> str | None:
    return get_settings().api_token.get_secret_value() or None
