"""Frame decoder: split an incrementally delivered byte stream into SSE blocks.

Blocks are separated by a blank line (``\\n\\n``). Bytes are decoded as
UTF-8 incrementally, so a multi-byte character split across two network
chunks comes out intact. The trailing piece after the last separator is
held back until more data arrives.
"""

from __future__ import annotations

import codecs
import logging

logger = logging.getLogger(__name__)

BLOCK_SEPARATOR = "\n\n"


class FrameDecoder:
    """Accumulates byte chunks and emits complete event blocks.

    Usage::

        decoder = FrameDecoder()
        async for chunk in response.aiter_bytes():
            for block in decoder.feed(chunk):
                handle(block)
        decoder.close()
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Text received after the last complete block."""
        return self._buffer

    def feed(self, chunk: bytes) -> list[str]:
        """Append a chunk and return every block it completes, in order.

        Whitespace-only pieces (e.g. from consecutive separators) are
        dropped. A chunk ending exactly on a separator leaves the buffer
        empty.
        """
        if chunk:
            self._buffer += self._decoder.decode(chunk)

        if BLOCK_SEPARATOR not in self._buffer:
            return []

        *complete, self._buffer = self._buffer.split(BLOCK_SEPARATOR)
        return [block for block in complete if block.strip()]

    def close(self) -> None:
        """Signal end of stream.

        Any incomplete trailing block is discarded; the server is expected
        to terminate every event with a blank line.
        """
        self._buffer += self._decoder.decode(b"", final=True)
        if self._buffer.strip():
            logger.debug(
                "Discarding %d chars of incomplete trailing frame: %s",
                len(self._buffer),
                self._buffer[:200],
            )
        self._buffer = ""
