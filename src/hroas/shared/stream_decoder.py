"""Incremental decoder for chat-completion event streams.

Upstream sends ``text/event-stream`` bodies where each event line looks like::

    data: {"choices": [{"delta": {"content": "Hel"}}]}

and the stream ends with ``data: [DONE]``.  Chunks arrive with arbitrary
boundaries — mid-line and even mid-UTF-8 sequence — so bytes are decoded
incrementally and only complete lines are parsed.
"""

from __future__ import annotations

import codecs
import json
import logging
from typing import Any, AsyncIterable, Callable, Iterable

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"

DeltaCallback = Callable[[str], None]
"""Called with each content delta as soon as its line is complete."""


def _delta_content(payload: Any) -> str | None:
    """Return ``choices[0].delta.content`` if present and a string."""
    try:
        content = payload["choices"][0]["delta"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    return content if isinstance(content, str) else None


class StreamDecoder:
    """Accumulates content deltas from an event stream fed chunk by chunk.

    Usage::

        decoder = StreamDecoder()
        for chunk in chunks:
            decoder.feed(chunk)
        decoder.finish()
        text = decoder.text
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._parts: list[str] = []
        self.done = False

    @property
    def text(self) -> str:
        """Everything accumulated so far."""
        return "".join(self._parts)

    def feed(self, chunk: bytes) -> list[str]:
        """Decode a chunk and return the deltas from the lines it completed."""
        if self.done:
            return []
        self._buffer += self._decoder.decode(chunk)
        return self._drain_lines()

    def finish(self) -> list[str]:
        """Signal end of transport; process any trailing unterminated line."""
        if self.done:
            return []
        self._buffer += self._decoder.decode(b"", final=True)
        deltas = self._drain_lines()
        if not self.done and self._buffer:
            line, self._buffer = self._buffer, ""
            delta = self._process_line(line)
            if delta:
                deltas.append(delta)
        return deltas

    def _drain_lines(self) -> list[str]:
        deltas: list[str] = []
        while not self.done:
            newline = self._buffer.find("\n")
            if newline == -1:
                break
            line = self._buffer[:newline]
            self._buffer = self._buffer[newline + 1:]
            delta = self._process_line(line)
            if delta:
                deltas.append(delta)
        return deltas

    def _process_line(self, line: str) -> str | None:
        if line.endswith("\r"):
            line = line[:-1]
        # Blank keep-alives and ": comment" lines carry no data.
        if not line.strip() or line.startswith(":"):
            return None
        if not line.startswith(DATA_PREFIX):
            return None

        data = line[len(DATA_PREFIX):].strip()
        if data == DONE_SENTINEL:
            self.done = True
            self._buffer = ""
            return None

        try:
            payload = json.loads(data)
        except json.JSONDecodeError:
            logger.debug("Skipping unparsable stream line: %.120s", data)
            return None

        content = _delta_content(payload)
        if content:
            self._parts.append(content)
        return content


def decode_event_stream(chunks: Iterable[bytes]) -> str:
    """Decode a complete event stream delivered as an iterable of chunks."""
    decoder = StreamDecoder()
    for chunk in chunks:
        decoder.feed(chunk)
        if decoder.done:
            break
    decoder.finish()
    return decoder.text


async def decode_event_stream_async(
    chunks: AsyncIterable[bytes],
    *,
    on_delta: DeltaCallback | None = None,
) -> str:
    """Decode an event stream as it arrives; stops reading after ``[DONE]``."""
    decoder = StreamDecoder()
    async for chunk in chunks:
        for delta in decoder.feed(chunk):
            if on_delta:
                on_delta(delta)
        if decoder.done:
            break
    for delta in decoder.finish():
        if on_delta:
            on_delta(delta)
    return decoder.text
