"""
Server-Sent Events framing.

Encoding side: local replies are sent as one `data:` event carrying
{"response": text} followed by the `[DONE]` sentinel.

Decoding side: SSEDecoder reassembles arbitrarily chunked bytes into event
payloads. It is a plain state object, so it can be driven without a network.
"""

from __future__ import annotations

import codecs
import json
from typing import AsyncIterator

DONE = "[DONE]"

SSE_HEADERS = {
    "content-type": "text/event-stream; charset=utf-8",
    "cache-control": "no-cache",
    "connection": "keep-alive",
}

_DATA_PREFIX = "data:"
_BOUNDARY = "\n\n"


# ── Encoding ─────────────────────────────────────────────────────────────────

def format_event(data: str) -> bytes:
    """Frame a single-line payload as one SSE event."""
    return f"{_DATA_PREFIX} {data}\n\n".encode("utf-8")


def encode_response(text: str) -> bytes:
    """Frame a text fragment in the Workers AI `{response}` shape."""
    return format_event(json.dumps({"response": text}, ensure_ascii=False))


async def text_event_stream(text: str) -> AsyncIterator[bytes]:
    """Yield a complete stream for a final text: one response event, then [DONE]."""
    yield encode_response(text)
    yield format_event(DONE)


# ── Decoding ─────────────────────────────────────────────────────────────────

def consume_events(buffer: str) -> tuple[list[str], str]:
    """
    Cut every complete event off the front of `buffer`.

    Returns (payloads, remaining). Only `data:` lines count; several data
    lines in one event are joined with newlines, and events without any are
    dropped. Whatever follows the last blank line is returned untouched.
    """
    normalized = buffer.replace("\r\n", "\n")
    events: list[str] = []
    while True:
        end = normalized.find(_BOUNDARY)
        if end == -1:
            break
        raw_event = normalized[:end]
        normalized = normalized[end + len(_BOUNDARY):]

        data_lines = [
            line[len(_DATA_PREFIX):].lstrip()
            for line in raw_event.split("\n")
            if line.startswith(_DATA_PREFIX)
        ]
        if data_lines:
            events.append("\n".join(data_lines))
    return events, normalized


class SSEDecoder:
    """
    Incremental SSE decoder.

    feed() returns the payloads completed by a chunk; `[DONE]` is never
    returned — it sets `done` and everything after it is discarded.
    flush() closes a trailing event that never got its blank line.
    """

    def __init__(self) -> None:
        self.buffer = ""
        self.done = False
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def feed(self, chunk: bytes) -> list[str]:
        if self.done:
            return []
        events, self.buffer = consume_events(self.buffer + self._utf8.decode(chunk))
        return self._until_done(events)

    def flush(self) -> list[str]:
        if self.done:
            return []
        tail = self._utf8.decode(b"", final=True)
        events, _ = consume_events(self.buffer + tail + _BOUNDARY)
        self.buffer = ""
        return self._until_done(events)

    def _until_done(self, events: list[str]) -> list[str]:
        for i, data in enumerate(events):
            if data == DONE:
                self.done = True
                self.buffer = ""
                return events[:i]
        return events
