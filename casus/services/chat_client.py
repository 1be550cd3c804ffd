"""
Chat client — the session object behind the terminal front-end.

ChatSession owns the conversation history and drives one turn at a time:
post the history to /api/chat, decode the event stream incrementally, and
hand the growing reply to a render callback.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

import httpx
from pydantic import ValidationError

from casus.schemas.chat import CasusProfile, ChatMessage
from casus.schemas.stream import parse_stream_chunk
from casus.utils.prompts import APOLOGY
from casus.utils.sse import SSEDecoder

logger = logging.getLogger(__name__)

CHAT_PATH = "/api/chat"

RenderCallback = Callable[[str], None]


@dataclass
class ChatTurn:
    """Result of one send: the reply text, or the apology when ok is False."""

    text: str
    ok: bool = True


class ChatSession:
    """
    Client-side conversation state.

    history holds only user/assistant turns; the server injects the persona.
    Use as an async context manager, or call aclose() when done.
    """

    def __init__(
        self,
        base_url: str,
        profile: Optional[CasusProfile] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0,
    ) -> None:
        self.profile = profile
        self.history: list[ChatMessage] = []
        self.is_processing = False
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def __aenter__(self) -> "ChatSession":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def reset(self) -> None:
        """Forget the conversation."""
        self.history.clear()

    def _payload(self) -> dict:
        return {
            "messages": [m.model_dump() for m in self.history],
            "casus": self.profile.model_dump(exclude_none=True) if self.profile else None,
        }

    async def send(self, text: str, on_text: Optional[RenderCallback] = None) -> Optional[ChatTurn]:
        """
        Send one user message and stream the reply.

        Returns None for empty input or while another turn is running.
        on_text receives the full reply so far after every increment.
        """
        message = text.strip()
        if not message or self.is_processing:
            return None

        self.is_processing = True
        self.history.append(ChatMessage(role="user", content=message))
        try:
            reply = await self._stream_reply(on_text)
        except httpx.HTTPError as exc:
            logger.error("Chat request failed: %s", exc)
            return ChatTurn(text=APOLOGY, ok=False)
        finally:
            self.is_processing = False

        if reply:
            self.history.append(ChatMessage(role="assistant", content=reply))
        return ChatTurn(text=reply)

    async def _stream_reply(self, on_text: Optional[RenderCallback]) -> str:
        decoder = SSEDecoder()
        reply = ""

        def take(events: list[str]) -> None:
            nonlocal reply
            for data in events:
                try:
                    piece = parse_stream_chunk(data).text
                except ValidationError as exc:
                    logger.warning("Error parsing SSE data as JSON: %r (%s)", data, exc.errors()[0]["type"])
                    continue
                if piece:
                    reply += piece
                    if on_text is not None:
                        on_text(reply)

        async with self._client.stream("POST", CHAT_PATH, json=self._payload()) as response:
            response.raise_for_status()
            async for chunk in response.aiter_bytes():
                take(decoder.feed(chunk))
                if decoder.done:
                    break
        take(decoder.flush())
        return reply
