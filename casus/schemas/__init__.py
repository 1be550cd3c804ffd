"""Pydantic schemas package."""

from casus.schemas.chat import CasusProfile, ChatMessage, ChatRequest
from casus.schemas.stream import (
    IgnoredChunk,
    OpenAIChunk,
    StreamChunk,
    WorkersAIChunk,
    parse_stream_chunk,
)

__all__ = [
    "CasusProfile", "ChatMessage", "ChatRequest",
    "IgnoredChunk", "OpenAIChunk", "StreamChunk", "WorkersAIChunk",
    "parse_stream_chunk",
]
