"""
Pydantic schemas for JSON payloads carried inside SSE data lines.

Two upstream shapes carry text:
  {"response": "..."}                               — Workers AI (and local replies)
  {"choices": [{"delta": {"content": "..."}}]}       — OpenAI chat completions

Everything else (usage frames, empty responses) decodes to IgnoredChunk.
The tag is chosen explicitly so the accepted shapes stay exhaustive.
"""

from __future__ import annotations

from typing import Annotated, Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, TypeAdapter


class WorkersAIChunk(BaseModel):
    """A `{response: str}` frame with non-empty text."""

    response: str

    @property
    def text(self) -> str:
        return self.response


class OpenAIDelta(BaseModel):
    content: Optional[str] = None


class OpenAIChoice(BaseModel):
    delta: OpenAIDelta = Field(default_factory=OpenAIDelta)


class OpenAIChunk(BaseModel):
    """A chat-completion delta frame; only the first choice is rendered."""

    choices: list[OpenAIChoice] = Field(default_factory=list)

    @property
    def text(self) -> str:
        if not self.choices:
            return ""
        return self.choices[0].delta.content or ""


class IgnoredChunk(BaseModel):
    """Any other JSON object — carries no renderable text."""

    model_config = ConfigDict(extra="allow")

    @property
    def text(self) -> str:
        return ""


def _chunk_tag(value: Any) -> Optional[str]:
    """Pick the variant for a decoded payload; None for non-objects."""
    if isinstance(value, BaseModel):
        value = value.model_dump()
    if not isinstance(value, dict):
        return None
    response = value.get("response")
    if isinstance(response, str) and response:
        return "response"
    if "choices" in value:
        return "delta"
    return "ignored"


StreamChunk = Annotated[
    Union[
        Annotated[WorkersAIChunk, Tag("response")],
        Annotated[OpenAIChunk, Tag("delta")],
        Annotated[IgnoredChunk, Tag("ignored")],
    ],
    Discriminator(_chunk_tag),
]

_chunk_adapter: TypeAdapter[StreamChunk] = TypeAdapter(StreamChunk)


def parse_stream_chunk(data: str) -> StreamChunk:
    """
    Decode one SSE payload into its tagged variant.

    Raises pydantic.ValidationError on invalid JSON or an unknown shape.
    """
    return _chunk_adapter.validate_json(data)
