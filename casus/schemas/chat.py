"""Pydantic schemas for the chat endpoint."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """A single turn in the conversation, in conversation order."""

    role: Literal["system", "user", "assistant"]
    content: str

    model_config = ConfigDict(frozen=True)


class CasusProfile(BaseModel):
    """
    Optional per-request game context chosen in the UI.
    Fields are trimmed by the composer; an unknown mode contributes nothing.
    """

    mode: Optional[str] = None          # "mj" | "joueur"
    univers: Optional[str] = None
    style: Optional[str] = None


class ChatRequest(BaseModel):
    """Body for POST /api/chat."""

    messages: list[ChatMessage] = Field(default_factory=list)
    casus: Optional[CasusProfile] = None
