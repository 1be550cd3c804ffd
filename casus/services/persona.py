"""
Persona composer — makes sure every upstream call speaks as Casus.

The base persona goes first unless the client already sent it; the optional
game profile (mode / univers / style) goes right after it.
"""

from __future__ import annotations

import logging
from typing import Optional

from casus.schemas.chat import CasusProfile, ChatMessage
from casus.utils.prompts import (
    CASUS_MARKER,
    MODE_LINES,
    PROFILE_HEADER,
    SYSTEM_PROMPT,
    build_style_line,
    build_univers_line,
)

logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def build_casus_profile_system_message(profile: Optional[CasusProfile]) -> Optional[ChatMessage]:
    """
    Build the "Contexte de partie" system message.

    Lines are emitted in fixed order (mode, univers, style) and only for
    fields that are non-empty after trimming. Returns None when no line is
    produced.
    """
    if profile is None:
        return None

    lines: list[str] = []
    mode_line = MODE_LINES.get(_clean(profile.mode))
    if mode_line:
        lines.append(mode_line)
    univers = _clean(profile.univers)
    if univers:
        lines.append(build_univers_line(univers))
    style = _clean(profile.style)
    if style:
        lines.append(build_style_line(style))

    if not lines:
        return None
    return ChatMessage(role="system", content="\n".join([PROFILE_HEADER, *lines]))


def _find_persona(messages: list[ChatMessage]) -> int:
    for i, message in enumerate(messages):
        if message.role == "system" and CASUS_MARKER in message.content:
            return i
    return -1


def compose_messages(
    messages: list[ChatMessage], profile: Optional[CasusProfile] = None
) -> list[ChatMessage]:
    """Return a new message list with the persona and profile in place."""
    composed = list(messages)

    persona_at = _find_persona(composed)
    if persona_at == -1:
        composed.insert(0, ChatMessage(role="system", content=SYSTEM_PROMPT))
        persona_at = 0
    else:
        logger.debug("Casus persona already present at index %d", persona_at)

    profile_message = build_casus_profile_system_message(profile)
    if profile_message is not None:
        composed.insert(persona_at + 1, profile_message)

    return composed
