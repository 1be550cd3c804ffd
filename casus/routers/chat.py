"""
Chat endpoint — called by the chat client with the running conversation.
Returns a Server-Sent Events stream: a local command reply or the model's tokens.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse

from casus.config import settings
from casus.schemas.chat import ChatRequest
from casus.services.commands import reply_to_last_user_message
from casus.services.inference import stream_completion
from casus.services.persona import compose_messages
from casus.utils.sse import SSE_HEADERS, text_event_stream

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


@router.post("/chat")
async def chat(request: Request) -> Response:
    """
    Answer one chat turn.

    Body: {"messages": [ChatMessage...], "casus": CasusProfile | null}

    - A slash-command in the last user message is answered locally.
    - Otherwise the Casus persona (and profile) is injected and the upstream
      model stream is relayed as-is.
    Any failure while parsing the body or opening the upstream call → 500.
    """
    try:
        body = ChatRequest.model_validate(await request.json())

        if settings.max_messages is not None and len(body.messages) > settings.max_messages:
            logger.warning(
                "Rejected chat request with %d messages (limit %d)",
                len(body.messages),
                settings.max_messages,
            )
            return JSONResponse(status_code=413, content={"error": "Too many messages"})

        command_reply = reply_to_last_user_message(body.messages)
        if command_reply is not None:
            return StreamingResponse(text_event_stream(command_reply), headers=SSE_HEADERS)

        messages = compose_messages(body.messages, body.casus)
        stream = await stream_completion(messages)
        return StreamingResponse(stream, headers=SSE_HEADERS)
    except Exception:
        logger.exception("Error processing chat request")
        return JSONResponse(status_code=500, content={"error": "Failed to process request"})
