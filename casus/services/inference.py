"""
Inference service — opens the upstream model stream for a chat turn.

Provider (UPSTREAM_PROVIDER):
  workers_ai : Cloudflare Workers AI REST API — SSE body relayed verbatim
  openai     : any OpenAI-compatible /chat/completions — relayed verbatim
  gemini     : Google Generative AI — text chunks re-framed as
               `data: {"response": ...}` events, closed with `[DONE]`

stream_completion() only returns once the upstream call has been accepted,
so every failure before the first byte surfaces as InferenceError and the
router can still answer with a plain HTTP 500. There is no retry.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Optional

import google.generativeai as genai
import httpx

from casus.config import settings
from casus.schemas.chat import ChatMessage
from casus.utils.sse import DONE, encode_response, format_event

logger = logging.getLogger(__name__)

WORKERS_AI_URL = "https://api.cloudflare.com/client/v4/accounts/{account_id}/ai/run/{model}"

_http_client: Optional[httpx.AsyncClient] = None


class InferenceError(Exception):
    """Raised when the upstream model stream cannot be opened."""


# ── Shared HTTP client ───────────────────────────────────────────────────────

def get_http_client() -> httpx.AsyncClient:
    """Return the process-wide upstream client, creating it on first use."""
    global _http_client
    if _http_client is None or _http_client.is_closed:
        _http_client = httpx.AsyncClient(timeout=settings.upstream_timeout_seconds)
    return _http_client


async def aclose() -> None:
    """Close the shared client (application shutdown)."""
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


# ── Request builders ─────────────────────────────────────────────────────────

def _serialise(messages: list[ChatMessage]) -> list[dict[str, str]]:
    return [m.model_dump() for m in messages]


def build_workers_ai_request(client: httpx.AsyncClient, messages: list[ChatMessage]) -> httpx.Request:
    if not settings.cloudflare_account_id or not settings.cloudflare_api_token:
        raise InferenceError("Workers AI is not configured (CLOUDFLARE_ACCOUNT_ID / CLOUDFLARE_API_TOKEN)")
    url = WORKERS_AI_URL.format(
        account_id=settings.cloudflare_account_id, model=settings.workers_ai_model
    )
    return client.build_request(
        "POST",
        url,
        headers={"Authorization": f"Bearer {settings.cloudflare_api_token}"},
        json={
            "messages": _serialise(messages),
            "max_tokens": settings.max_tokens,
            "stream": True,
        },
    )


def build_openai_request(client: httpx.AsyncClient, messages: list[ChatMessage]) -> httpx.Request:
    if not settings.openai_api_key:
        raise InferenceError("OpenAI-compatible upstream is not configured (OPENAI_API_KEY)")
    return client.build_request(
        "POST",
        f"{settings.openai_base_url.rstrip('/')}/chat/completions",
        headers={"Authorization": f"Bearer {settings.openai_api_key}"},
        json={
            "model": settings.openai_model,
            "messages": _serialise(messages),
            "max_tokens": settings.max_tokens,
            "stream": True,
        },
    )


# ── Verbatim relay ───────────────────────────────────────────────────────────

async def _relay(response: httpx.Response) -> AsyncIterator[bytes]:
    try:
        async for chunk in response.aiter_bytes():
            yield chunk
    finally:
        await response.aclose()


async def _open_http_stream(client: httpx.AsyncClient, request: httpx.Request) -> AsyncIterator[bytes]:
    try:
        response = await client.send(request, stream=True)
    except httpx.HTTPError as exc:
        raise InferenceError(f"Upstream request to {request.url.host} failed: {exc}") from exc

    if response.is_error:
        body = await response.aread()
        await response.aclose()
        raise InferenceError(
            f"Upstream returned HTTP {response.status_code}: {body[:200].decode('utf-8', 'replace')}"
        )

    logger.debug("Upstream stream opened (%s %s)", response.status_code, request.url.host)
    return _relay(response)


# ── Gemini ───────────────────────────────────────────────────────────────────

def _gemini_contents(messages: list[ChatMessage]) -> tuple[Optional[str], list[dict[str, Any]]]:
    """Split system prompts out; assistant turns become the `model` role."""
    system = "\n\n".join(m.content for m in messages if m.role == "system")
    contents = [
        {"role": "model" if m.role == "assistant" else "user", "parts": [m.content]}
        for m in messages
        if m.role != "system"
    ]
    return system or None, contents


async def _reframe_gemini(first: Any, rest: AsyncIterator[Any]) -> AsyncIterator[bytes]:
    chunk = first
    while chunk is not None:
        # chunks without candidates only carry prompt feedback or usage metadata
        if chunk.candidates and chunk.parts and chunk.text:
            yield encode_response(chunk.text)
        chunk = await anext(rest, None)
    yield format_event(DONE)


async def _open_gemini_stream(messages: list[ChatMessage]) -> AsyncIterator[bytes]:
    if not settings.google_api_key:
        raise InferenceError("Gemini is not configured (GOOGLE_API_KEY)")

    genai.configure(api_key=settings.google_api_key)
    system, contents = _gemini_contents(messages)
    model = genai.GenerativeModel(settings.gemini_model, system_instruction=system)
    try:
        response = await model.generate_content_async(
            contents,
            generation_config=genai.GenerationConfig(max_output_tokens=settings.max_tokens),
            stream=True,
        )
        # a blocked prompt is only raised on the first iteration
        chunks = aiter(response)
        first = await anext(chunks, None)
    except Exception as exc:
        raise InferenceError(f"Gemini model '{settings.gemini_model}' failed: {exc}") from exc
    return _reframe_gemini(first, chunks)


# ── Entry point ──────────────────────────────────────────────────────────────

async def stream_completion(messages: list[ChatMessage]) -> AsyncIterator[bytes]:
    """
    Start a streaming completion and return its SSE body as raw bytes.

    Raises InferenceError if the upstream call cannot be opened.
    """
    provider = settings.upstream_provider
    logger.debug("Upstream call: provider=%s messages=%d", provider, len(messages))

    if provider == "gemini":
        return await _open_gemini_stream(messages)

    client = get_http_client()
    if provider == "openai":
        request = build_openai_request(client, messages)
    else:
        request = build_workers_ai_request(client, messages)
    return await _open_http_stream(client, request)
