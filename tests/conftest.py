"""Shared test fixtures and fakes."""

from __future__ import annotations

from typing import Callable, Iterable

import httpx
import pytest
from fastapi.testclient import TestClient
from google.generativeai import protos
from google.generativeai.types.generation_types import AsyncGenerateContentResponse

from casus.config import settings
from casus.services import inference


def scripted_bits(values: Iterable[int]) -> Callable[[int], int]:
    """A randbits stand-in that returns `values` in order."""
    it = iter(values)

    def randbits(k: int) -> int:
        assert k == 32
        return next(it)

    return randbits


async def iter_chunks(chunks: Iterable[bytes]):
    for chunk in chunks:
        yield chunk


async def collect(stream) -> bytes:
    return b"".join([chunk async for chunk in stream])


# ── Gemini streaming responses ───────────────────────────────────────────────

BLOCKED_FRAME = {"prompt_feedback": {"block_reason": "SAFETY"}}


def text_frame(text: str) -> dict:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


async def _frames(frames: Iterable[dict]):
    for frame in frames:
        yield protos.GenerateContentResponse(frame)


def gemini_returning(*frames: dict):
    """A generate_content_async stand-in producing the library's own streaming response."""

    async def generate_content_async(*args, **kwargs):
        return await AsyncGenerateContentResponse.from_aiterator(_frames(frames))

    return generate_content_async


@pytest.fixture
def api_client() -> TestClient:
    from casus.main import app

    return TestClient(app)


@pytest.fixture
def upstream(monkeypatch: pytest.MonkeyPatch):
    """Install a MockTransport-backed upstream client; yields a setter for the handler."""
    state: dict = {"handler": None, "requests": []}

    def handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        return state["handler"](request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    monkeypatch.setattr(inference, "_http_client", client)

    def use(fn: Callable[[httpx.Request], httpx.Response]) -> list[httpx.Request]:
        state["handler"] = fn
        return state["requests"]

    yield use


@pytest.fixture
def workers_ai_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "upstream_provider", "workers_ai")
    monkeypatch.setattr(settings, "cloudflare_account_id", "acc-123")
    monkeypatch.setattr(settings, "cloudflare_api_token", "cf-token")
    monkeypatch.setattr(settings, "workers_ai_model", "test-model")
    monkeypatch.setattr(settings, "max_tokens", 1024)
