"""Tests for the HTTP surface: chat endpoint, /api fallback and static assets."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from casus.config import settings
from casus.routers import chat as chat_router
from casus.services.inference import InferenceError
from casus.utils.prompts import HELP_TEXT, SYSTEM_PROMPT
from casus.utils.sse import DONE, SSEDecoder, encode_response, format_event
from tests.conftest import BLOCKED_FRAME, gemini_returning, iter_chunks

UPSTREAM_FRAMES = [b'data: {"response":"Salut"}\n\n', b"data: [DONE]\n\n"]


@pytest.fixture
def fake_upstream(monkeypatch):
    """Replace stream_completion; records the composed messages."""
    calls: list = []

    async def fake_stream_completion(messages):
        calls.append(messages)
        return iter_chunks(UPSTREAM_FRAMES)

    monkeypatch.setattr(chat_router, "stream_completion", fake_stream_completion)
    return calls


def _user(content: str) -> dict:
    return {"role": "user", "content": content}


class TestChatCommands:
    def test_help_answered_locally(self, api_client, fake_upstream):
        response = api_client.post("/api/chat", json={"messages": [_user("/help")]})

        assert response.status_code == 200
        assert response.headers["content-type"] == "text/event-stream; charset=utf-8"
        assert response.headers["cache-control"] == "no-cache"
        assert response.content == encode_response(HELP_TEXT) + format_event(DONE)
        assert fake_upstream == []

    def test_roll_answered_locally(self, api_client, fake_upstream):
        response = api_client.post(
            "/api/chat",
            json={"messages": [_user("Salut"), {"role": "assistant", "content": "Bonjour"}, _user("/roll 2d6+1")]},
        )

        decoder = SSEDecoder()
        events = decoder.feed(response.content)
        assert decoder.done
        assert len(events) == 1
        assert '"response": "🎲 /roll 2d6+1\\nJets: ' in events[0]
        assert fake_upstream == []

    def test_rejection_is_a_normal_reply(self, api_client, fake_upstream):
        response = api_client.post("/api/chat", json={"messages": [_user("/roll 3d20 adv")]})
        assert response.status_code == 200
        assert b"adv" in response.content


class TestChatRelay:
    def test_relays_upstream_stream(self, api_client, fake_upstream):
        response = api_client.post("/api/chat", json={"messages": [_user("Crée un PNJ")]})

        assert response.status_code == 200
        assert response.headers["content-type"] == "text/event-stream; charset=utf-8"
        assert response.content == b"".join(UPSTREAM_FRAMES)

        (messages,) = fake_upstream
        assert messages[0].content == SYSTEM_PROMPT
        assert messages[1].content == "Crée un PNJ"

    def test_profile_injected_after_persona(self, api_client, fake_upstream):
        api_client.post(
            "/api/chat",
            json={"messages": [_user("Salut")], "casus": {"mode": "joueur", "univers": "Pirates"}},
        )

        (messages,) = fake_upstream
        assert [m.role for m in messages] == ["system", "system", "user"]
        assert "Univers/ton: Pirates" in messages[1].content

    def test_empty_body_defaults(self, api_client, fake_upstream):
        response = api_client.post("/api/chat", json={})

        assert response.status_code == 200
        (messages,) = fake_upstream
        assert len(messages) == 1

    def test_upstream_failure_is_500(self, api_client, monkeypatch):
        async def failing(messages):
            raise InferenceError("upstream down")

        monkeypatch.setattr(chat_router, "stream_completion", failing)
        response = api_client.post("/api/chat", json={"messages": [_user("Salut")]})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to process request"}

    @patch("casus.services.inference.genai")
    def test_blocked_gemini_prompt_is_500(self, mock_genai, api_client, monkeypatch):
        monkeypatch.setattr(settings, "upstream_provider", "gemini")
        monkeypatch.setattr(settings, "google_api_key", "g-key")
        mock_genai.GenerativeModel.return_value.generate_content_async = gemini_returning(BLOCKED_FRAME)

        response = api_client.post("/api/chat", json={"messages": [_user("Salut")]})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to process request"}

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"content": b"not json", "headers": {"content-type": "application/json"}},
            {"json": {"messages": [{"role": "narrator", "content": "x"}]}},
            {"json": {"messages": "hello"}},
        ],
    )
    def test_bad_body_is_500(self, api_client, fake_upstream, kwargs):
        response = api_client.post("/api/chat", **kwargs)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to process request"}
        assert fake_upstream == []

    def test_message_cap(self, api_client, fake_upstream, monkeypatch):
        monkeypatch.setattr(settings, "max_messages", 2)
        response = api_client.post("/api/chat", json={"messages": [_user("a"), _user("b"), _user("c")]})

        assert response.status_code == 413
        assert fake_upstream == []


class TestRouting:
    @pytest.mark.parametrize("method", ["GET", "HEAD", "PUT", "DELETE", "PATCH", "TRACE", "PROPFIND"])
    def test_chat_other_methods(self, api_client, method):
        response = api_client.request(method, "/api/chat")

        assert response.status_code == 405
        assert response.headers["allow"] == "POST"

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/unknown"),
            ("POST", "/api/chat/extra"),
            ("GET", "/api/"),
            ("TRACE", "/api/unknown"),
            ("PROPFIND", "/api/notes"),
        ],
    )
    def test_unknown_api_path(self, api_client, method, path):
        response = api_client.request(method, path)

        assert response.status_code == 404
        assert response.text == "Not found"

    def test_index_served(self, api_client):
        response = api_client.get("/")

        assert response.status_code == 200
        assert "Casus" in response.text

    def test_missing_asset(self, api_client):
        assert api_client.get("/nope.js").status_code == 404
