"""
HTTP surface tests using FastAPI's TestClient
"""

import pytest
from fastapi.testclient import TestClient

import main
from chat_sessions import SessionManager


class FakeStreamService:
    """Stands in for GeminiService on the streaming path"""

    def __init__(self, chunks):
        self.chunks = chunks

    async def generate_stream(self, history, system_prompt):
        for chunk in self.chunks:
            yield chunk


@pytest.fixture
def client(monkeypatch):
    monkeypatch.delenv("AUTH_REQUIRED", raising=False)
    return TestClient(main.app)


@pytest.fixture
def scripted_sessions(monkeypatch, make_orchestrator):
    """Replace the app's session manager with one backed by scripted responses"""
    def _install(responses):
        orchestrator, model_client = make_orchestrator(responses)
        manager = SessionManager(orchestrator)
        monkeypatch.setattr(main, "sessions", manager)
        return manager, model_client
    return _install


class TestStatusEndpoints:
    """Test root and health"""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["campaigns_loaded"] == 5
        assert "gemini_configured" in body


class TestChatEndpoint:
    """Test turn invocation over HTTP"""

    def test_chat_turn(self, client, scripted_sessions, responses):
        manager, _ = scripted_sessions([
            responses.calls([('getCampaigns', {})]),
            responses.text("You have 5 campaigns; Performance Max leads at 5.2x ROAS."),
        ])

        response = client.post("/chat", json={"message": "Show my campaigns"})

        assert response.status_code == 200
        body = response.json()
        assert body["message"]["content"].startswith("You have 5 campaigns")
        assert body["message"]["data_visualization"]["type"] == "campaign-cards"
        assert body["context"]["actions_taken"] == ["getCampaigns()"]
        assert manager.get_session(body["session_id"]) is not None

    def test_fallback_reply_on_model_failure(self, client, scripted_sessions):
        from errors import UpstreamError
        scripted_sessions([UpstreamError("Gemini API rate limit exceeded. Please wait and try again.")])

        response = client.post("/chat", json={"message": "hello", "session_id": "s1"})

        assert response.status_code == 200
        assert response.json()["message"]["content"].startswith("I apologize, but I encountered an error")

    def test_blank_message(self, client, scripted_sessions):
        manager, _ = scripted_sessions([])
        response = client.post("/chat", json={"message": "  "})
        assert response.status_code == 400
        assert manager.list_sessions() == []

    def test_busy_session(self, client, scripted_sessions):
        manager, _ = scripted_sessions([])
        manager.create_session("busy").is_loading = True

        response = client.post("/chat", json={"message": "hello", "session_id": "busy"})
        assert response.status_code == 409


class TestStreamEndpoint:
    """Test the SSE reply path and its busy flag"""

    def test_stream_updates_context(self, client, scripted_sessions, monkeypatch):
        manager, _ = scripted_sessions([])
        monkeypatch.setattr(main, "gemini_service", FakeStreamService(["Shopping ", "is steady."]))

        response = client.post("/chat/stream", json={"message": "How is Shopping?", "session_id": "s1"})

        assert response.status_code == 200
        assert '"done": true' in response.text
        session = manager.get_session("s1")
        assert session.is_loading is False
        assert session.context.history_messages()[-1]["parts"][0]["text"] == "Shopping is steady."

    @pytest.mark.asyncio
    async def test_busy_flag_released_when_body_never_iterated(self, scripted_sessions, monkeypatch):
        manager, _ = scripted_sessions([])
        monkeypatch.setattr(main, "gemini_service", FakeStreamService(["unused"]))

        response = await main.chat_stream(main.ChatRequest(message="hello", session_id="s1"))
        assert manager.get_session("s1").is_loading is True

        await response.body_iterator.aclose()
        await response.background()

        assert manager.get_session("s1").is_loading is False
        assert len(manager.get_session("s1").context.history) == 0


class TestSessionEndpoints:
    """Test session inspection and deletion"""

    def test_get_and_delete(self, client, scripted_sessions):
        manager, _ = scripted_sessions([])
        manager.create_session("abc")

        body = client.get("/sessions/abc").json()
        assert body["session_id"] == "abc"
        assert len(body["messages"]) == 1

        assert client.delete("/sessions/abc").json() == {"success": True, "session_id": "abc"}
        assert client.get("/sessions/abc").status_code == 404
        assert client.delete("/sessions/abc").status_code == 404


class TestCatalogueEndpoints:
    """Test function and campaign listings"""

    def test_functions(self, client):
        body = client.get("/functions").json()
        assert len(body["functions"]) == 9
        assert body["usage"]["functions_available"] == 9

    def test_campaigns_filtered(self, client):
        body = client.get("/campaigns", params={"status": "PAUSED"}).json()
        assert body["total_campaigns"] == 1
        assert body["campaigns"][0]["id"] == "camp_003"
        assert body["applied_filters"] == {"status": "PAUSED"}

    def test_campaigns_invalid_filter(self, client):
        assert client.get("/campaigns", params={"status": "ARCHIVED"}).status_code == 400


class TestAuthGate:
    """Test the optional authentication presence check"""

    def test_missing_token(self, client, monkeypatch):
        monkeypatch.setenv("AUTH_REQUIRED", "true")
        assert client.get("/functions").status_code == 401

    def test_cookie_token(self, client, monkeypatch):
        monkeypatch.setenv("AUTH_REQUIRED", "true")
        client.cookies.set("auth-token", "opaque")
        assert client.get("/functions").status_code == 200

    def test_bearer_token(self, client, monkeypatch):
        monkeypatch.setenv("AUTH_REQUIRED", "true")
        response = client.get("/functions", headers={"Authorization": "Bearer opaque"})
        assert response.status_code == 200

    def test_health_is_public(self, client, monkeypatch):
        monkeypatch.setenv("AUTH_REQUIRED", "true")
        assert client.get("/health").status_code == 200
