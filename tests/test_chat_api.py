import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from app.auth.api.dependencies import get_current_user
from app.auth.entity.entity import AuthEvent, AuthState
from app.chat.api.dto import SendMessageRequest
from app.chat.api.handler import handle_send_message
from app.chat.service.registry import ChatRegistry
from app.core.errors import ChatBusyError, PersistenceError
from app.speech.service.audio_store import AudioStore
from main import app

CURRENT_USER = {"user_id": "user-1", "email": "ayse@example.com", "access_token": "token"}


class FakeAuthService:
    def __init__(self, profile):
        self.profile = profile
        self.events = []

    async def handle_auth_event(self, event, user_id, email=""):
        self.events.append((event, user_id))
        return AuthState(user=self.profile, language=self.profile.language_preference)


@pytest.fixture
def audio_store(tmp_path):
    return AudioStore(str(tmp_path))


@pytest.fixture
def auth_service(profile):
    return FakeAuthService(profile)


@pytest.fixture
def client(chat_repo, generative, speech, image_loader, player, logger, auth_service, audio_store):
    registry = ChatRegistry(chat_repo, generative, speech, image_loader, player, logger)
    app.state.logger = logger
    app.state.chat_registry = registry
    app.state.auth_service = auth_service
    app.state.audio_store = audio_store
    app.state.startup_complete = True
    app.state.startup_error = None
    app.dependency_overrides[get_current_user] = lambda: CURRENT_USER
    yield TestClient(app)
    app.dependency_overrides.clear()
    app.state.startup_complete = False
    app.state.chat_registry = None


def test_send_message_returns_reply(client, generative, auth_service):
    res = client.post("/chat/messages", json={"content": "Uyku için ne önerirsin?"})

    assert res.status_code == 200
    body = res.json()
    assert body["status"] is True
    assert body["data"]["reply"]["content"] == generative.reply
    assert body["data"]["reply"]["type"] == "assistant"
    assert [m["type"] for m in body["data"]["session"]["messages"]] == ["user", "assistant"]
    assert auth_service.events == [(AuthEvent.SIGNED_IN, "user-1")]


def test_send_message_validates_input_type(client):
    res = client.post("/chat/messages", json={"content": "Merhaba", "input_type": "video"})

    assert res.status_code == 422


def test_state_reflects_sends(client):
    client.post("/chat/messages", json={"content": "Merhaba"})

    res = client.get("/chat/state")

    data = res.json()["data"]
    assert data["loading"] is False
    assert data["current_session"]["title"] == "New Chat"
    assert data["sessions"][0]["message_count"] == 2


def test_create_list_and_select_sessions(client):
    first = client.post("/chat/sessions", json={"title": "Bitkiler"}).json()["data"]["session"]
    client.post("/chat/messages", json={"content": "Adaçayı"})
    client.post("/chat/sessions", json={"title": "Çaylar"})

    listed = client.get("/chat/sessions").json()["data"]["sessions"]
    assert {s["title"] for s in listed} == {"Bitkiler", "Çaylar"}

    res = client.post(f"/chat/sessions/{first['id']}/select")
    assert res.status_code == 200
    selected = res.json()["data"]["session"]
    assert selected["id"] == first["id"]
    assert [m["content"] for m in selected["messages"]][0] == "Adaçayı"


def test_select_unknown_session_is_404(client):
    res = client.post("/chat/sessions/does-not-exist/select")

    assert res.status_code == 404
    assert res.json()["status"] is False


def test_audio_is_served_from_store(client, audio_store):
    saved = audio_store.save(b"mp3-bytes")

    res = client.get(saved.url)

    assert res.status_code == 200
    assert res.content == b"mp3-bytes"
    assert res.headers["content-type"] == "audio/mpeg"
    assert client.get("/chat/audio/missing.mp3").status_code == 404


def test_requests_without_token_are_rejected(client):
    app.dependency_overrides.clear()

    res = client.post("/chat/messages", json={"content": "Merhaba"})

    assert res.status_code == 401


def test_requests_before_startup_are_unavailable(client):
    app.state.startup_complete = False

    assert client.get("/chat/state").status_code == 503
    health = client.get("/health").json()
    assert health["startup_complete"] is False


class _RaisingOrchestrator:
    def __init__(self, error, language="tr"):
        self.error = error
        self.identity = AuthState(language=language)

    async def send_message(self, *args):
        raise self.error


async def test_signed_out_send_maps_to_localized_401(make_orchestrator):
    orchestrator = make_orchestrator(AuthState())

    with pytest.raises(HTTPException) as exc_info:
        await handle_send_message(SendMessageRequest(content="Merhaba"), orchestrator)

    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Mesaj göndermek için giriş yapmanız gerekiyor."


async def test_busy_maps_to_409():
    with pytest.raises(HTTPException) as exc_info:
        await handle_send_message(SendMessageRequest(content="x"), _RaisingOrchestrator(ChatBusyError("busy")))

    assert exc_info.value.status_code == 409


async def test_persistence_failure_maps_to_localized_500():
    orchestrator = _RaisingOrchestrator(PersistenceError("db down"), language="en")

    with pytest.raises(HTTPException) as exc_info:
        await handle_send_message(SendMessageRequest(content="x"), orchestrator)

    assert exc_info.value.status_code == 500
    assert exc_info.value.detail == "Failed to send message. Please try again."


def test_audio_is_served_with_its_stored_type(client, audio_store):
    saved = audio_store.save(b"RIFF-wav", "audio/wav")

    res = client.get(saved.url)

    assert res.status_code == 200
    assert res.headers["content-type"] == "audio/wav"
