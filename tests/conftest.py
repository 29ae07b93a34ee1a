import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import httpx
import pytest

from app.auth.entity.entity import AuthState
from app.chat.entity.chat import ChatMessage, ChatSession, NewChatMessage
from app.chat.service.orchestrator import ConversationOrchestrator
from app.chat.service.service import IChatRepository
from app.core.errors import PersistenceError
from app.core.logger import get_logger
from app.llm.service.provider.base_provider import BaseProvider
from app.speech.service.audio_store import AudioRef
from app.speech.service.player import AudioPlayer
from app.user.entities.entity import UserProfile
from app.user.service.user_service import IUserRepository

USER_ID = "user-1"
USER_EMAIL = "ayse@example.com"


class FakeChatRepository(IChatRepository):
    """In-memory chat store; `fail_on` names the operations that should raise."""

    def __init__(self):
        self.sessions: dict[str, ChatSession] = {}
        self.messages: dict[str, list[ChatMessage]] = {}
        self.fail_on: set[str] = set()
        self.calls: list[str] = []
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    async def get_sessions(self, user_id: str) -> list[ChatSession]:
        self.calls.append("get_sessions")
        if "get_sessions" in self.fail_on:
            raise PersistenceError("sessions unavailable")
        owned = [s for s in self.sessions.values() if s.user_id == user_id]
        return sorted(owned, key=lambda s: s.updated_at, reverse=True)

    async def create_session(self, user_id: str, title: str) -> ChatSession:
        self.calls.append("create_session")
        if "create_session" in self.fail_on:
            raise PersistenceError("insert failed")
        now = self._tick()
        session = ChatSession(id=str(uuid.uuid4()), user_id=user_id, title=title, created_at=now, updated_at=now)
        self.sessions[session.id] = session
        self.messages[session.id] = []
        return session

    async def get_messages(self, session_id: str) -> list[ChatMessage]:
        self.calls.append("get_messages")
        if "get_messages" in self.fail_on:
            raise PersistenceError("messages unavailable")
        return list(self.messages.get(session_id, []))

    async def add_message(self, session_id: str, message: NewChatMessage) -> ChatMessage:
        self.calls.append(f"add_message:{message.type}")
        if f"add_message:{message.type}" in self.fail_on:
            raise PersistenceError(f"{message.type} message insert failed")
        stored = ChatMessage(id=str(uuid.uuid4()), created_at=self._tick(), **message.model_dump())
        self.messages.setdefault(session_id, []).append(stored)
        return stored


class FakeGenerative(BaseProvider):
    def __init__(self, reply: str = "Papatya çayı rahatlatıcıdır."):
        self.reply = reply
        self.error: Optional[Exception] = None
        self.text_calls: list[tuple[str, str]] = []
        self.image_calls: list[tuple[str, str, str]] = []
        self.on_call: Optional[Callable] = None

    async def _answer(self) -> str:
        if self.on_call is not None:
            result = self.on_call()
            if asyncio.iscoroutine(result):
                await result
        if self.error is not None:
            raise self.error
        return self.reply

    async def respond_to_text(self, text: str, language: str) -> str:
        self.text_calls.append((text, language))
        return await self._answer()

    async def respond_to_image(self, base64_image: str, question: str, language: str) -> str:
        self.image_calls.append((base64_image, question, language))
        return await self._answer()


class FakeSpeech:
    def __init__(self, audio: Optional[AudioRef] = None):
        self.audio = audio
        self.error: Optional[Exception] = None
        self.calls: list[tuple[str, str]] = []

    async def synthesize(self, text: str, language: str) -> Optional[AudioRef]:
        self.calls.append((text, language))
        if self.error is not None:
            raise self.error
        return self.audio


class FakeImageLoader:
    def __init__(self, payload: str = "aW1hZ2U="):
        self.payload = payload
        self.calls: list[str] = []

    async def load_base64(self, image_url: str) -> str:
        self.calls.append(image_url)
        return self.payload


class RecordingPlayer(AudioPlayer):
    def __init__(self):
        self.played: list[AudioRef] = []
        self.error: Optional[Exception] = None

    async def play(self, audio: AudioRef) -> None:
        if self.error is not None:
            raise self.error
        self.played.append(audio)


class FakeUserRepository(IUserRepository):
    def __init__(self):
        self.profiles: dict[str, UserProfile] = {}

    async def get_user_profile(self, user_id: str) -> UserProfile | None:
        return self.profiles.get(user_id)

    async def create_user_profile(self, user_id, email, language_preference="tr", is_premium=False) -> UserProfile:
        profile = UserProfile(id=user_id, email=email, language_preference=language_preference, is_premium=is_premium)
        self.profiles[user_id] = profile
        return profile

    async def update_user_profile(self, user_id, patch) -> UserProfile | None:
        profile = self.profiles.get(user_id)
        if profile is None:
            return None
        profile = profile.model_copy(update=patch)
        self.profiles[user_id] = profile
        return profile


@pytest.fixture
def logger():
    return get_logger("tests")


@pytest.fixture
def profile() -> UserProfile:
    return UserProfile(id=USER_ID, email=USER_EMAIL, language_preference="tr")


@pytest.fixture
def identity(profile) -> AuthState:
    return AuthState(user=profile, language="tr")


@pytest.fixture
def chat_repo() -> FakeChatRepository:
    return FakeChatRepository()


@pytest.fixture
def generative() -> FakeGenerative:
    return FakeGenerative()


@pytest.fixture
def audio_ref() -> AudioRef:
    return AudioRef(name="reply.mp3", path="/tmp/reply.mp3", url="/chat/audio/reply.mp3")


@pytest.fixture
def speech(audio_ref) -> FakeSpeech:
    return FakeSpeech(audio_ref)


@pytest.fixture
def image_loader() -> FakeImageLoader:
    return FakeImageLoader()


@pytest.fixture
def player() -> RecordingPlayer:
    return RecordingPlayer()


@pytest.fixture
def user_repo() -> FakeUserRepository:
    return FakeUserRepository()


@pytest.fixture
def make_orchestrator(identity, chat_repo, generative, speech, image_loader, player):
    def _make(state: Optional[AuthState] = None) -> ConversationOrchestrator:
        return ConversationOrchestrator(
            identity=state if state is not None else identity,
            chat_repository=chat_repo,
            generative=generative,
            speech=speech,
            image_loader=image_loader,
            audio_player=player,
        )

    return _make


@pytest.fixture
def mock_http(monkeypatch):
    """
    Route every httpx.AsyncClient created by the code under test through a
    MockTransport. Returns an installer taking the request handler; the
    returned list collects the requests that were sent.
    """
    real_client = httpx.AsyncClient

    def install(handler: Callable[[httpx.Request], httpx.Response]) -> list[httpx.Request]:
        requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        transport = httpx.MockTransport(record)
        monkeypatch.setattr(httpx, "AsyncClient", lambda *args, **kwargs: real_client(*args, transport=transport, **kwargs))
        return requests

    return install
