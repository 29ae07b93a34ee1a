import pytest

from app.auth.entity.entity import AuthState
from app.chat.service.registry import ChatRegistry
from app.user.entities.entity import UserProfile


@pytest.fixture
def registry(chat_repo, generative, speech, image_loader, player, logger):
    return ChatRegistry(chat_repo, generative, speech, image_loader, player, logger)


async def test_bind_creates_orchestrator_and_loads_sessions(registry, chat_repo, identity):
    await chat_repo.create_session("user-1", "Önceki sohbet")

    orchestrator = await registry.bind(identity)

    assert registry.get("user-1") is orchestrator
    assert [s.title for s in orchestrator.sessions] == ["Önceki sohbet"]
    assert orchestrator.current_session is None


async def test_rebind_keeps_state_and_updates_identity(registry, identity):
    orchestrator = await registry.bind(identity)
    await orchestrator.send_message("Merhaba")
    english = UserProfile(id="user-1", email="ayse@example.com", language_preference="en")

    again = await registry.bind(AuthState(user=english, language="en"))

    assert again is orchestrator
    assert again.identity.language == "en"
    assert len(again.current_session.messages) == 2


async def test_bind_rejects_signed_out_state(registry):
    with pytest.raises(ValueError):
        await registry.bind(AuthState())


async def test_discard_clears_user_state(registry, identity):
    orchestrator = await registry.bind(identity)
    await orchestrator.send_message("Merhaba")

    registry.discard("user-1")

    assert registry.get("user-1") is None
    assert orchestrator.current_session is None
    assert orchestrator.sessions == ()
    registry.discard("user-1")
