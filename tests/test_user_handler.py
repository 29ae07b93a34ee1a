import pytest
from fastapi import HTTPException

from app.chat.service.registry import ChatRegistry
from app.user.api.dto import UpdateLanguageDTO
from app.user.api.handlers import UserHandler
from app.user.service.user_service import UserService


@pytest.fixture
def registry(chat_repo, generative, speech, image_loader, player, logger):
    return ChatRegistry(chat_repo, generative, speech, image_loader, player, logger)


@pytest.fixture
def handler(user_repo, registry, logger):
    return UserHandler(UserService(user_repo, logger), registry, logger)


async def test_profile_is_created_on_first_access(handler, user_repo):
    res = await handler.get_user_profile("user-1", "Ayse@Example.com")

    assert res["data"]["email"] == "ayse@example.com"
    assert res["data"]["language_preference"] == "tr"
    assert "user-1" in user_repo.profiles


async def test_language_change_rebinds_chat_state(handler, user_repo, registry, identity, generative):
    await user_repo.create_user_profile("user-1", "ayse@example.com")
    orchestrator = await registry.bind(identity)

    res = await handler.update_language("user-1", UpdateLanguageDTO(language="en"))

    assert res["data"]["language_preference"] == "en"
    assert orchestrator.identity.language == "en"
    await orchestrator.send_message("Hello")
    assert generative.text_calls == [("Hello", "en")]


async def test_language_change_for_unknown_user_is_404(handler):
    with pytest.raises(HTTPException) as exc_info:
        await handler.update_language("ghost", UpdateLanguageDTO(language="en"))
    assert exc_info.value.status_code == 404


async def test_premium_info_is_informational(handler, user_repo):
    await user_repo.create_user_profile("user-1", "ayse@example.com", language_preference="en")

    res = await handler.premium_info("user-1")

    assert res["data"] == {"is_premium": False, "purchases_available": False}
    assert res["message"].startswith("In-app purchases are not supported yet.")
