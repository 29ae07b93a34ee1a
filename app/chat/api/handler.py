from typing import Any
from fastapi import HTTPException

from app.chat.api.dto import ChatStateResponse, CreateSessionRequest, SendMessageRequest, SessionSummary
from app.chat.service.orchestrator import ConversationOrchestrator
from app.core.errors import AuthRequiredError, ChatBusyError, PersistenceError, SessionCreateError
from app.core.logger import get_logger

logger = get_logger("ChatHandler")

ERROR_MESSAGES = {
    "tr": {
        "auth": "Mesaj göndermek için giriş yapmanız gerekiyor.",
        "send": "Mesaj gönderilemedi. Lütfen tekrar deneyin.",
        "busy": "Önceki mesajınız hâlâ işleniyor. Lütfen bekleyin.",
    },
    "en": {
        "auth": "You need to be logged in to send messages.",
        "send": "Failed to send message. Please try again.",
        "busy": "Your previous message is still being processed. Please wait.",
    },
}


def _texts(orchestrator: ConversationOrchestrator) -> dict[str, str]:
    return ERROR_MESSAGES.get(orchestrator.identity.language, ERROR_MESSAGES["tr"])


def _state(orchestrator: ConversationOrchestrator) -> dict[str, Any]:
    current = orchestrator.current_session
    return ChatStateResponse(
        loading=orchestrator.loading,
        current_session=current.model_dump(mode="json") if current else None,
        sessions=[SessionSummary.from_session(s) for s in orchestrator.sessions],
    ).model_dump()


async def handle_send_message(body: SendMessageRequest, orchestrator: ConversationOrchestrator) -> dict[str, Any]:
    """Runs one send-message transaction and maps its errors to user-facing alerts."""
    texts = _texts(orchestrator)
    try:
        session = await orchestrator.send_message(body.content, body.input_type, body.image_url)
    except AuthRequiredError:
        raise HTTPException(status_code=401, detail=texts["auth"])
    except ChatBusyError:
        raise HTTPException(status_code=409, detail=texts["busy"])
    except (SessionCreateError, PersistenceError) as e:
        logger.error(f"Message send failed: {e}")
        raise HTTPException(status_code=500, detail=texts["send"])

    return {
        "status": True,
        "message": "Message sent",
        "data": {
            "session": session.model_dump(mode="json"),
            "reply": session.messages[-1].model_dump(mode="json") if session.messages else None,
        },
    }


async def handle_list_sessions(user_id: str, orchestrator: ConversationOrchestrator) -> dict[str, Any]:
    await orchestrator.load_sessions(user_id)
    return {
        "status": True,
        "message": "Sessions fetched successfully",
        "data": {"sessions": [s.model_dump(mode="json") for s in orchestrator.sessions]},
    }


async def handle_create_session(
    user_id: str, body: CreateSessionRequest, orchestrator: ConversationOrchestrator
) -> dict[str, Any]:
    try:
        session = await orchestrator.create_session(user_id, body.title)
    except SessionCreateError as e:
        logger.error(f"Session creation failed for {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to create chat session")
    return {
        "status": True,
        "message": "Session created successfully",
        "data": {"session": session.model_dump(mode="json")},
    }


async def handle_select_session(session_id: str, orchestrator: ConversationOrchestrator) -> dict[str, Any]:
    session = next((s for s in orchestrator.sessions if s.id == session_id), None)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")

    await orchestrator.select_session(session)
    current = orchestrator.current_session
    if current is None or current.id != session_id:
        raise HTTPException(status_code=500, detail="Failed to load session messages")
    return {
        "status": True,
        "message": "Session selected",
        "data": {"session": current.model_dump(mode="json")},
    }


def handle_state(orchestrator: ConversationOrchestrator) -> dict[str, Any]:
    return {"status": True, "message": "Chat state", "data": _state(orchestrator)}
