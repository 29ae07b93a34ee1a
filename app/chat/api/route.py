from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse

from app.auth.api.dependencies import get_current_user, get_auth_service
from app.auth.api.dto import BaseResponse
from app.auth.entity.entity import AuthEvent
from app.chat.api.dto import CreateSessionRequest, SendMessageRequest
from app.chat.api.handler import (
    handle_create_session,
    handle_list_sessions,
    handle_select_session,
    handle_send_message,
    handle_state,
)
from app.chat.service.orchestrator import ConversationOrchestrator
from app.chat.service.registry import ChatRegistry
from app.core.logger import get_logger
from app.speech.service.audio_store import AudioStore

chat_router = APIRouter(prefix="/chat", tags=["Chat"])
logger = get_logger("ChatRouter")


def get_chat_registry(request: Request) -> ChatRegistry:
    """Dependency to get the chat registry from app.state."""
    registry = getattr(request.app.state, "chat_registry", None)
    if registry is None:
        raise HTTPException(status_code=503, detail="Chat service not available")
    return registry


def get_audio_store(request: Request) -> AudioStore:
    audio_store = getattr(request.app.state, "audio_store", None)
    if audio_store is None:
        raise HTTPException(status_code=503, detail="Audio storage not available")
    return audio_store


async def get_orchestrator(
    request: Request,
    current_user: dict = Depends(get_current_user),
    registry: ChatRegistry = Depends(get_chat_registry),
) -> ConversationOrchestrator:
    """The signed-in user's orchestrator; first use fetches the profile like a sign-in."""
    orchestrator = registry.get(current_user["user_id"])
    if orchestrator is not None:
        return orchestrator
    auth_service = get_auth_service(request)
    state = await auth_service.handle_auth_event(
        AuthEvent.SIGNED_IN, current_user["user_id"], current_user.get("email", "")
    )
    return await registry.bind(state)


@chat_router.get("/sessions", response_model=BaseResponse)
async def list_sessions(
    current_user: dict = Depends(get_current_user),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    """Reload the user's sessions, most recently updated first."""
    return await handle_list_sessions(current_user["user_id"], orchestrator)


@chat_router.post("/sessions", response_model=BaseResponse)
async def create_session(
    body: CreateSessionRequest,
    current_user: dict = Depends(get_current_user),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    return await handle_create_session(current_user["user_id"], body, orchestrator)


@chat_router.post("/sessions/{session_id}/select", response_model=BaseResponse)
async def select_session(
    session_id: str,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    return await handle_select_session(session_id, orchestrator)


@chat_router.get("/state", response_model=BaseResponse)
async def chat_state(orchestrator: ConversationOrchestrator = Depends(get_orchestrator)):
    """Current session, session list and the loading flag."""
    return handle_state(orchestrator)


@chat_router.post("/messages", response_model=BaseResponse)
async def send_message(
    body: SendMessageRequest,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    """Send a text / voice / image message and receive the assistant reply."""
    return await handle_send_message(body, orchestrator)


@chat_router.get("/audio/{name}")
async def get_audio(
    name: str,
    current_user: dict = Depends(get_current_user),
    audio_store: AudioStore = Depends(get_audio_store),
):
    """Serve a synthesized reply; the random file name acts as the access capability."""
    path = audio_store.resolve(name)
    if path is None:
        raise HTTPException(status_code=404, detail="Audio not found")
    return FileResponse(path, media_type=audio_store.mime_type_for(path.name))
