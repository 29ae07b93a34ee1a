from typing import Dict, Optional
import logging

from app.auth.entity.entity import AuthState
from app.chat.service.orchestrator import ConversationOrchestrator
from app.chat.service.service import IChatRepository
from app.llm.service.image_loader import ImageLoader
from app.llm.service.provider.base_provider import BaseProvider
from app.speech.service.elevenlabs import ElevenLabsProvider
from app.speech.service.player import AudioPlayer


class ChatRegistry:
    """One ConversationOrchestrator per signed-in user, sharing the injected clients."""

    def __init__(
        self,
        chat_repository: IChatRepository,
        generative: BaseProvider,
        speech: ElevenLabsProvider,
        image_loader: ImageLoader,
        audio_player: AudioPlayer,
        logger: logging.Logger,
    ):
        self.chat_repository = chat_repository
        self.generative = generative
        self.speech = speech
        self.image_loader = image_loader
        self.audio_player = audio_player
        self.logger = logger
        self._orchestrators: Dict[str, ConversationOrchestrator] = {}

    def get(self, user_id: str) -> Optional[ConversationOrchestrator]:
        return self._orchestrators.get(user_id)

    async def bind(self, state: AuthState) -> ConversationOrchestrator:
        """Return the user's orchestrator with a fresh identity; sessions load on first use."""
        if state.user is None:
            raise ValueError("Cannot bind an unauthenticated state")

        orchestrator = self._orchestrators.get(state.user.id)
        if orchestrator is None:
            orchestrator = ConversationOrchestrator(
                identity=state,
                chat_repository=self.chat_repository,
                generative=self.generative,
                speech=self.speech,
                image_loader=self.image_loader,
                audio_player=self.audio_player,
            )
            self._orchestrators[state.user.id] = orchestrator
            await orchestrator.load_sessions(state.user.id)
            self.logger.info(f"Chat state created for user {state.user.id}")
        else:
            orchestrator.bind_identity(state)
        return orchestrator

    def discard(self, user_id: str) -> None:
        orchestrator = self._orchestrators.pop(user_id, None)
        if orchestrator is not None:
            orchestrator.reset()
            self.logger.info(f"Chat state cleared for user {user_id}")
