# app/chat/service/orchestrator.py
import asyncio
import logging
from typing import Optional, Tuple

from app.auth.entity.entity import AuthState
from app.chat.entity.chat import ChatMessage, ChatSession, InputType, MessageRole, NewChatMessage
from app.chat.service.service import IChatRepository
from app.core.errors import AuthRequiredError, ChatBusyError, PersistenceError, SessionCreateError
from app.core.logger import get_logger
from app.llm.service.image_loader import ImageLoader
from app.llm.service.prompt import fallback_message
from app.llm.service.provider.base_provider import BaseProvider
from app.speech.service.audio_store import AudioRef
from app.speech.service.elevenlabs import ElevenLabsProvider
from app.speech.service.player import AudioPlayer, NullAudioPlayer

DEFAULT_SESSION_TITLE = "New Chat"


class ConversationOrchestrator:
    """
    Runs the send-message transaction for one signed-in user and owns that
    user's in-memory chat state.

    - `sessions`, `current_session` and `loading` are only replaced, never
      mutated in place, so readers always see a consistent snapshot.
    - Generative failures degrade to a fixed fallback reply, speech failures
      to "no audio", playback failures to a log line. Only missing identity,
      session creation and message persistence failures reach the caller.
    """

    def __init__(
        self,
        identity: AuthState,
        chat_repository: IChatRepository,
        generative: BaseProvider,
        speech: ElevenLabsProvider,
        image_loader: Optional[ImageLoader] = None,
        audio_player: Optional[AudioPlayer] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._identity = identity
        self.chat_repository = chat_repository
        self.generative = generative
        self.speech = speech
        self.image_loader = image_loader or ImageLoader()
        self.audio_player = audio_player or NullAudioPlayer()
        self.logger = logger or get_logger("ConversationOrchestrator")

        self._sessions: Tuple[ChatSession, ...] = ()
        self._current_session: Optional[ChatSession] = None
        self._loading = False
        self._send_lock = asyncio.Lock()

    # ----------------------------
    # State
    # ----------------------------
    @property
    def identity(self) -> AuthState:
        return self._identity

    @property
    def sessions(self) -> Tuple[ChatSession, ...]:
        return self._sessions

    @property
    def current_session(self) -> Optional[ChatSession]:
        return self._current_session

    @property
    def loading(self) -> bool:
        return self._loading

    def bind_identity(self, identity: AuthState) -> None:
        self._identity = identity

    def reset(self) -> None:
        self._sessions = ()
        self._current_session = None
        self._loading = False

    def _append(self, session_id: str, message: ChatMessage) -> None:
        """Add a persisted message to session `session_id` wherever it is held; a no-op after reset."""
        current = self._current_session
        updated = current.with_message(message) if current is not None and current.id == session_id else None
        if updated is not None:
            self._current_session = updated
        self._sessions = tuple(
            (updated if updated is not None else s.with_message(message)) if s.id == session_id else s
            for s in self._sessions
        )

    # ----------------------------
    # Sessions
    # ----------------------------
    async def load_sessions(self, user_id: str) -> None:
        """Replace `sessions` with the stored ones; keeps prior state on failure."""
        try:
            self.logger.info(f"Loading chat sessions for user: {user_id}")
            sessions = await self.chat_repository.get_sessions(user_id)
        except Exception as e:
            self.logger.error(f"Error loading chat sessions: {e}")
            return
        self._sessions = tuple(sessions)
        self.logger.info(f"Loaded {len(sessions)} session(s) for user: {user_id}")

    async def create_session(self, user_id: str, title: str) -> ChatSession:
        try:
            self.logger.info(f"Creating new chat session: {title}")
            created = await self.chat_repository.create_session(user_id, title)
        except Exception as e:
            self.logger.error(f"Error creating chat session: {e}")
            raise SessionCreateError(f"Failed to create chat session: {e}") from e

        session = created.with_messages([])
        self._sessions = (session, *self._sessions)
        self._current_session = session
        return session

    async def select_session(self, session: ChatSession) -> None:
        """Make `session` current with its persisted messages; unchanged on failure."""
        try:
            self.logger.info(f"Selecting session: {session.id}")
            messages = await self.chat_repository.get_messages(session.id)
        except Exception as e:
            self.logger.error(f"Error loading chat messages: {e}")
            return
        self._current_session = session.with_messages(messages)

    # ----------------------------
    # Send pipeline
    # ----------------------------
    async def send_message(
        self,
        content: str,
        input_type: InputType | str = InputType.TEXT,
        image_url: Optional[str] = None,
    ) -> ChatSession:
        """
        Persist the user turn, obtain a moderated reply (text or vision),
        optionally synthesize speech, persist the assistant turn.

        Raises AuthRequiredError, ChatBusyError, SessionCreateError or
        PersistenceError. A failed assistant write leaves the user message
        persisted.
        """
        user = self._identity.user
        if user is None:
            self.logger.error("Cannot send message: user not authenticated")
            raise AuthRequiredError("Authentication required to send messages")

        input_type = InputType(input_type)

        if self._send_lock.locked():
            self.logger.warning(f"Rejecting message for {user.id}: a send is already in progress")
            raise ChatBusyError("Another message is still being processed")

        async with self._send_lock:
            language = self._identity.language

            if self._current_session is None:
                self.logger.info("No current session, creating new one...")
                await self.create_session(user.id, DEFAULT_SESSION_TITLE)

            # The reply belongs to this session even if another is selected meanwhile
            session = self._current_session
            session_id = session.id
            self._loading = True
            try:
                self.logger.info(f"Sending {input_type.value} message to session {session_id}")
                user_message = await self.chat_repository.add_message(
                    session_id,
                    NewChatMessage(
                        session_id=session_id,
                        user_id=user.id,
                        content=content,
                        type=MessageRole.USER,
                        input_type=input_type,
                        image_url=image_url,
                    ),
                )
                session = session.with_message(user_message)
                self._append(session_id, user_message)

                reply = await self._generate_reply(content, input_type, image_url, language)
                audio = await self._synthesize(reply, language)

                assistant_message = await self.chat_repository.add_message(
                    session_id,
                    NewChatMessage(
                        session_id=session_id,
                        user_id=user.id,
                        content=reply,
                        type=MessageRole.ASSISTANT,
                        input_type=InputType.TEXT,
                        audio_url=audio.url if audio else None,
                    ),
                )
                session = session.with_message(assistant_message)
                self._append(session_id, assistant_message)
                self.logger.info(f"Assistant reply stored for session {session_id}")

                if audio:
                    await self.play_audio(audio)

                return session
            except PersistenceError as e:
                self.logger.error(f"Error in send_message: {e}")
                raise
            finally:
                self._loading = False

    async def _generate_reply(
        self, content: str, input_type: InputType, image_url: Optional[str], language: str
    ) -> str:
        try:
            if input_type == InputType.IMAGE and image_url:
                self.logger.info("Processing image for analysis...")
                image_b64 = await self.image_loader.load_base64(image_url)
                return await self.generative.respond_to_image(image_b64, content, language)
            return await self.generative.respond_to_text(content, language)
        except Exception as e:
            self.logger.error(f"Error generating AI response, using fallback: {e}")
            return fallback_message(language)

    async def _synthesize(self, text: str, language: str) -> Optional[AudioRef]:
        try:
            audio = await self.speech.synthesize(text, language)
        except Exception as e:
            self.logger.error(f"Error generating audio: {e}")
            return None
        if audio is None:
            self.logger.info("Audio generation skipped (no API key or error)")
        return audio

    async def play_audio(self, audio: AudioRef) -> None:
        try:
            await self.audio_player.play(audio)
        except Exception as e:
            self.logger.error(f"Error playing audio: {e}")
