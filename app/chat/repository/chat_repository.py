# app/chat/repository/chat_repository.py

from typing import List
from uuid import UUID
from datetime import datetime, timezone
from sqlalchemy.future import select
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from app.chat.entity.chat import ChatSession, ChatMessage, NewChatMessage
from app.chat.repository.sql_schema.chat import ChatSessionModel, ChatMessageModel
from app.chat.service.service import IChatRepository
from app.core.errors import PersistenceError
from app.core.logger import get_logger
from pkg.db_util.postgres_conn import PostgresConnection

logger = get_logger(__name__)


def _to_message(m: ChatMessageModel) -> ChatMessage:
    return ChatMessage(
        id=str(m.id),
        session_id=str(m.session_id),
        user_id=m.user_id,
        content=m.content,
        type=m.type,
        input_type=m.input_type,
        image_url=m.image_url,
        audio_url=m.audio_url,
        created_at=m.created_at,
    )


def _to_session(s: ChatSessionModel, with_messages: bool = True) -> ChatSession:
    return ChatSession(
        id=str(s.id),
        user_id=s.user_id,
        title=s.title,
        created_at=s.created_at,
        updated_at=s.updated_at,
        messages=[_to_message(m) for m in s.messages] if with_messages else [],
    )


class ChatRepository(IChatRepository):
    """Handles all database interactions for chat sessions and messages."""

    def __init__(self, postgres: PostgresConnection):
        self.postgres = postgres
        self.logger = logger

    # ────────────────────────────────────────────────
    # Session CRUD
    # ────────────────────────────────────────────────

    async def get_sessions(self, user_id: str) -> List[ChatSession]:
        """List all sessions (with messages) for a given user."""
        try:
            async with self.postgres.get_session() as session:
                result = await session.execute(
                    select(ChatSessionModel)
                    .where(ChatSessionModel.user_id == user_id)
                    .order_by(ChatSessionModel.updated_at.desc())
                )
                return [_to_session(s) for s in result.scalars().all()]
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing sessions for user_id={user_id}: {e}")
            raise PersistenceError(f"Failed to load chat sessions: {e}") from e

    async def create_session(self, user_id: str, title: str) -> ChatSession:
        """Insert a new, empty session."""
        try:
            async with self.postgres.get_session() as session:
                now = datetime.now(timezone.utc)
                new_session = ChatSessionModel(user_id=user_id, title=title, created_at=now, updated_at=now)
                session.add(new_session)
                await session.commit()
                self.logger.info(f"Chat session saved: {new_session.id}")
                return _to_session(new_session, with_messages=False)
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating session for user_id={user_id}: {e}")
            raise PersistenceError(f"Failed to create chat session: {e}") from e

    # ────────────────────────────────────────────────
    # Message CRUD
    # ────────────────────────────────────────────────

    async def get_messages(self, session_id: str) -> List[ChatMessage]:
        try:
            async with self.postgres.get_session() as session:
                result = await session.execute(
                    select(ChatMessageModel)
                    .where(ChatMessageModel.session_id == UUID(session_id))
                    .order_by(ChatMessageModel.created_at.asc())
                )
                return [_to_message(m) for m in result.scalars().all()]
        except (SQLAlchemyError, ValueError) as e:
            self.logger.error(f"Error loading messages for session_id={session_id}: {e}")
            raise PersistenceError(f"Failed to load chat messages: {e}") from e

    async def add_message(self, session_id: str, message: NewChatMessage) -> ChatMessage:
        """Insert a message and bump the parent session's updated_at."""
        try:
            async with self.postgres.get_session() as session:
                now = datetime.now(timezone.utc)
                new_msg = ChatMessageModel(
                    session_id=UUID(session_id),
                    user_id=message.user_id,
                    content=message.content,
                    type=message.type,
                    input_type=message.input_type,
                    image_url=message.image_url,
                    audio_url=message.audio_url,
                    created_at=now,
                )
                session.add(new_msg)
                await session.execute(
                    update(ChatSessionModel)
                    .where(ChatSessionModel.id == UUID(session_id))
                    .values(updated_at=now)
                )
                await session.commit()
                self.logger.debug(f"Message saved for session {session_id}")
                return _to_message(new_msg)
        except (SQLAlchemyError, ValueError) as e:
            self.logger.error(f"Error adding {message.type} message to session_id={session_id}: {e}")
            raise PersistenceError(f"Failed to save chat message: {e}") from e
