from abc import ABC, abstractmethod
from typing import List
from app.chat.entity.chat import ChatSession, ChatMessage, NewChatMessage


class IChatRepository(ABC):
    @abstractmethod
    async def get_sessions(self, user_id: str) -> List[ChatSession]:
        """All sessions of a user with nested messages, most recently updated first."""
        pass

    @abstractmethod
    async def create_session(self, user_id: str, title: str) -> ChatSession:
        pass

    @abstractmethod
    async def get_messages(self, session_id: str) -> List[ChatMessage]:
        """Messages of a session in ascending creation order."""
        pass

    @abstractmethod
    async def add_message(self, session_id: str, message: NewChatMessage) -> ChatMessage:
        pass
