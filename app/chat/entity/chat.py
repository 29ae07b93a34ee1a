# app/chat/entity/chat.py
"""
Models for chat sessions and chat messages.
These mirror the `chat_sessions` / `chat_messages` rows and are what the
orchestrator keeps in memory and the API returns.
"""

from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class InputType(str, Enum):
    TEXT = "text"
    VOICE = "voice"
    IMAGE = "image"


class NewChatMessage(BaseModel):
    """Write shape of a message: the store assigns id and created_at."""
    model_config = ConfigDict(use_enum_values=True)

    session_id: str
    user_id: str
    content: str
    type: MessageRole
    input_type: InputType = InputType.TEXT
    image_url: Optional[str] = None
    audio_url: Optional[str] = None


class ChatMessage(NewChatMessage):
    """A persisted, immutable message."""
    model_config = ConfigDict(use_enum_values=True, frozen=True)

    id: str
    created_at: datetime


class ChatSession(BaseModel):
    """A titled conversation owned by one user; messages in chronological order."""
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    title: str = "New Chat"
    created_at: datetime
    updated_at: datetime
    messages: List[ChatMessage] = Field(default_factory=list)

    def with_messages(self, messages: List[ChatMessage]) -> "ChatSession":
        return self.model_copy(update={"messages": list(messages)})

    def with_message(self, message: ChatMessage) -> "ChatSession":
        return self.model_copy(update={"messages": [*self.messages, message]})
