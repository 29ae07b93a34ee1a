from pydantic import BaseModel, Field
from typing import List, Literal, Optional

from app.chat.entity.chat import ChatSession


class SendMessageRequest(BaseModel):
    content: str = Field(..., min_length=1, description="User text; the question asked about an image for image input")
    input_type: Literal["text", "voice", "image"] = "text"
    image_url: Optional[str] = Field(default=None, description="JPEG image as a base64 data: URI or an https URL on an allowed storage host")


class CreateSessionRequest(BaseModel):
    title: str = Field(default="New Chat", min_length=1, max_length=255)


class SessionSummary(BaseModel):
    id: str
    title: str
    created_at: str
    updated_at: str
    message_count: int

    @classmethod
    def from_session(cls, session: ChatSession) -> "SessionSummary":
        return cls(
            id=session.id,
            title=session.title,
            created_at=session.created_at.isoformat(),
            updated_at=session.updated_at.isoformat(),
            message_count=len(session.messages),
        )


class ChatStateResponse(BaseModel):
    loading: bool
    current_session: Optional[dict] = None
    sessions: List[SessionSummary] = Field(default_factory=list)
