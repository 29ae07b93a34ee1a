# app/llm/service/provider/base_provider.py
from abc import ABC, abstractmethod


class BaseProvider(ABC):
    """Abstract base for generative providers used by the chat orchestrator."""

    @abstractmethod
    async def respond_to_text(self, text: str, language: str) -> str:
        """Moderated reply to a text question."""
        pass

    @abstractmethod
    async def respond_to_image(self, base64_image: str, question: str, language: str) -> str:
        """Moderated reply to a question about a JPEG image."""
        pass

    def is_enabled(self) -> bool:
        """Whether this provider is enabled/usable (e.g., API key present)."""
        return True
