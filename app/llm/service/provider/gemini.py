import httpx
from typing import Any
from .base_provider import BaseProvider
from app.core.config import settings
from app.core.errors import ProviderError
from app.core.logger import get_logger
from app.llm.service.prompt import build_health_safe_prompt

GENERATION_CONFIG = {
    "temperature": 0.7,
    "topK": 40,
    "topP": 0.95,
    "maxOutputTokens": 1024,
}

SAFETY_SETTINGS = [
    {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
    for category in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]


class GeminiProvider(BaseProvider):
    """Handles Google Gemini text and vision requests."""

    def __init__(self, api_key: str | None = None, endpoint: str | None = None, model: str | None = None,
                 timeout: float | None = None):
        self.name = "gemini"
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.endpoint = (endpoint or settings.GEMINI_ENDPOINT).rstrip("/")
        self.model = model or settings.GEMINI_MODEL
        self.timeout = timeout or settings.PROVIDER_TIMEOUT_SECONDS
        self._logger = get_logger("GeminiProvider")

    def is_enabled(self) -> bool:
        return bool(self.api_key)

    async def respond_to_text(self, text: str, language: str) -> str:
        prompt = build_health_safe_prompt(text, language)
        return await self._generate([{"text": prompt}])

    async def respond_to_image(self, base64_image: str, question: str, language: str) -> str:
        prompt = build_health_safe_prompt(question, language)
        parts = [
            {"text": prompt},
            {"inline_data": {"mime_type": "image/jpeg", "data": base64_image}},
        ]
        return await self._generate(parts)

    async def _generate(self, parts: list[dict[str, Any]]) -> str:
        if not self.api_key:
            raise ProviderError("Gemini API key is not configured")

        payload = {
            "contents": [{"parts": parts}],
            "generationConfig": GENERATION_CONFIG,
            "safetySettings": SAFETY_SETTINGS,
        }
        url = f"{self.endpoint}/v1beta/models/{self.model}:generateContent"

        self._logger.info(f"Sending request to Gemini ({self.model}, {len(parts)} part(s))")
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                res = await client.post(url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as e:
            raise ProviderError(f"Gemini request failed: {e}") from e

        if res.status_code != 200:
            self._logger.error(f"Gemini API error: status={res.status_code} body={res.text[:500]}")
            raise ProviderError(f"Gemini API error: {res.status_code}", status_code=res.status_code)

        try:
            data = res.json()
        except ValueError as e:
            raise ProviderError("Gemini returned a non-JSON body") from e
        return self._extract_text(data)

    def _extract_text(self, data: dict) -> str:
        candidates = data.get("candidates") or []
        if not candidates or not candidates[0].get("content"):
            self._logger.error(f"Invalid response structure from Gemini: {str(data)[:500]}")
            raise ProviderError("Invalid response from Gemini API")

        parts = candidates[0]["content"].get("parts") or []
        text = parts[0].get("text") if parts else None
        if text is None:
            raise ProviderError("Gemini candidate has no text part")
        return text
