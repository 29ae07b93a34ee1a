import httpx
from typing import Optional

from app.core.config import settings
from app.core.logger import get_logger
from app.speech.service.audio_store import AudioRef, AudioStore

VOICE_SETTINGS = {
    "stability": 0.5,
    "similarity_boost": 0.75,
    "style": 0.0,
    "use_speaker_boost": True,
}


class ElevenLabsProvider:
    """Text-to-speech through ElevenLabs. Never raises: failures mean "no audio"."""

    def __init__(self, audio_store: AudioStore, api_key: str | None = None, base_url: str | None = None,
                 model_id: str | None = None, voices: dict[str, str] | None = None, timeout: float | None = None):
        self.name = "elevenlabs"
        self.audio_store = audio_store
        self.api_key = api_key if api_key is not None else (settings.ELEVENLABS_API_KEY or "")
        self.base_url = (base_url or settings.ELEVENLABS_BASE_URL).rstrip("/")
        self.model_id = model_id or settings.ELEVENLABS_MODEL_ID
        self.voices = voices or {"tr": settings.ELEVENLABS_VOICE_TR, "en": settings.ELEVENLABS_VOICE_EN}
        self.timeout = timeout or settings.PROVIDER_TIMEOUT_SECONDS
        self._logger = get_logger("ElevenLabsProvider")

    def is_enabled(self) -> bool:
        return bool(self.api_key)

    def voice_for(self, language: str) -> str:
        return self.voices.get(language) or self.voices["tr"]

    async def synthesize(self, text: str, language: str) -> Optional[AudioRef]:
        if not self.api_key:
            self._logger.warning("ElevenLabs API key not provided, skipping audio generation")
            return None

        voice_id = self.voice_for(language)
        payload = {
            "text": text,
            "model_id": self.model_id,
            "voice_settings": VOICE_SETTINGS,
        }
        headers = {
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": self.api_key,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                res = await client.post(f"{self.base_url}/text-to-speech/{voice_id}", json=payload, headers=headers)
            if res.status_code != 200:
                self._logger.error(f"ElevenLabs API error: status={res.status_code}")
                return None
            if not res.content:
                self._logger.error("ElevenLabs returned an empty audio body")
                return None
            return self.audio_store.save(res.content, res.headers.get("content-type", "audio/mpeg"))
        except (httpx.HTTPError, OSError) as e:
            self._logger.error(f"ElevenLabs API error: {e}")
            return None
