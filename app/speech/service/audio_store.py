import time
import uuid
from pathlib import Path

from pydantic import BaseModel

from app.core.config import settings
from app.core.logger import get_logger

# Stored extension per audio MIME type; the extension is how a file's type is recovered
AUDIO_EXTENSIONS = {
    "audio/mpeg": ".mp3",
    "audio/mp3": ".mp3",
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
    "audio/ogg": ".ogg",
    "audio/aac": ".aac",
    "audio/flac": ".flac",
}
MIME_TYPES = {".mp3": "audio/mpeg", ".wav": "audio/wav", ".ogg": "audio/ogg", ".aac": "audio/aac", ".flac": "audio/flac"}
DEFAULT_MIME_TYPE = "audio/mpeg"


class AudioRef(BaseModel):
    """Playable handle to a synthesized reply stored on local disk."""

    name: str
    path: str
    url: str
    mime_type: str = DEFAULT_MIME_TYPE


class AudioStore:
    """
    Keeps synthesized audio files under AUDIO_DIR and serves them back by name.

    Names are uuid4 hex ids (122 random bits), so an audio URL works as a capability:
    any signed-in client holding it can fetch the file, nobody can enumerate
    them. Files older than `retention_hours` are removed by `prune`, which
    `save` runs at most once per `prune_interval_seconds`.
    """

    URL_PREFIX = "/chat/audio"

    def __init__(
        self,
        directory: str | None = None,
        retention_hours: float | None = None,
        prune_interval_seconds: float = 3600,
    ):
        self.directory = Path(directory or settings.AUDIO_DIR)
        self.retention_seconds = (
            retention_hours if retention_hours is not None else settings.AUDIO_RETENTION_HOURS
        ) * 3600
        self.prune_interval_seconds = prune_interval_seconds
        self._last_prune = 0.0
        self._logger = get_logger("AudioStore")

    @staticmethod
    def mime_type_for(name: str) -> str:
        return MIME_TYPES.get(Path(name).suffix.lower(), DEFAULT_MIME_TYPE)

    def save(self, data: bytes, mime_type: str = DEFAULT_MIME_TYPE) -> AudioRef:
        self.directory.mkdir(parents=True, exist_ok=True)
        if time.monotonic() - self._last_prune >= self.prune_interval_seconds:
            self.prune()

        # "audio/mpeg; charset=..." -> "audio/mpeg"
        mime_type = (mime_type or DEFAULT_MIME_TYPE).split(";")[0].strip().lower()
        extension = AUDIO_EXTENSIONS.get(mime_type, ".mp3")
        name = f"{uuid.uuid4().hex}{extension}"
        path = self.directory / name
        path.write_bytes(data)
        return AudioRef(name=name, path=str(path), url=f"{self.URL_PREFIX}/{name}", mime_type=self.mime_type_for(name))

    def resolve(self, name: str) -> Path | None:
        """Path of a stored file, or None for unknown / unsafe names."""
        if not name or Path(name).name != name:
            return None
        path = self.directory / name
        return path if path.is_file() else None

    def prune(self) -> int:
        """Delete files past the retention window; returns how many were removed."""
        self._last_prune = time.monotonic()
        if not self.directory.is_dir():
            return 0

        cutoff = time.time() - self.retention_seconds
        removed = 0
        for path in self.directory.iterdir():
            try:
                if path.is_file() and path.stat().st_mtime < cutoff:
                    path.unlink()
                    removed += 1
            except OSError as e:
                self._logger.warning(f"Could not prune audio file {path.name}: {e}")
        if removed:
            self._logger.info(f"Pruned {removed} expired audio file(s)")
        return removed
