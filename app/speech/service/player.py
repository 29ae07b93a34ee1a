import asyncio
import shlex
from abc import ABC, abstractmethod

from app.core.logger import get_logger
from app.speech.service.audio_store import AudioRef


class AudioPlayer(ABC):
    @abstractmethod
    async def play(self, audio: AudioRef) -> None:
        pass


class NullAudioPlayer(AudioPlayer):
    """Server default: clients fetch and play audio themselves."""

    def __init__(self):
        self._logger = get_logger("AudioPlayer")

    async def play(self, audio: AudioRef) -> None:
        self._logger.debug(f"Playback delegated to client for {audio.url}")


class CommandAudioPlayer(AudioPlayer):
    """Plays audio on this host with an external command, e.g. `ffplay -nodisp -autoexit`."""

    def __init__(self, command: str):
        self.command = shlex.split(command)
        self._logger = get_logger("AudioPlayer")

    async def play(self, audio: AudioRef) -> None:
        process = await asyncio.create_subprocess_exec(
            *self.command,
            audio.path,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
        returncode = await process.wait()
        if returncode != 0:
            raise RuntimeError(f"Audio player exited with status {returncode}")
        self._logger.info(f"Played {audio.name}")
