"""Feedback sound handles with an explicit load/unload lifecycle."""
import logging
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from vocaman.config import settings

logger = logging.getLogger(__name__)


class SoundCue(Enum):
    """Feedback sounds played during a round."""
    WRONG = "wrong"
    CORRECT = "correct"
    SUCCESS = "success"
    FAIL = "fail"


DEFAULT_SOUND_FILES: Dict[SoundCue, str] = {
    SoundCue.WRONG: "wrong.m4a",
    SoundCue.CORRECT: "correct.m4a",
    SoundCue.SUCCESS: "complete_success.m4a",
    SoundCue.FAIL: "complete_fail.m4a",
}


class SoundBackend(ABC):
    """Audio device the sound bank loads handles from."""

    @abstractmethod
    async def load(self, path: Path) -> Any:
        """Load a sound file and return a handle."""

    @abstractmethod
    def play(self, handle: Any) -> None:
        """Start playing a loaded handle without waiting for it to finish."""

    @abstractmethod
    async def unload(self, handle: Any) -> None:
        """Release a handle."""


class SilentBackend(SoundBackend):
    """Backend for hosts without audio: cues are only logged."""

    async def load(self, path: Path) -> Any:
        return path

    def play(self, handle: Any) -> None:
        logger.debug("Playing sound %s", handle)

    async def unload(self, handle: Any) -> None:
        return None


class SoundBank:
    """Owns the feedback sound handles of a game session.

    Use ``async with SoundBank(...)`` or call load() and unload() around
    the session. Errors from the backend are logged and never reach the
    game.
    """

    def __init__(
        self,
        backend: Optional[SoundBackend] = None,
        sounds_dir: Optional[Path] = None,
        files: Optional[Mapping[SoundCue, str]] = None,
    ):
        self.backend = backend or SilentBackend()
        self.sounds_dir = Path(sounds_dir) if sounds_dir is not None else settings.paths.sounds_dir
        self.files = dict(files or DEFAULT_SOUND_FILES)
        self.handles: Dict[SoundCue, Any] = {}

    @property
    def loaded(self) -> bool:
        return bool(self.handles)

    async def load(self) -> None:
        """Load every cue. Cues that fail to load stay silent."""
        for cue, filename in self.files.items():
            if cue in self.handles:
                continue
            try:
                self.handles[cue] = await self.backend.load(self.sounds_dir / filename)
            except Exception as e:
                logger.error("Error loading %s sound: %s", cue.value, e)
        logger.info("Sounds loaded: %d of %d", len(self.handles), len(self.files))

    async def unload(self) -> None:
        """Release every loaded handle."""
        for cue, handle in list(self.handles.items()):
            try:
                await self.backend.unload(handle)
            except Exception as e:
                logger.error("Error unloading %s sound: %s", cue.value, e)
        self.handles.clear()
        logger.info("Sounds unloaded")

    def play(self, cue: SoundCue) -> None:
        """Play a cue if it is loaded."""
        handle = self.handles.get(cue)
        if handle is None:
            logger.debug("Sound %s is not loaded", cue.value)
            return
        try:
            self.backend.play(handle)
        except Exception as e:
            logger.error("Error playing %s sound: %s", cue.value, e)

    async def __aenter__(self) -> "SoundBank":
        await self.load()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.unload()
