"""
Notification Sink — where notifications actually become sound, speech and toasts.

The engine only knows the NotificationSink interface. SystemNotificationSink
is the real one: system audio player, a cascade of speech engines, and toasts
posted to the agent host.
"""

from __future__ import annotations

import logging
import os
import tempfile
import time
from abc import ABC, abstractmethod
from pathlib import Path

import voicenotify.core.config as config_module
from voicenotify.core.config import NotifyConfig, TTSConfig
from voicenotify.core.metrics import metrics
from voicenotify.providers.base import TTSProvider
from voicenotify.services.audio import AudioPlayer
from voicenotify.services.host import HostClient

logger = logging.getLogger(__name__)


class NotificationSink(ABC):
    """Rendering capability consumed by the orchestrator and reminders."""

    @abstractmethod
    async def play_sound(self, ref: str, loops: int = 1) -> bool:
        ...

    @abstractmethod
    async def speak(self, text: str, fallback_sound: str | None = None) -> bool:
        """Speak text. On failure play ``fallback_sound`` and return False."""
        ...

    @abstractmethod
    async def show_toast(
        self, text: str, variant: str = "info", duration_ms: int = 5000
    ) -> None:
        ...

    async def wake_display(self) -> None:
        pass

    async def force_volume_up(self) -> None:
        pass


class SystemNotificationSink(NotificationSink):
    def __init__(
        self,
        player: AudioPlayer,
        engines: list[TTSProvider],
        host: HostClient | None = None,
        notify: NotifyConfig | None = None,
        tts: TTSConfig | None = None,
    ):
        self._player = player
        self._candidates = list(engines)
        self._engines: list[TTSProvider] = []
        self._host = host
        self._notify = notify or config_module.config.notify
        self._tts = tts or config_module.config.tts

    @property
    def engines(self) -> list[TTSProvider]:
        return list(self._engines)

    async def start(self) -> None:
        """Start every engine in the cascade, keeping the ones that work here."""
        self._engines = []
        for engine in self._candidates:
            try:
                await engine.start()
                self._engines.append(engine)
            except Exception as e:
                logger.warning("TTS engine %s unavailable: %s", engine.name, e)
        logger.info(
            "Speech cascade: %s",
            " → ".join(e.name for e in self._engines) or "(none)",
        )

    async def stop(self) -> None:
        for engine in self._engines:
            try:
                await engine.stop()
            except Exception as e:
                logger.debug("Stopping %s failed: %s", engine.name, e)
        self._engines = []

    def resolve(self, ref: str) -> Path:
        path = Path(ref).expanduser()
        if not path.is_absolute():
            path = Path(self._notify.assets_dir).expanduser() / path
        return path

    async def play_sound(self, ref: str, loops: int = 1) -> bool:
        if not self._notify.enable_sound:
            return False
        path = self.resolve(ref)
        if not path.is_file():
            logger.warning("Sound file not found: %s", path)
            return False
        return await self._player.play_file(str(path), loops)

    async def speak(self, text: str, fallback_sound: str | None = None) -> bool:
        if self._tts.enabled:
            for engine in self._engines:
                if await self._speak_with(engine, text):
                    return True
            logger.warning("All speech engines failed for: %s", text[:60])

        if fallback_sound:
            await self.play_sound(fallback_sound)
        return False

    async def _speak_with(self, engine: TTSProvider, text: str) -> bool:
        started = time.time()
        try:
            audio = await engine.synthesize(text)
        except Exception as e:
            metrics.inc("sink.tts.errors", labels={"provider": engine.name})
            logger.warning("%s speech failed: %s", engine.name, e)
            return False

        fd, path = tempfile.mkstemp(prefix="voicenotify-", suffix=engine.audio_suffix)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(audio)
            played = await self._player.play_file(path)
        finally:
            Path(path).unlink(missing_ok=True)

        if played:
            metrics.observe(
                "sink.speak.latency_ms",
                (time.time() - started) * 1000,
                labels={"provider": engine.name},
            )
        return played

    async def show_toast(
        self, text: str, variant: str = "info", duration_ms: int = 5000
    ) -> None:
        if not self._notify.enable_toast or self._host is None:
            return
        await self._host.show_toast(text, variant, duration_ms)

    async def wake_display(self) -> None:
        try:
            await self._player.wake_display()
        except Exception as e:
            logger.debug("Wake display failed: %s", e)

    async def force_volume_up(self) -> None:
        try:
            await self._player.force_volume()
        except Exception as e:
            logger.debug("Volume boost failed: %s", e)

    async def health_check(self) -> dict:
        return {
            "sound": self._notify.enable_sound,
            "tts": self._tts.enabled,
            "engines": [await e.health_check() for e in self._engines],
        }
