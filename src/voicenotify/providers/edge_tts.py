"""
Edge TTS Provider — free Microsoft neural voices via the ``edge-tts`` package.

No API key. Needs network access; offline machines fall through to the
system voice.
"""

from __future__ import annotations

import asyncio
import logging

import edge_tts

import voicenotify.core.config as config_module
from voicenotify.core.config import TTSConfig
from voicenotify.providers.base import SpeechError, TTSProvider, tracked

logger = logging.getLogger(__name__)


class EdgeTTSProvider(TTSProvider):
    name = "edge"
    audio_suffix = ".mp3"

    def __init__(self, cfg: TTSConfig | None = None):
        self._cfg = cfg or config_module.config.tts
        self._ready = False

    async def start(self) -> None:
        self._ready = True
        logger.info(
            "Edge TTS ready (voice=%s, rate=%s)", self._cfg.edge_voice, self._cfg.edge_rate
        )

    async def stop(self) -> None:
        self._ready = False

    async def synthesize(self, text: str) -> bytes:
        if not self._ready:
            raise RuntimeError("Edge TTS not started")

        async with tracked(self.name):
            communicate = edge_tts.Communicate(
                text,
                self._cfg.edge_voice,
                rate=self._cfg.edge_rate,
                pitch=self._cfg.edge_pitch,
            )
            try:
                audio = await asyncio.wait_for(
                    self._collect(communicate), timeout=self._cfg.timeout
                )
            except asyncio.TimeoutError as e:
                raise SpeechError(f"no audio within {self._cfg.timeout}s") from e
            if not audio:
                raise SpeechError("empty audio stream")
            return audio

    @staticmethod
    async def _collect(communicate: edge_tts.Communicate) -> bytes:
        chunks: list[bytes] = []
        async for chunk in communicate.stream():
            if chunk["type"] == "audio":
                chunks.append(chunk["data"])
        return b"".join(chunks)

    async def health_check(self) -> dict:
        return {
            "provider": self.name,
            "voice": self._cfg.edge_voice,
            "status": "ready" if self._ready else "not_started",
        }
