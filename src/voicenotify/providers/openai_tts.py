"""
OpenAI TTS Provider — text-to-speech via the OpenAI audio API.

Requests MP3 so the result can be played by any system player.
"""

from __future__ import annotations

import logging

from openai import AsyncOpenAI

import voicenotify.core.config as config_module
from voicenotify.core.config import TTSConfig
from voicenotify.providers.base import SpeechError, TTSProvider, tracked

logger = logging.getLogger(__name__)


class OpenAITTSProvider(TTSProvider):
    name = "openai"
    audio_suffix = ".mp3"

    def __init__(self, cfg: TTSConfig | None = None):
        self._cfg = cfg or config_module.config.tts
        self.client: AsyncOpenAI | None = None

    async def start(self) -> None:
        if self.client:
            return  # Already started
        if not self._cfg.openai_api_key:
            raise ValueError("OPENAI_API_KEY not set")
        self.client = AsyncOpenAI(
            api_key=self._cfg.openai_api_key, timeout=self._cfg.timeout
        )
        logger.info("OpenAI TTS ready (voice=%s)", self._cfg.openai_voice)

    async def stop(self) -> None:
        if self.client:
            await self.client.close()
        self.client = None

    async def synthesize(self, text: str) -> bytes:
        if not self.client:
            raise RuntimeError("OpenAI TTS not started")

        async with tracked(self.name):
            response = await self.client.audio.speech.create(
                model=self._cfg.openai_model,
                voice=self._cfg.openai_voice,
                input=text,
                response_format="mp3",
            )
            if not response.content:
                raise SpeechError("empty audio response")
            return response.content

    async def health_check(self) -> dict:
        return {
            "provider": self.name,
            "model": self._cfg.openai_model,
            "voice": self._cfg.openai_voice,
            "status": "ready" if self.client else "not_started",
        }
