"""
ElevenLabs TTS Provider — online, high-quality voices.

POST /v1/text-to-speech/{voice_id}?output_format=mp3_44100_128 returns MP3
bytes. Non-200 answers become a SpeechError naming the cause, so a bad key or
an exhausted quota shows up as one readable warning before the sink falls back
to the next engine.
"""

from __future__ import annotations

import logging

import httpx

import voicenotify.core.config as config_module
from voicenotify.core.config import TTSConfig
from voicenotify.providers.base import SpeechError, TTSProvider, tracked

logger = logging.getLogger(__name__)

ELEVENLABS_TTS_URL = "https://api.elevenlabs.io/v1/text-to-speech"
OUTPUT_FORMAT = "mp3_44100_128"
CONNECT_TIMEOUT = 5.0

_STATUS_REASONS = {
    401: "invalid API key",
    402: "payment required",
    404: "unknown voice id",
    422: "request rejected",
    429: "quota or rate limit exceeded",
}


class ElevenLabsTTSProvider(TTSProvider):
    name = "elevenlabs"
    audio_suffix = ".mp3"

    def __init__(self, cfg: TTSConfig | None = None):
        self._cfg = cfg or config_module.config.tts
        self.client: httpx.AsyncClient | None = None

    async def start(self) -> None:
        if self.client:
            return
        if not self._cfg.elevenlabs_api_key:
            raise ValueError("ELEVENLABS_API_KEY not set")
        self.client = httpx.AsyncClient(
            base_url=ELEVENLABS_TTS_URL,
            timeout=httpx.Timeout(self._cfg.timeout, connect=CONNECT_TIMEOUT),
            headers={"xi-api-key": self._cfg.elevenlabs_api_key, "Accept": "audio/mpeg"},
        )
        logger.info("ElevenLabs TTS ready (voice=%s)", self._cfg.elevenlabs_voice_id)

    async def stop(self) -> None:
        if self.client:
            await self.client.aclose()
        self.client = None

    def _payload(self, text: str) -> dict:
        return {
            "text": text,
            "model_id": self._cfg.elevenlabs_model,
            "voice_settings": {
                "stability": self._cfg.elevenlabs_stability,
                "similarity_boost": self._cfg.elevenlabs_similarity,
                "style": self._cfg.elevenlabs_style,
                "use_speaker_boost": True,
            },
        }

    async def synthesize(self, text: str) -> bytes:
        if not self.client:
            raise RuntimeError("ElevenLabs TTS not started")

        async with tracked(self.name):
            try:
                response = await self.client.post(
                    f"/{self._cfg.elevenlabs_voice_id}",
                    params={"output_format": OUTPUT_FORMAT},
                    json=self._payload(text),
                )
            except httpx.TimeoutException as e:
                raise SpeechError(f"timed out after {self._cfg.timeout}s") from e
            except httpx.HTTPError as e:
                raise SpeechError(f"request failed: {e}") from e

            if response.status_code != 200:
                reason = _STATUS_REASONS.get(response.status_code) or response.text[:120]
                raise SpeechError(f"HTTP {response.status_code}: {reason}")
            if not response.content:
                raise SpeechError("empty audio response")
            return response.content

    async def health_check(self) -> dict:
        return {
            "provider": self.name,
            "voice_id": self._cfg.elevenlabs_voice_id,
            "has_key": bool(self._cfg.elevenlabs_api_key),
            "status": "ready" if self.client else "not_started",
        }
