"""
Provider base class — the speech engine boundary.

Every engine turns text into an audio file's bytes. Playback is not the
engine's job; the sink writes the bytes to a temp file and plays it.

Engines raise on failure and the sink moves on to the next engine in the
cascade, logging ``str(error)``. SpeechError carries a short reason for that
log line (bad key, quota, timeout, empty audio).
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator

from voicenotify.core.metrics import metrics


class SpeechError(RuntimeError):
    """An engine could not produce audio for this text."""


@asynccontextmanager
async def tracked(provider: str) -> AsyncIterator[None]:
    """Count one synthesis request, its latency, and whether it failed."""
    started = time.time()
    metrics.inc("provider.tts.requests", labels={"provider": provider})
    try:
        yield
    except Exception:
        metrics.inc("provider.tts.errors", labels={"provider": provider})
        raise
    metrics.observe(
        "provider.tts.latency_ms",
        (time.time() - started) * 1000,
        labels={"provider": provider},
    )


class TTSProvider(ABC):
    """Text-to-speech engine interface."""

    name: str = "tts"
    audio_suffix: str = ".mp3"

    @abstractmethod
    async def start(self) -> None:
        """Prepare the engine. Raise if it cannot work on this machine."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...

    @abstractmethod
    async def synthesize(self, text: str) -> bytes:
        """Convert text to audio bytes in ``audio_suffix`` format."""
        ...

    async def health_check(self) -> dict:
        return {"provider": self.name, "status": "unknown"}
