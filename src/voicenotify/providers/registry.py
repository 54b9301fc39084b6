"""
Provider Registry — engine by name, and the fallback cascade behind it.

Add a new engine? Add an elif and a cascade entry. No plugin systems.
"""

from __future__ import annotations

import voicenotify.core.config as config_module
from voicenotify.core.config import TTSConfig
from voicenotify.providers.base import TTSProvider

# Preferred engine → engines tried in order
TTS_CASCADES: dict[str, tuple[str, ...]] = {
    "elevenlabs": ("elevenlabs", "edge", "system"),
    "openai": ("openai", "edge", "system"),
    "edge": ("edge", "system"),
    "system": ("system",),
}


def get_tts_provider(name: str, cfg: TTSConfig | None = None) -> TTSProvider:
    cfg = cfg or config_module.config.tts
    name = name.lower()
    if name == "elevenlabs":
        from voicenotify.providers.elevenlabs_tts import ElevenLabsTTSProvider

        return ElevenLabsTTSProvider(cfg)
    elif name == "openai":
        from voicenotify.providers.openai_tts import OpenAITTSProvider

        return OpenAITTSProvider(cfg)
    elif name == "edge":
        from voicenotify.providers.edge_tts import EdgeTTSProvider

        return EdgeTTSProvider(cfg)
    elif name == "system":
        from voicenotify.providers.system_tts import SystemTTSProvider

        return SystemTTSProvider(cfg)
    raise ValueError(f"Unknown TTS engine: {name}")


def get_tts_chain(engine: str | None = None, cfg: TTSConfig | None = None) -> list[TTSProvider]:
    """Engines to try, best first, for the configured preference."""
    cfg = cfg or config_module.config.tts
    engine = (engine or cfg.engine).lower()
    if engine not in TTS_CASCADES:
        raise ValueError(f"Unknown TTS engine: {engine}")
    return [get_tts_provider(name, cfg) for name in TTS_CASCADES[engine]]
