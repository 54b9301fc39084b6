"""
VoiceNotify Providers — speech engines behind one interface.

Each engine turns text into audio bytes. The registry builds the fallback
cascade for the configured engine. Swap engines by changing config.
"""

from voicenotify.providers.base import SpeechError, TTSProvider
from voicenotify.providers.registry import TTS_CASCADES, get_tts_chain, get_tts_provider

__all__ = [
    "SpeechError",
    "TTSProvider",
    "TTS_CASCADES",
    "get_tts_chain",
    "get_tts_provider",
]
