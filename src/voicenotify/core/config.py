"""
VoiceNotify Configuration — single source of truth for all settings.

Reads from environment variables with sensible defaults.
No config files, no YAML, no complexity. Just env vars.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


class NotificationMode(str, Enum):
    """How a notification is delivered."""

    SOUND_FIRST = "sound-first"  # Sound now, speech only via reminders
    TTS_FIRST = "tts-first"  # Speech now, no sound
    BOTH = "both"  # Sound and speech now
    SOUND_ONLY = "sound-only"  # Sound only, never speak

    @classmethod
    def parse(cls, value: str) -> NotificationMode:
        try:
            return cls(value.strip().lower())
        except ValueError:
            logger.warning("Unknown notification mode %r, using sound-first", value)
            return cls.SOUND_FIRST

    @property
    def plays_sound(self) -> bool:
        return self is not NotificationMode.TTS_FIRST

    @property
    def speaks_immediately(self) -> bool:
        return self in (NotificationMode.TTS_FIRST, NotificationMode.BOTH)

    @property
    def speaks(self) -> bool:
        return self is not NotificationMode.SOUND_ONLY


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _default_config_dir() -> str:
    return os.getenv(
        "OPENCODE_CONFIG_DIR",
        os.path.join(os.path.expanduser("~"), ".config", "opencode"),
    )


@dataclass(frozen=True)
class NotifyConfig:
    """Delivery settings: mode, sounds, toasts, display and volume."""

    mode: NotificationMode = NotificationMode.SOUND_FIRST
    enable_sound: bool = True
    enable_toast: bool = True
    assets_dir: str = field(default_factory=_default_config_dir)
    idle_sound: str = "assets/Soft-high-tech-notification-sound-effect.mp3"
    permission_sound: str = "assets/Machine-alert-beep-sound-effect.mp3"
    question_sound: str = "assets/Machine-alert-beep-sound-effect.mp3"
    wake_monitor: bool = True
    idle_threshold_seconds: int = 60  # wake only after this much input idle
    force_volume: bool = True
    volume_threshold: int = 50  # 0-100, raise volume when below this

    @classmethod
    def from_env(cls) -> NotifyConfig:
        return cls(
            mode=NotificationMode.parse(
                os.getenv("VOICENOTIFY_MODE", "sound-first")
            ),
            enable_sound=_env_bool("VOICENOTIFY_ENABLE_SOUND", True),
            enable_toast=_env_bool("VOICENOTIFY_ENABLE_TOAST", True),
            assets_dir=os.getenv("VOICENOTIFY_ASSETS_DIR", _default_config_dir()),
            idle_sound=os.getenv(
                "VOICENOTIFY_IDLE_SOUND",
                "assets/Soft-high-tech-notification-sound-effect.mp3",
            ),
            permission_sound=os.getenv(
                "VOICENOTIFY_PERMISSION_SOUND",
                "assets/Machine-alert-beep-sound-effect.mp3",
            ),
            question_sound=os.getenv(
                "VOICENOTIFY_QUESTION_SOUND",
                "assets/Machine-alert-beep-sound-effect.mp3",
            ),
            wake_monitor=_env_bool("VOICENOTIFY_WAKE_MONITOR", True),
            idle_threshold_seconds=int(
                os.getenv("VOICENOTIFY_IDLE_THRESHOLD_SECONDS", "60")
            ),
            force_volume=_env_bool("VOICENOTIFY_FORCE_VOLUME", True),
            volume_threshold=int(os.getenv("VOICENOTIFY_VOLUME_THRESHOLD", "50")),
        )

    def sound_for(self, kind: str) -> str | None:
        return {
            "idle": self.idle_sound,
            "permission": self.permission_sound,
            "question": self.question_sound,
        }.get(kind)


@dataclass(frozen=True)
class ReminderConfig:
    """Delayed reminder and follow-up settings (delays in seconds)."""

    enabled: bool = True
    default_delay: float = 30.0
    idle_delay: float = 30.0
    permission_delay: float = 20.0
    question_delay: float = 25.0
    follow_ups_enabled: bool = True
    max_follow_ups: int = 3
    backoff_multiplier: float = 1.5  # 30s, 45s, 67.5s...

    @classmethod
    def from_env(cls) -> ReminderConfig:
        default_delay = float(os.getenv("VOICENOTIFY_REMINDER_DELAY", "30"))
        return cls(
            enabled=_env_bool("VOICENOTIFY_ENABLE_REMINDERS", True),
            default_delay=default_delay,
            idle_delay=float(
                os.getenv("VOICENOTIFY_IDLE_REMINDER_DELAY", str(default_delay))
            ),
            permission_delay=float(
                os.getenv("VOICENOTIFY_PERMISSION_REMINDER_DELAY", "20")
            ),
            question_delay=float(
                os.getenv("VOICENOTIFY_QUESTION_REMINDER_DELAY", "25")
            ),
            follow_ups_enabled=_env_bool("VOICENOTIFY_ENABLE_FOLLOW_UPS", True),
            max_follow_ups=int(os.getenv("VOICENOTIFY_MAX_FOLLOW_UPS", "3")),
            backoff_multiplier=float(
                os.getenv("VOICENOTIFY_BACKOFF_MULTIPLIER", "1.5")
            ),
        )

    def delay_for(self, kind: str) -> float:
        delay = {
            "idle": self.idle_delay,
            "permission": self.permission_delay,
            "question": self.question_delay,
        }.get(kind)
        return self.default_delay if delay is None else delay


@dataclass(frozen=True)
class BatchConfig:
    """Debounce windows for batchable request kinds."""

    permission_window_ms: int = 800
    question_window_ms: int = 800

    @classmethod
    def from_env(cls) -> BatchConfig:
        return cls(
            permission_window_ms=int(
                os.getenv("VOICENOTIFY_PERMISSION_BATCH_WINDOW_MS", "800")
            ),
            question_window_ms=int(
                os.getenv("VOICENOTIFY_QUESTION_BATCH_WINDOW_MS", "800")
            ),
        )

    def window_for(self, kind: str) -> float:
        """Window length in seconds."""
        ms = (
            self.question_window_ms
            if kind == "question"
            else self.permission_window_ms
        )
        return ms / 1000.0


@dataclass(frozen=True)
class TTSConfig:
    """Text-to-speech engine settings."""

    engine: str = "edge"
    enabled: bool = True
    timeout: float = 15.0
    # ElevenLabs
    elevenlabs_api_key: str = ""
    elevenlabs_voice_id: str = "cgSgspJ2msm6clMCkdW9"  # Jessica
    elevenlabs_model: str = "eleven_turbo_v2_5"
    elevenlabs_stability: float = 0.5
    elevenlabs_similarity: float = 0.75
    elevenlabs_style: float = 0.5
    # Edge TTS (edge-tts package)
    edge_voice: str = "en-US-JennyNeural"
    edge_pitch: str = "+0Hz"
    edge_rate: str = "+10%"
    # OpenAI
    openai_api_key: str = ""
    openai_model: str = "tts-1"
    openai_voice: str = "nova"
    # System speech (say / SAPI / espeak)
    system_voice: str = ""
    system_rate: int = -1  # SAPI scale: -10..10

    @classmethod
    def from_env(cls) -> TTSConfig:
        return cls(
            engine=os.getenv("VOICENOTIFY_TTS_ENGINE", "edge").lower(),
            enabled=_env_bool("VOICENOTIFY_ENABLE_TTS", True),
            timeout=float(os.getenv("VOICENOTIFY_TTS_TIMEOUT", "15.0")),
            elevenlabs_api_key=os.getenv("ELEVENLABS_API_KEY", ""),
            elevenlabs_voice_id=os.getenv(
                "VOICENOTIFY_ELEVENLABS_VOICE_ID", "cgSgspJ2msm6clMCkdW9"
            ),
            elevenlabs_model=os.getenv(
                "VOICENOTIFY_ELEVENLABS_MODEL", "eleven_turbo_v2_5"
            ),
            elevenlabs_stability=float(
                os.getenv("VOICENOTIFY_ELEVENLABS_STABILITY", "0.5")
            ),
            elevenlabs_similarity=float(
                os.getenv("VOICENOTIFY_ELEVENLABS_SIMILARITY", "0.75")
            ),
            elevenlabs_style=float(os.getenv("VOICENOTIFY_ELEVENLABS_STYLE", "0.5")),
            edge_voice=os.getenv("VOICENOTIFY_EDGE_VOICE", "en-US-JennyNeural"),
            edge_pitch=os.getenv("VOICENOTIFY_EDGE_PITCH", "+0Hz"),
            edge_rate=os.getenv("VOICENOTIFY_EDGE_RATE", "+10%"),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_model=os.getenv("VOICENOTIFY_OPENAI_TTS_MODEL", "tts-1"),
            openai_voice=os.getenv("VOICENOTIFY_OPENAI_TTS_VOICE", "nova"),
            system_voice=os.getenv("VOICENOTIFY_SYSTEM_VOICE", ""),
            system_rate=int(os.getenv("VOICENOTIFY_SYSTEM_RATE", "-1")),
        )


@dataclass(frozen=True)
class AIConfig:
    """OpenAI-compatible endpoint for generated message text."""

    enabled: bool = False
    endpoint: str = "http://localhost:11434/v1"
    model: str = "llama3"
    api_key: str = ""
    timeout: float = 15.0
    fallback_to_static: bool = True

    @classmethod
    def from_env(cls) -> AIConfig:
        return cls(
            enabled=_env_bool("VOICENOTIFY_ENABLE_AI_MESSAGES", False),
            endpoint=os.getenv("VOICENOTIFY_AI_ENDPOINT", "http://localhost:11434/v1"),
            model=os.getenv("VOICENOTIFY_AI_MODEL", "llama3"),
            api_key=os.getenv("VOICENOTIFY_AI_API_KEY", ""),
            timeout=float(os.getenv("VOICENOTIFY_AI_TIMEOUT", "15.0")),
            fallback_to_static=_env_bool("VOICENOTIFY_AI_FALLBACK_TO_STATIC", True),
        )


@dataclass(frozen=True)
class ServerConfig:
    """Event receiver settings."""

    host: str = "127.0.0.1"
    port: int = 8765
    host_url: str = "http://127.0.0.1:4096"  # Agent host API (sessions, toasts)
    host_timeout: float = 5.0

    @classmethod
    def from_env(cls) -> ServerConfig:
        return cls(
            host=os.getenv("VOICENOTIFY_HOST", "127.0.0.1"),
            port=int(os.getenv("VOICENOTIFY_PORT", "8765")),
            host_url=os.getenv("VOICENOTIFY_AGENT_HOST_URL", "http://127.0.0.1:4096"),
            host_timeout=float(os.getenv("VOICENOTIFY_AGENT_HOST_TIMEOUT", "5.0")),
        )


@dataclass(frozen=True)
class VoiceNotifyConfig:
    """Root configuration holding every section."""

    notify: NotifyConfig = field(default_factory=NotifyConfig)
    reminders: ReminderConfig = field(default_factory=ReminderConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    tts: TTSConfig = field(default_factory=TTSConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def from_env(cls) -> VoiceNotifyConfig:
        return cls(
            notify=NotifyConfig.from_env(),
            reminders=ReminderConfig.from_env(),
            batch=BatchConfig.from_env(),
            tts=TTSConfig.from_env(),
            ai=AIConfig.from_env(),
            server=ServerConfig.from_env(),
        )


# Singleton: import this wherever you need config
config = VoiceNotifyConfig.from_env()


def reload_config() -> VoiceNotifyConfig:
    """Re-read the environment and replace the module singleton."""
    global config
    config = VoiceNotifyConfig.from_env()
    return config
