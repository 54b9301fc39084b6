"""
Shared fixtures for voicenotify tests.

Provides a recording fake sink and message provider, plus a config factory
with millisecond-scale windows and delays so timing tests run fast.
"""

from __future__ import annotations

import asyncio

import pytest

from voicenotify.core.config import (
    BatchConfig,
    NotificationMode,
    NotifyConfig,
    ReminderConfig,
    VoiceNotifyConfig,
)
from voicenotify.core.metrics import metrics
from voicenotify.services.messages import MessageProvider
from voicenotify.services.sink import NotificationSink


# ── Fakes ──────────────────────────────────────────────────


class FakeSink(NotificationSink):
    """Records every rendering call. Delays simulate slow playback."""

    def __init__(
        self,
        sound_delay: float = 0.0,
        speak_delay: float = 0.0,
        wake_delay: float = 0.0,
    ):
        self.calls: list[tuple] = []
        self.sound_delay = sound_delay
        self.speak_delay = speak_delay
        self.wake_delay = wake_delay
        self.speak_error: Exception | None = None

    def of(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]

    async def play_sound(self, ref: str, loops: int = 1) -> bool:
        self.calls.append(("sound", ref, loops))
        await asyncio.sleep(self.sound_delay)
        return True

    async def speak(self, text: str, fallback_sound: str | None = None) -> bool:
        self.calls.append(("speak", text, fallback_sound))
        if self.speak_error is not None:
            raise self.speak_error
        await asyncio.sleep(self.speak_delay)
        return True

    async def show_toast(
        self, text: str, variant: str = "info", duration_ms: int = 5000
    ) -> None:
        self.calls.append(("toast", text, variant, duration_ms))

    async def wake_display(self) -> None:
        self.calls.append(("wake",))
        await asyncio.sleep(self.wake_delay)

    async def force_volume_up(self) -> None:
        self.calls.append(("volume",))


class FakeMessages(MessageProvider):
    """Deterministic text: "<kind> [reminder] x<count>"."""

    def __init__(self, delay: float = 0.0):
        self.calls: list[tuple[str, bool, int]] = []
        self.delay = delay

    async def get_message(
        self, kind: str, is_reminder: bool, item_count: int = 1
    ) -> str:
        self.calls.append((kind, is_reminder, item_count))
        await asyncio.sleep(self.delay)
        suffix = " reminder" if is_reminder else ""
        return f"{kind}{suffix} x{item_count}"


def _make_config(
    mode: str = "sound-first",
    delay: float = 0.05,
    window_ms: int = 20,
    reminders: bool = True,
    follow_ups: bool = False,
    max_follow_ups: int = 3,
    multiplier: float = 1.5,
) -> VoiceNotifyConfig:
    return VoiceNotifyConfig(
        notify=NotifyConfig(mode=NotificationMode(mode), assets_dir="/tmp"),
        reminders=ReminderConfig(
            enabled=reminders,
            default_delay=delay,
            idle_delay=delay,
            permission_delay=delay,
            question_delay=delay,
            follow_ups_enabled=follow_ups,
            max_follow_ups=max_follow_ups,
            backoff_multiplier=multiplier,
        ),
        batch=BatchConfig(permission_window_ms=window_ms, question_window_ms=window_ms),
    )


# ── Fixtures ───────────────────────────────────────────────


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def sink():
    return FakeSink()


@pytest.fixture
def messages():
    return FakeMessages()


@pytest.fixture
def make_sink():
    return FakeSink


@pytest.fixture
def make_messages():
    return FakeMessages


@pytest.fixture
def make_config():
    return _make_config
