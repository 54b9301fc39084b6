"""
VoiceNotify Engine — batching, reminders and the orchestrator that drives them.

Pure asyncio. Talks to the outside world only through a NotificationSink and
a MessageProvider, so tests can swap both for fakes.
"""

from voicenotify.engine.batching import BatchEntry, BatchWindow
from voicenotify.engine.lifecycle import SessionLifecycle
from voicenotify.engine.orchestrator import NotificationOrchestrator
from voicenotify.engine.reminders import PendingReminder, ReminderRegistry

__all__ = [
    "BatchEntry",
    "BatchWindow",
    "NotificationOrchestrator",
    "PendingReminder",
    "ReminderRegistry",
    "SessionLifecycle",
]
