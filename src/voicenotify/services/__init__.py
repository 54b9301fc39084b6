"""
VoiceNotify Services — the outside world the engine talks to.

Message text, audio playback, the agent host API, and the sink that ties
speech engines, sounds and toasts together.
"""

from voicenotify.services.audio import AudioPlayer
from voicenotify.services.host import HostClient
from voicenotify.services.messages import MessageProvider, MessageService
from voicenotify.services.sink import NotificationSink, SystemNotificationSink

__all__ = [
    "AudioPlayer",
    "HostClient",
    "MessageProvider",
    "MessageService",
    "NotificationSink",
    "SystemNotificationSink",
]
