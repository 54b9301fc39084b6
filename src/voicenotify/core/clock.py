"""
Activity Clock — when the human last acted, when the agent last went idle.

Monotonic timestamps drive every race check (reminder validity, "did the
user act during playback"). The idle moment is also kept in wall-clock
seconds because host messages carry wall-clock creation times.
"""

from __future__ import annotations

import time
from typing import Callable


class ActivityClock:
    """Process-wide activity timestamps.

    ``monotonic`` and ``wall`` are injectable so tests can drive time.
    """

    def __init__(
        self,
        monotonic: Callable[[], float] = time.monotonic,
        wall: Callable[[], float] = time.time,
    ) -> None:
        self._monotonic = monotonic
        self._wall = wall
        self.last_user_activity: float = monotonic()
        self.last_idle: float = 0.0  # 0 = no idle yet
        self.last_idle_wall: float = 0.0

    def now(self) -> float:
        return self._monotonic()

    def wall_now(self) -> float:
        return self._wall()

    def mark_activity(self) -> float:
        self.last_user_activity = self._monotonic()
        return self.last_user_activity

    def mark_idle(self) -> float:
        self.last_idle = self._monotonic()
        self.last_idle_wall = self._wall()
        return self.last_idle

    @property
    def has_gone_idle(self) -> bool:
        return self.last_idle_wall > 0

    def active_since(self, timestamp: float) -> bool:
        """True if the user acted strictly after ``timestamp``."""
        return self.last_user_activity > timestamp

    def reset(self) -> None:
        self.last_user_activity = self._monotonic()
        self.last_idle = 0.0
        self.last_idle_wall = 0.0
