"""
Reminder Registry — per-kind cancellable delayed reminders with backoff.

Each kind (idle, permission, question, or a custom one) holds at most one
live PendingReminder. Arming a kind replaces whatever was there.

Firing is guarded three ways:
  1. the entry must still be the live one for its kind (not cancelled/replaced)
  2. the user must not have acted since the entry was scheduled
  3. both checks are repeated after every await; rendering speech
     can take seconds and the human may answer meanwhile

Cancellation is cooperative: an entry whose timer is still sleeping has its
task cancelled; an entry already rendering is only removed from the registry,
and its post-render check stands down (no follow-up).

Follow-ups: after a reminder renders, the next one is chained with
delay = base_delay * backoff_multiplier ** follow_up_count, until
follow_up_count reaches max_follow_ups.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from voicenotify.core.config import ReminderConfig
from voicenotify.core.metrics import metrics

if TYPE_CHECKING:
    from voicenotify.core.clock import ActivityClock
    from voicenotify.services.messages import MessageProvider
    from voicenotify.services.sink import NotificationSink

logger = logging.getLogger(__name__)


@dataclass
class PendingReminder:
    """A reminder armed for one kind."""

    kind: str
    scheduled_at: float
    base_delay: float
    delay: float
    follow_up_count: int = 0
    item_count: int = 1
    message: str | None = None  # used for the first firing only
    fallback_sound: str | None = None
    fired: bool = False
    task: asyncio.Task[None] | None = field(default=None, repr=False)


class ReminderRegistry:
    """Owns every pending reminder. One entry per kind."""

    def __init__(
        self,
        clock: "ActivityClock",
        sink: "NotificationSink",
        messages: "MessageProvider",
        config: ReminderConfig | None = None,
    ) -> None:
        self._clock = clock
        self._sink = sink
        self._messages = messages
        self._config = config or ReminderConfig()
        self._entries: dict[str, PendingReminder] = {}

    # ─── Queries ─────────────────────────────────────────────────

    def __contains__(self, kind: object) -> bool:
        return kind in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, kind: str) -> PendingReminder | None:
        return self._entries.get(kind)

    @property
    def pending_kinds(self) -> list[str]:
        return list(self._entries)

    # ─── Arm / cancel ────────────────────────────────────────────

    def arm(
        self,
        kind: str,
        message: str | None,
        delay_seconds: float,
        item_count: int = 1,
        fallback_sound: str | None = None,
    ) -> PendingReminder:
        """Schedule a reminder for ``kind``, replacing any existing one."""
        self.cancel(kind)
        entry = PendingReminder(
            kind=kind,
            scheduled_at=self._clock.now(),
            base_delay=delay_seconds,
            delay=delay_seconds,
            item_count=item_count,
            message=message,
            fallback_sound=fallback_sound,
        )
        self._install(entry)
        metrics.inc("reminder.armed", labels={"kind": kind})
        logger.info(
            "Reminder armed: %s in %.1fs (items=%d)",
            kind,
            delay_seconds,
            item_count,
            extra={"kind": kind, "count": item_count},
        )
        return entry

    def cancel(self, kind: str) -> bool:
        """Remove the reminder for ``kind``. No-op if there is none."""
        entry = self._entries.pop(kind, None)
        if entry is None:
            return False
        if entry.task and not entry.fired and not entry.task.done():
            entry.task.cancel()
        metrics.inc("reminder.cancelled", labels={"kind": kind})
        self._update_gauge()
        logger.debug("Reminder cancelled: %s", kind, extra={"kind": kind})
        return True

    def cancel_all(self) -> int:
        kinds = list(self._entries)
        for kind in kinds:
            self.cancel(kind)
        return len(kinds)

    # ─── Internals ───────────────────────────────────────────────

    def _install(self, entry: PendingReminder) -> None:
        self._entries[entry.kind] = entry
        entry.task = asyncio.create_task(
            self._run(entry),
            name=f"reminder-{entry.kind}-{entry.follow_up_count}",
        )
        self._update_gauge()

    def _is_live(self, entry: PendingReminder) -> bool:
        return self._entries.get(entry.kind) is entry

    def _still_wanted(self, entry: PendingReminder) -> bool:
        """Live and the user has not acted since it was scheduled."""
        if not self._is_live(entry):
            return False
        if self._clock.active_since(entry.scheduled_at):
            self._drop(entry)
            metrics.inc("reminder.skipped", labels={"kind": entry.kind})
            logger.debug(
                "Reminder %s skipped: user active since it was scheduled",
                entry.kind,
                extra={"kind": entry.kind},
            )
            return False
        return True

    def _drop(self, entry: PendingReminder) -> None:
        if self._is_live(entry):
            del self._entries[entry.kind]
            self._update_gauge()

    def _update_gauge(self) -> None:
        metrics.gauge_set("reminder.pending", len(self._entries))

    async def _run(self, entry: PendingReminder) -> None:
        try:
            await asyncio.sleep(entry.delay)
        except asyncio.CancelledError:
            return
        entry.fired = True

        if not self._still_wanted(entry):
            return

        try:
            rendered = await self._render(entry)
        except Exception as e:
            # Fail closed: no follow-up after an error
            logger.error(
                "Reminder %s failed: %s", entry.kind, e, extra={"kind": entry.kind}
            )
            metrics.inc("reminder.errors", labels={"kind": entry.kind})
            self._drop(entry)
            return

        if not rendered or not self._still_wanted(entry):
            logger.debug(
                "Reminder %s stood down after render", entry.kind,
                extra={"kind": entry.kind},
            )
            return

        metrics.inc("reminder.fired", labels={"kind": entry.kind})
        self._drop(entry)
        self._chain_follow_up(entry)

    async def _render(self, entry: PendingReminder) -> bool:
        """Speak the reminder. Returns False if it was called off mid-way."""
        if entry.follow_up_count == 0 and entry.message:
            text = entry.message
        else:
            text = await self._messages.get_message(
                entry.kind, True, entry.item_count
            )
            if not self._still_wanted(entry):
                return False

        await self._sink.wake_display()
        await self._sink.force_volume_up()
        if not self._still_wanted(entry):
            return False

        logger.info(
            "Reminder firing: %s (follow-up %d)",
            entry.kind,
            entry.follow_up_count,
            extra={"kind": entry.kind, "follow_up": entry.follow_up_count},
        )
        await self._sink.speak(text, fallback_sound=entry.fallback_sound)
        return True

    def _chain_follow_up(self, entry: PendingReminder) -> None:
        if not self._config.follow_ups_enabled:
            return
        next_count = entry.follow_up_count + 1
        if next_count >= self._config.max_follow_ups:
            logger.debug(
                "Reminder %s: follow-up limit reached (%d)",
                entry.kind,
                self._config.max_follow_ups,
            )
            return

        delay = entry.base_delay * (self._config.backoff_multiplier**next_count)
        follow_up = PendingReminder(
            kind=entry.kind,
            scheduled_at=self._clock.now(),
            base_delay=entry.base_delay,
            delay=delay,
            follow_up_count=next_count,
            item_count=entry.item_count,
            fallback_sound=entry.fallback_sound,
        )
        self._install(follow_up)
        logger.info(
            "Follow-up %d/%d for %s in %.1fs",
            next_count + 1,
            self._config.max_follow_ups,
            entry.kind,
            delay,
            extra={"kind": entry.kind, "follow_up": next_count},
        )
