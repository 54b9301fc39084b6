"""
Notification Orchestrator — turns host events into sounds, speech and reminders.

Event flow:
    user message        → counts as activity if new and created after idle
    permission/question → BatchWindow → one count-aware notification per burst
    replied/rejected    → drop from batch, clear marker, cancel reminder
    session idle        → "finished" sound, reminder, optional speech
    session created     → reset everything

Every handler runs on the one event loop and may suspend for seconds
(playback, speech synthesis, host lookups). After each await it re-checks
the state it depends on. The human may have answered meanwhile, or a new
session may have started, and a stale handler must not arm anything.
"""

from __future__ import annotations

import asyncio
import functools
import itertools
import logging
import time
from typing import Any, Coroutine, Protocol

import voicenotify.core.config as config_module
from voicenotify.core.clock import ActivityClock
from voicenotify.core.config import VoiceNotifyConfig
from voicenotify.core.metrics import metrics
from voicenotify.engine.batching import BatchEntry, BatchWindow
from voicenotify.engine.lifecycle import SessionLifecycle
from voicenotify.engine.reminders import PendingReminder, ReminderRegistry
from voicenotify.events import EventType, NotifyEvent
from voicenotify.services.messages import MessageProvider
from voicenotify.services.sink import NotificationSink

logger = logging.getLogger(__name__)

BATCH_KINDS = ("permission", "question")
SYNTHETIC_PREFIX = "synthetic-"

# Sound loops grow with batch size: +1 per 3 items, capped
BASE_LOOPS = {"permission": 2, "question": 1}
MAX_LOOPS = 3

IDLE_TOAST = ("✅ Agent has finished working", "success", 5000)


def sound_loops(kind: str, count: int) -> int:
    return min(BASE_LOOPS.get(kind, 1) + count // 3, MAX_LOOPS)


def batch_toast(kind: str, count: int) -> tuple[str, str, int]:
    if kind == "question":
        if count > 1:
            return f"❓ The agent has {count} questions for you", "info", 8000
        return "❓ The agent has a question for you", "info", 8000
    if count > 1:
        return f"⚠️ {count} permission requests require your attention", "warning", 8000
    return "⚠️ Permission request requires your attention", "warning", 8000


class SessionLookup(Protocol):
    async def is_sub_session(self, session_id: str | None) -> bool:
        ...


class NotificationOrchestrator:
    """Event classifier and state machine. Owns all notification state."""

    def __init__(
        self,
        sink: NotificationSink,
        messages: MessageProvider,
        cfg: VoiceNotifyConfig | None = None,
        session_lookup: SessionLookup | None = None,
        clock: ActivityClock | None = None,
    ):
        self._cfg = cfg or config_module.config
        self._sink = sink
        self._messages = messages
        self._session_lookup = session_lookup

        self.lifecycle = SessionLifecycle(clock)
        self.reminders = ReminderRegistry(
            self.lifecycle.clock, sink, messages, self._cfg.reminders
        )
        self.batches: dict[str, BatchWindow] = {
            kind: BatchWindow(
                kind,
                self._cfg.batch.window_for(kind),
                functools.partial(self._process_batch, kind),
            )
            for kind in BATCH_KINDS
        }
        # Id of the request being rendered per kind, None when idle
        self.markers: dict[str, str | None] = {kind: None for kind in BATCH_KINDS}

        self._tasks: set[asyncio.Task] = set()
        self._synthetic_ids = itertools.count(1)

    @property
    def clock(self) -> ActivityClock:
        return self.lifecycle.clock

    @property
    def _reminders_wanted(self) -> bool:
        return self._cfg.reminders.enabled and self._cfg.notify.mode.speaks

    # ─── Entry points ────────────────────────────────────────────

    def dispatch(self, event: NotifyEvent) -> asyncio.Task:
        """Handle an event in the background. Tasks start in arrival order."""
        return self._spawn(self.handle_event(event), name=f"event-{event.type.value}")

    async def handle_event(self, event: NotifyEvent) -> None:
        """Process one event. Never raises."""
        try:
            if event.type is EventType.USER_MESSAGE:
                self._on_user_message(event)
            elif event.type.is_request:
                self._on_request(event)
            elif event.type.is_response:
                self._on_response(event)
            elif event.type is EventType.SESSION_IDLE:
                await self._on_session_idle(event)
            elif event.type is EventType.SESSION_CREATED:
                self.reset()
        except Exception as e:
            logger.error(
                "Handling %s failed: %s", event.type.value, e, exc_info=True,
                extra={"session_id": event.session_id, "request_id": event.request_id},
            )

    def reset(self) -> None:
        """Forget everything: reminders, batches, markers, activity."""
        self.lifecycle.reset()
        cancelled = self.reminders.cancel_all()
        for window in self.batches.values():
            window.clear()
        for kind in self.markers:
            self.markers[kind] = None
        logger.info("New session: state reset (%d reminders cancelled)", cancelled)

    def status(self) -> dict:
        return {
            "mode": self._cfg.notify.mode.value,
            "generation": self.lifecycle.generation,
            "pending_reminders": self.reminders.pending_kinds,
            "batches": {kind: len(window) for kind, window in self.batches.items()},
            "markers": dict(self.markers),
            "last_idle": self.clock.last_idle_wall or None,
        }

    async def aclose(self) -> None:
        """Stop all in-flight work. Reminders go last, after nothing can arm one."""
        for window in self.batches.values():
            await window.aclose()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self.reminders.cancel_all()

    # ─── Handlers ────────────────────────────────────────────────

    def _on_user_message(self, event: NotifyEvent) -> None:
        if event.role != "user":
            return
        message_id = event.message_id or self._synthetic_id("message")
        if self.lifecycle.observe_user_message(message_id, event.created_at):
            cancelled = self.reminders.cancel_all()
            logger.info(
                "User activity after idle: %d reminders cancelled",
                cancelled,
                extra={"session_id": event.session_id},
            )

    def _on_request(self, event: NotifyEvent) -> None:
        kind = event.type.kind
        request_id = event.request_id or self._synthetic_id(kind)
        weight = event.question_count if kind == "question" else 1
        self.batches[kind].add(request_id, weight)
        logger.debug(
            "%s request %s queued (batch=%d)",
            kind,
            request_id,
            len(self.batches[kind]),
            extra={"kind": kind, "request_id": request_id},
        )

    def _on_response(self, event: NotifyEvent) -> None:
        kind = event.type.kind
        request_id = event.request_id
        if request_id:
            self.batches[kind].remove(request_id)

        marker = self.markers[kind]
        if marker is not None and (
            request_id is None
            or marker == request_id
            or marker.startswith(SYNTHETIC_PREFIX)
        ):
            self.markers[kind] = None

        self.clock.mark_activity()
        self.reminders.cancel(kind)
        logger.info(
            "%s %s answered",
            kind,
            request_id or "(no id)",
            extra={"kind": kind, "request_id": request_id},
        )

    async def _on_session_idle(self, event: NotifyEvent) -> None:
        generation = self.lifecycle.generation
        if self._session_lookup is not None:
            if await self._session_lookup.is_sub_session(event.session_id):
                logger.debug(
                    "Idle from sub-session %s ignored",
                    event.session_id,
                    extra={"session_id": event.session_id},
                )
                return
            if not self.lifecycle.is_current(generation):
                return

        idle_at = self.clock.mark_idle()
        logger.info(
            "Agent idle", extra={"kind": "idle", "session_id": event.session_id}
        )
        self._toast(*IDLE_TOAST)

        def current() -> bool:
            return (
                self.lifecycle.is_current(generation)
                and self.clock.last_idle == idle_at
                and not self.clock.active_since(idle_at)
            )

        notify = self._cfg.notify
        sound = notify.sound_for("idle")
        if notify.mode.plays_sound and sound:
            await self._sink.play_sound(sound)
        if not current():
            self._aborted("idle", "user active during sound")
            return

        await self._render("idle", 1, sound, current)

    async def _process_batch(self, kind: str, entries: list[BatchEntry]) -> None:
        count = sum(entry.weight for entry in entries)
        if count == 0:
            return

        generation = self.lifecycle.generation
        marker = entries[0].request_id
        self.markers[kind] = marker
        metrics.inc("notify.batch.processed", labels={"kind": kind})
        logger.info(
            "%s batch: %d item(s)",
            kind,
            count,
            extra={"kind": kind, "count": count, "request_id": marker},
        )
        self._toast(*batch_toast(kind, count))

        def current() -> bool:
            return self.lifecycle.is_current(generation) and self.markers[kind] == marker

        notify = self._cfg.notify
        sound = notify.sound_for(kind)
        if notify.mode.plays_sound and sound:
            await self._sink.play_sound(sound, sound_loops(kind, count))
        if not current():
            self._aborted(kind, "answered during sound")
            return

        await self._render(kind, count, sound, current)

    async def _render(self, kind: str, count: int, sound: str | None, current) -> None:
        """Arm the kind's reminder and, by mode, speak right away.

        ``current`` is re-evaluated after every await; once it turns False
        nothing more is rendered and a reminder armed here is withdrawn.
        """
        armed: PendingReminder | None = None
        if self._reminders_wanted:
            text = await self._messages.get_message(kind, True, count)
            if not current():
                self._aborted(kind, "answered during message generation")
                return
            armed = self.reminders.arm(
                kind,
                text,
                self._cfg.reminders.delay_for(kind),
                item_count=count,
                fallback_sound=sound,
            )

        if self._cfg.notify.mode.speaks_immediately:
            text = await self._messages.get_message(kind, False, count)
            if current():
                await self._sink.speak(text, fallback_sound=sound)

        if not current():
            self._withdraw(armed)
            self._aborted(kind, "answered during rendering")

    # ─── Helpers ─────────────────────────────────────────────────

    def _withdraw(self, armed: PendingReminder | None) -> None:
        if armed is not None and self.reminders.get(armed.kind) is armed:
            self.reminders.cancel(armed.kind)

    def _aborted(self, kind: str, reason: str) -> None:
        metrics.inc("notify.batch.aborted", labels={"kind": kind})
        logger.info("%s notification aborted: %s", kind, reason, extra={"kind": kind})

    def _synthetic_id(self, kind: str) -> str:
        n = next(self._synthetic_ids)
        return f"{SYNTHETIC_PREFIX}{kind}-{int(time.time() * 1000)}-{n}"

    def _toast(self, text: str, variant: str, duration_ms: int) -> None:
        self._spawn(self._sink.show_toast(text, variant, duration_ms), name="toast")

    def _spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Background task %s failed: %s", task.get_name(), task.exception())
