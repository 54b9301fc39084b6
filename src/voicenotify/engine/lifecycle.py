"""
Session Lifecycle — activity state for one agent session.

Owns the ActivityClock and the set of user message ids already seen. The host
fires message.updated for every edit of a message, so only the first sighting
of an id can count as activity, and only if the message was created after
the agent last went idle.

Every reset bumps ``generation``. Handlers capture the generation before an
await and compare afterwards. A mismatch means the session was reset under them
and they must not arm anything.
"""

from __future__ import annotations

import logging

from voicenotify.core.clock import ActivityClock

logger = logging.getLogger(__name__)


class SessionLifecycle:
    def __init__(self, clock: ActivityClock | None = None) -> None:
        self.clock = clock or ActivityClock()
        self.seen_message_ids: set[str] = set()
        self.generation = 0

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    def observe_user_message(self, message_id: str, created_at: float | None) -> bool:
        """Record a user message. True when it is new activity after idle.

        An edit (id already seen) is never activity. A first sighting counts
        only when created strictly after the most recent idle; before the
        first idle there is nothing to respond to.
        """
        if message_id in self.seen_message_ids:
            logger.debug("User message %s: edit of a seen message, ignored", message_id)
            return False
        self.seen_message_ids.add(message_id)

        if not self.clock.has_gone_idle:
            logger.debug("User message %s: session has not gone idle yet", message_id)
            return False
        if created_at is None or created_at <= self.clock.last_idle_wall:
            logger.debug(
                "User message %s: created before last idle (created=%s, idle=%.3f)",
                message_id,
                created_at,
                self.clock.last_idle_wall,
            )
            return False

        self.clock.mark_activity()
        return True

    def reset(self) -> None:
        self.generation += 1
        self.seen_message_ids.clear()
        self.clock.reset()
        logger.debug("Session state reset (generation=%d)", self.generation)
