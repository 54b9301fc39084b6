"""Tests for ActivityClock and SessionLifecycle."""

from voicenotify.core.clock import ActivityClock
from voicenotify.engine.lifecycle import SessionLifecycle


class FakeTime:
    def __init__(self, start: float = 100.0):
        self.value = start

    def __call__(self) -> float:
        return self.value


def _clock(mono: float = 100.0, wall: float = 1_700_000_000.0):
    m, w = FakeTime(mono), FakeTime(wall)
    return ActivityClock(monotonic=m, wall=w), m, w


# ── ActivityClock ──────────────────────────────────────────


class TestActivityClock:
    def test_starts_active_now_and_never_idle(self):
        clock, _, _ = _clock()
        assert clock.last_user_activity == 100.0
        assert clock.last_idle == 0.0
        assert not clock.has_gone_idle

    def test_mark_idle_records_both_clocks(self):
        clock, m, w = _clock()
        m.value, w.value = 105.0, 1_700_000_005.0
        assert clock.mark_idle() == 105.0
        assert clock.last_idle_wall == 1_700_000_005.0
        assert clock.has_gone_idle

    def test_active_since_is_strict(self):
        clock, m, _ = _clock()
        assert not clock.active_since(100.0)
        m.value = 101.0
        clock.mark_activity()
        assert clock.active_since(100.0)
        assert not clock.active_since(101.0)

    def test_reset(self):
        clock, m, _ = _clock()
        clock.mark_idle()
        m.value = 200.0
        clock.reset()
        assert clock.last_idle == 0.0
        assert clock.last_user_activity == 200.0
        assert not clock.has_gone_idle


# ── SessionLifecycle ───────────────────────────────────────


class TestSessionLifecycle:
    def test_message_before_first_idle_is_only_seen(self):
        clock, m, _ = _clock()
        life = SessionLifecycle(clock)
        m.value = 110.0
        assert life.observe_user_message("m1", 1_700_000_010.0) is False
        assert "m1" in life.seen_message_ids
        assert clock.last_user_activity == 100.0

    def test_message_after_idle_is_activity(self):
        clock, m, w = _clock()
        life = SessionLifecycle(clock)
        clock.mark_idle()
        m.value = 120.0
        assert life.observe_user_message("m1", w.value + 1) is True
        assert clock.last_user_activity == 120.0

    def test_message_created_before_idle_is_ignored(self):
        clock, m, w = _clock()
        life = SessionLifecycle(clock)
        clock.mark_idle()
        m.value = 120.0
        assert life.observe_user_message("m1", w.value - 5) is False
        assert life.observe_user_message("m2", w.value) is False
        assert clock.last_user_activity == 100.0

    def test_missing_created_time_is_not_activity(self):
        clock, _, _ = _clock()
        life = SessionLifecycle(clock)
        clock.mark_idle()
        assert life.observe_user_message("m1", None) is False

    def test_edit_of_seen_message_is_never_activity(self):
        clock, m, w = _clock()
        life = SessionLifecycle(clock)
        life.observe_user_message("m1", w.value - 1)
        clock.mark_idle()
        m.value = 150.0
        # Same id again, now "after" idle: still an edit
        assert life.observe_user_message("m1", w.value + 10) is False
        assert clock.last_user_activity == 100.0

    def test_reset_bumps_generation_and_forgets(self):
        clock, _, _ = _clock()
        life = SessionLifecycle(clock)
        life.observe_user_message("m1", None)
        gen = life.generation
        life.reset()
        assert not life.is_current(gen)
        assert life.is_current(gen + 1)
        assert life.seen_message_ids == set()
        assert not clock.has_gone_idle
