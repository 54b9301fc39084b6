"""Tests for structured logging and the metrics collector."""

import json
import logging

from voicenotify.core.logging import ColorFormatter, StructuredFormatter, setup_logging
from voicenotify.core.metrics import MetricsCollector


def _record(msg: str = "Reminder armed", **extra) -> logging.LogRecord:
    record = logging.LogRecord("voicenotify.engine", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    def test_structured_includes_extra_fields(self):
        line = StructuredFormatter().format(_record(kind="permission", count=3, other="x"))
        entry = json.loads(line)
        assert entry["msg"] == "Reminder armed"
        assert entry["kind"] == "permission"
        assert entry["count"] == 3
        assert "other" not in entry

    def test_color_formatter_restores_record(self):
        record = _record()
        out = ColorFormatter(use_color=True).format(record)
        assert "\033[" in out
        assert record.levelname == "INFO"
        assert record.name == "voicenotify.engine"

    def test_setup_logging_file_handler(self, tmp_path, monkeypatch):
        log_file = tmp_path / "logs" / "voicenotify.log"
        monkeypatch.setenv("VOICENOTIFY_LOG_FILE", str(log_file))
        monkeypatch.setenv("VOICENOTIFY_LOG_LEVEL", "debug")
        root = logging.getLogger()
        saved = list(root.handlers), root.level
        try:
            setup_logging()
            logging.getLogger("voicenotify.test").info("hello file")
            for handler in root.handlers:
                handler.flush()
            assert "hello file" in log_file.read_text()
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            for handler in root.handlers:
                if handler not in saved[0]:
                    handler.close()
            root.handlers[:] = saved[0]
            root.setLevel(saved[1])


class TestMetrics:
    def test_counters_with_labels(self):
        m = MetricsCollector()
        m.inc("reminder.fired", labels={"kind": "idle"})
        m.inc("reminder.fired", labels={"kind": "idle"})
        assert m.counter("reminder.fired", {"kind": "idle"}) == 2
        assert m.counter("reminder.fired", {"kind": "question"}) == 0

    def test_snapshot_histograms(self):
        m = MetricsCollector()
        for v in [100.0, 300.0, 200.0]:
            m.observe("sink.speak.latency_ms", v)
        m.gauge_set("reminder.pending", 2)
        snap = m.snapshot()
        hist = snap["histograms"]["sink.speak.latency_ms"]
        assert hist["count"] == 3
        assert hist["min"] == 100.0
        assert hist["p50"] == 200.0
        assert snap["gauges"]["reminder.pending"] == 2

    def test_histogram_is_bounded(self):
        m = MetricsCollector()
        for i in range(MetricsCollector.HISTOGRAM_MAX_SAMPLES + 10):
            m.observe("x", float(i))
        assert m.snapshot()["histograms"]["x"]["count"] == MetricsCollector.HISTOGRAM_MAX_SAMPLES

    def test_reset(self):
        m = MetricsCollector()
        m.inc("a")
        m.reset()
        assert m.snapshot()["counters"] == {}
