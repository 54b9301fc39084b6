"""
VoiceNotify Metrics — in-process counters, histograms and gauges.

No external dependencies. Exposed through GET /health.

Usage:
    from voicenotify.core.metrics import metrics

    metrics.inc("reminder.fired", labels={"kind": "idle"})
    metrics.observe("sink.speak.latency_ms", 812.0)
    metrics.gauge_set("reminder.pending", 2)

    snapshot = metrics.snapshot()
"""

from __future__ import annotations

import time
from collections import defaultdict


class MetricsCollector:
    """In-process metrics collector."""

    # Rolling window keeps memory bounded for long-lived processes
    HISTOGRAM_MAX_SAMPLES = 500

    _instance: "MetricsCollector | None" = None

    @classmethod
    def get(cls) -> "MetricsCollector":
        """Return the process-wide singleton."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def __init__(self) -> None:
        self._counters: dict[str, int] = defaultdict(int)
        self._histograms: dict[str, list[float]] = defaultdict(list)
        self._gauges: dict[str, float] = defaultdict(float)
        self._started_at: float = time.time()

    def inc(self, name: str, value: int = 1, labels: dict | None = None) -> None:
        self._counters[self._key(name, labels)] += value

    def observe(self, name: str, value: float, labels: dict | None = None) -> None:
        samples = self._histograms[self._key(name, labels)]
        samples.append(value)
        if len(samples) > self.HISTOGRAM_MAX_SAMPLES:
            samples.pop(0)

    def gauge_set(self, name: str, value: float, labels: dict | None = None) -> None:
        self._gauges[self._key(name, labels)] = value

    def counter(self, name: str, labels: dict | None = None) -> int:
        """Current value of a counter (0 if never incremented)."""
        return self._counters.get(self._key(name, labels), 0)

    def snapshot(self) -> dict:
        """Counters, gauges and histogram summaries as a JSON-ready dict."""
        histograms: dict[str, dict] = {}
        for key, samples in self._histograms.items():
            if not samples:
                continue
            ordered = sorted(samples)
            n = len(ordered)
            histograms[key] = {
                "count": n,
                "min": ordered[0],
                "max": ordered[-1],
                "p50": ordered[n // 2],
                "p95": ordered[min(int(n * 0.95), n - 1)],
            }

        return {
            "uptime_seconds": round(time.time() - self._started_at, 1),
            "counters": dict(self._counters),
            "gauges": dict(self._gauges),
            "histograms": histograms,
        }

    def reset(self) -> None:
        self._counters.clear()
        self._histograms.clear()
        self._gauges.clear()

    def _key(self, name: str, labels: dict | None) -> str:
        """Build a metric key with optional label suffix.

        Example: "reminder.fired{kind=idle}"
        """
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"


# Process-wide singleton, import this directly
metrics = MetricsCollector.get()
