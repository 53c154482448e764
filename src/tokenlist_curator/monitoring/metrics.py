"""Thread-safe counters and gauges for curation runs."""

from __future__ import annotations

import re
import threading
from collections import defaultdict
from typing import Dict, MutableMapping

_METRIC_SANITIZE_RE = re.compile(r"[^a-zA-Z0-9_:]")


def _sanitize_metric_name(name: str) -> str:
    """Return a Prometheus-safe metric name."""

    sanitized = _METRIC_SANITIZE_RE.sub("_", name)
    if not sanitized:
        return "_"
    if sanitized[0].isdigit():
        sanitized = f"_{sanitized}"
    return sanitized


class MetricsRegistry:
    """In-memory metrics store dumped by the CLI after a run."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._counters: MutableMapping[str, float] = defaultdict(float)
        self._gauges: MutableMapping[str, float] = {}

    def increment(self, name: str, amount: float = 1.0) -> None:
        with self._lock:
            self._counters[name] += amount

    def get(self, name: str) -> float:
        with self._lock:
            return self._counters.get(name, 0.0)

    def gauge(self, name: str, value: float) -> None:
        with self._lock:
            self._gauges[name] = float(value)

    def get_gauge(self, name: str) -> float:
        with self._lock:
            return self._gauges.get(name, 0.0)

    def snapshot(self) -> Dict[str, Dict[str, float]]:
        with self._lock:
            return {"counters": dict(self._counters), "gauges": dict(self._gauges)}

    def export_prometheus(self) -> str:
        snap = self.snapshot()
        lines = []
        for name, value in sorted(snap["counters"].items()):
            sanitized = _sanitize_metric_name(name)
            lines.append(f"# TYPE {sanitized} counter")
            lines.append(f"{sanitized} {value}")
        for name, value in sorted(snap["gauges"].items()):
            sanitized = _sanitize_metric_name(name)
            lines.append(f"# TYPE {sanitized} gauge")
            lines.append(f"{sanitized} {value}")
        return "\n".join(lines) + "\n"

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._gauges.clear()


METRICS = MetricsRegistry()


__all__ = ["METRICS", "MetricsRegistry"]
