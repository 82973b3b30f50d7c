"""
Lightweight generation metrics collector.

Tracks submissions, validation rejects, outcomes and generation latency
for the process. Thread-safe singleton.
"""
import time
import threading
from collections import Counter


class GeneratorMetrics:
    """Global metrics singleton. Thread-safe."""

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance.reset()
        return cls._instance

    def reset(self):
        self._submissions = 0
        self._rejected = 0
        self._succeeded = 0
        self._failures = Counter()
        self._durations: list[int] = []
        self._start = time.time()

    def record_submission(self):
        with self._lock:
            self._submissions += 1

    def record_rejected(self):
        with self._lock:
            self._rejected += 1

    def record_success(self, duration_ms: int):
        with self._lock:
            self._succeeded += 1
            self._durations.append(duration_ms)

    def record_failure(self, error_type: str, duration_ms: int):
        with self._lock:
            self._failures[error_type] += 1
            self._durations.append(duration_ms)

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "uptime_s": round(time.time() - self._start, 1),
                "submissions": self._submissions,
                "rejected": self._rejected,
                "succeeded": self._succeeded,
                "failed": sum(self._failures.values()),
                "failures_by_type": dict(self._failures),
                "avg_generation_ms": (
                    round(sum(self._durations) / len(self._durations))
                    if self._durations else 0
                ),
            }
