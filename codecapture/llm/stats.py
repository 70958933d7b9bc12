"""
LLM Execution Statistics

Counters shared by every in-flight file pipeline. Owned by the capture run
and injected into the retry strategy and router.
"""

import threading

from codecapture.configs import get_logger

logger = get_logger("llm.stats")

COUNTERS = (
    "success",
    "failure",
    "overload_retry",
    "hopeful_retry",
    "crop",
    "switch",
    "embedding_failure",
    "json_mutated",
)


class LLMExecutionStats:
    """Thread-safe append-only counters."""

    def __init__(self):
        self._lock = threading.Lock()
        self._counts = dict.fromkeys(COUNTERS, 0)

    def increment(self, name: str, amount: int = 1) -> None:
        if name not in self._counts:
            raise KeyError(f"Unknown statistic: {name}")
        with self._lock:
            self._counts[name] += amount

    def record_success(self) -> None:
        self.increment("success")

    def record_failure(self) -> None:
        self.increment("failure")

    def record_overload_retry(self) -> None:
        self.increment("overload_retry")

    def record_hopeful_retry(self) -> None:
        self.increment("hopeful_retry")

    def record_crop(self) -> None:
        self.increment("crop")

    def record_switch(self) -> None:
        self.increment("switch")

    def record_embedding_failure(self) -> None:
        self.increment("embedding_failure")

    def record_json_mutated(self) -> None:
        self.increment("json_mutated")

    def get(self, name: str) -> int:
        with self._lock:
            return self._counts[name]

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counts)

    def log_summary(self) -> None:
        counts = self.snapshot()
        logger.info(
            "LLM calls: "
            + ", ".join(f"{name}={value}" for name, value in counts.items())
        )
