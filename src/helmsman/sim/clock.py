from __future__ import annotations

from dataclasses import dataclass
import time


def monotonic_ms() -> float:
    """Monotonic local time in milliseconds."""
    return time.perf_counter() * 1000.0


@dataclass(slots=True)
class IntervalTimer:
    """Poll-driven repeating timer for the cooperative update loop.

    `poll()` reports at most one firing per call; a late poll skips the missed
    deadlines instead of replaying them.
    """

    interval_ms: float
    next_due_ms: float = 0.0

    def __post_init__(self) -> None:
        interval_ms = float(self.interval_ms)
        if not (interval_ms > 0.0):
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self.interval_ms = interval_ms

    @classmethod
    def starting_at(cls, now_ms: float, interval_ms: float) -> IntervalTimer:
        return cls(interval_ms=float(interval_ms), next_due_ms=float(now_ms) + float(interval_ms))

    def poll(self, now_ms: float) -> bool:
        now_ms = float(now_ms)
        if now_ms < self.next_due_ms:
            return False
        missed = int((now_ms - self.next_due_ms) // self.interval_ms) + 1
        self.next_due_ms += float(missed) * self.interval_ms
        return True


__all__ = ["IntervalTimer", "monotonic_ms"]
