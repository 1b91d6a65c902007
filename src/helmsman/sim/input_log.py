from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, field

from ..config import INPUT_HISTORY_TICKS, TICKSIZE


@dataclass(frozen=True, slots=True)
class InputRecord:
    """Control bitmask in effect from `when` (local ms) until the next record."""

    when: float
    bitmask: int


@dataclass(slots=True)
class MergedInputs:
    """One-shot cursor yielding the control state at each successive tick boundary.

    Each boundary takes the latest record at or before it, so several changes
    inside one tick collapse to the last of them.
    """

    records: deque[InputRecord]
    boundary: float
    remaining: int
    tick_ms: float = TICKSIZE
    _index: int = 0
    _bitmask: int = 0

    def __iter__(self) -> Iterator[int]:
        return self

    def __next__(self) -> int:
        if self.remaining <= 0:
            raise StopIteration
        self.boundary += self.tick_ms
        records = self.records
        while self._index < len(records) and records[self._index].when <= self.boundary:
            self._bitmask = int(records[self._index].bitmask)
            self._index += 1
        self.remaining -= 1
        return int(self._bitmask)


@dataclass(slots=True)
class InputLog:
    """Append-only log of locally issued control changes, trimmed from the front."""

    tick_ms: float = TICKSIZE
    history_ticks: int = INPUT_HISTORY_TICKS
    _records: deque[InputRecord] = field(default_factory=deque)

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> tuple[InputRecord, ...]:
        return tuple(self._records)

    def record(self, bitmask: int, *, when: float) -> InputRecord:
        entry = InputRecord(when=float(when), bitmask=int(bitmask))
        self._records.append(entry)
        return entry

    def clear(self) -> None:
        self._records.clear()

    def trim(self, cutoff: float) -> None:
        """Drop records superseded before `cutoff`, keeping the one in effect at it."""
        records = self._records
        while len(records) > 1 and records[1].when <= float(cutoff):
            records.popleft()

    def state_at(self, when: float) -> int:
        """Control bitmask in effect at `when` (0 before the first record)."""
        bitmask = 0
        for entry in self._records:
            if entry.when > float(when):
                break
            bitmask = int(entry.bitmask)
        return int(bitmask)

    def merge(self, cutoff: float, ticks: int = 0) -> MergedInputs:
        """Per-tick control states for the `ticks` boundaries following `cutoff`."""
        self.trim(float(cutoff) - float(self.history_ticks) * float(self.tick_ms))
        return MergedInputs(
            records=self._records,
            boundary=float(cutoff),
            remaining=max(0, int(ticks)),
            tick_ms=float(self.tick_ms),
        )


__all__ = ["InputLog", "InputRecord", "MergedInputs"]
