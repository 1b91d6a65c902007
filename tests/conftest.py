from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path

import pytest


def pytest_configure(config: pytest.Config) -> None:
    # Ensure the local `src/` tree wins over any other editable install that may exist.
    src_dir = Path(__file__).resolve().parents[1] / "src"
    src_str = str(src_dir)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)


@dataclass(slots=True)
class FakeClock:
    now: float = 0.0

    def __call__(self) -> float:
        return float(self.now)

    def advance(self, ms: float) -> float:
        self.now += float(ms)
        return float(self.now)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(now=10_000.0)
