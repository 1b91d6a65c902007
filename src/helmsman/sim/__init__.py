from __future__ import annotations

from .clock import IntervalTimer, monotonic_ms
from .controls import DEFAULT_CONTROL_BITS, ControlBits, Keys
from .density import DensityField
from .input_log import InputLog, InputRecord, MergedInputs
from .snapshot import Snapshot
from .predictor import DeadReckoning, advance_tick
from .smoother import SnapshotSmoother

__all__ = [
    "ControlBits",
    "DEFAULT_CONTROL_BITS",
    "DeadReckoning",
    "DensityField",
    "InputLog",
    "InputRecord",
    "IntervalTimer",
    "Keys",
    "MergedInputs",
    "Snapshot",
    "SnapshotSmoother",
    "advance_tick",
    "monotonic_ms",
]
