from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import msgspec

# Size of the wrapped world in units.
WORLD_SIZE = 2000
# Server tick duration in ms.
TICKSIZE = 33
# Speed limit on either axis in units/tick.
MAX_SPEED = 0.65
# Velocities below this (units/tick) round to zero.
MIN_SPEED = 0.001
# Thrust from a held movement key in units/tick/tick.
ACCEL = 0.025
# Velocity decay per tick on an axis with no movement key held.
DRAG_IDLE = 0.02
# Velocity decay per tick while anchored.
DRAG_ANCHOR = 0.20
# Terrain at or above this solidity blocks movement outright.
SOLID_THRESHOLD = 0.99

# Echo probes are server rate limited to roughly one per 3s.
PROBE_MIN_SPACING_MS = 3500
# Replies slower than this usually signal a hiccup, not steady-state latency.
PROBE_MAX_DELAY_MS = 500
# Echo replies may trail our last position snapshot by up to one tick of travel.
ECHO_TOLERANCE_FACTOR = 1.001

# Input history kept before the oldest prediction window.
INPUT_HISTORY_TICKS = 5
# Snapshots further apart than this are unrelated; no timestamp re-anchoring.
REANCHOR_WINDOW_TICKS = 10
# A re-anchored snapshot is never stamped more than this far in the past.
REANCHOR_MAX_LAG_TICKS = 2


@dataclass(frozen=True, slots=True)
class PhysicsConfig:
    world_size: float = WORLD_SIZE
    tick_ms: float = TICKSIZE
    max_speed: float = MAX_SPEED
    min_speed: float = MIN_SPEED
    accel: float = ACCEL
    drag_idle: float = DRAG_IDLE
    drag_anchor: float = DRAG_ANCHOR
    solid_threshold: float = SOLID_THRESHOLD

    def __post_init__(self) -> None:
        if not (float(self.world_size) > 0.0):
            raise ValueError(f"world_size must be positive, got {self.world_size}")
        if not (float(self.tick_ms) > 0.0):
            raise ValueError(f"tick_ms must be positive, got {self.tick_ms}")
        if not (float(self.max_speed) > 0.0):
            raise ValueError(f"max_speed must be positive, got {self.max_speed}")
        if float(self.min_speed) < 0.0:
            raise ValueError(f"min_speed must not be negative, got {self.min_speed}")
        for name in ("drag_idle", "drag_anchor", "solid_threshold"):
            value = float(getattr(self, name))
            if not (0.0 <= value <= 1.0):
                raise ValueError(f"{name} must be within [0, 1], got {value}")


@dataclass(frozen=True, slots=True)
class LatencyConfig:
    min_spacing_ms: float = PROBE_MIN_SPACING_MS
    max_delay_ms: float = PROBE_MAX_DELAY_MS
    tolerance_factor: float = ECHO_TOLERANCE_FACTOR

    def __post_init__(self) -> None:
        if float(self.min_spacing_ms) < 0.0:
            raise ValueError(f"min_spacing_ms must not be negative, got {self.min_spacing_ms}")
        if not (float(self.max_delay_ms) > 0.0):
            raise ValueError(f"max_delay_ms must be positive, got {self.max_delay_ms}")
        if float(self.tolerance_factor) < 1.0:
            raise ValueError(f"tolerance_factor must be at least 1, got {self.tolerance_factor}")


@dataclass(slots=True)
class SessionConfig:
    local_id: str
    physics: PhysicsConfig = field(default_factory=PhysicsConfig)
    latency: LatencyConfig = field(default_factory=LatencyConfig)
    # Periodic echo probing; None leaves probing to manual triggers.
    probe_interval_ms: float | None = None
    # Host bit table for the control mask, e.g. `{"LEFT": 1, "ANCHOR": 16}`; missing names keep defaults.
    control_names: Mapping[str, int] = field(default_factory=dict)
    # Directory for a per-session trace log; None disables tracing.
    trace_dir: Path | None = None


def _convert(data: Mapping[str, Any], cls: type[Any]) -> Any:
    known = {f.name for f in fields(cls)}
    unknown = sorted(str(key) for key in data if key not in known)
    if unknown:
        raise ValueError(f"unknown {cls.__name__} keys: {', '.join(unknown)}")
    try:
        return msgspec.convert(dict(data), type=cls)
    except msgspec.ValidationError as exc:
        raise ValueError(f"invalid {cls.__name__}: {exc}") from exc


def load_physics_config(data: Mapping[str, Any]) -> PhysicsConfig:
    """Build a `PhysicsConfig` from plain tuning data; unknown keys are rejected."""
    return _convert(data, PhysicsConfig)


def load_latency_config(data: Mapping[str, Any]) -> LatencyConfig:
    return _convert(data, LatencyConfig)


__all__ = [
    "ACCEL",
    "DRAG_ANCHOR",
    "DRAG_IDLE",
    "ECHO_TOLERANCE_FACTOR",
    "INPUT_HISTORY_TICKS",
    "LatencyConfig",
    "MAX_SPEED",
    "MIN_SPEED",
    "PROBE_MAX_DELAY_MS",
    "PROBE_MIN_SPACING_MS",
    "PhysicsConfig",
    "REANCHOR_MAX_LAG_TICKS",
    "REANCHOR_WINDOW_TICKS",
    "SOLID_THRESHOLD",
    "SessionConfig",
    "TICKSIZE",
    "WORLD_SIZE",
    "load_latency_config",
    "load_physics_config",
]
