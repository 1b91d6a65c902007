"""Opt-in prediction trace.

One line per event, ``<utc time> t=<monotonic ms> event=<name> key=value ...``,
appended to a file opened for a single session. With no trace open every call
is a no-op.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import datetime as dt
import os
from pathlib import Path
from threading import Lock
import time

from .config import SessionConfig


@dataclass(slots=True)
class _TraceFile:
    path: Path
    local_id: str
    opened_at: float = field(default_factory=time.perf_counter)
    lock: Lock = field(default_factory=Lock)

    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.opened_at) * 1000.0

    def append(self, line: str) -> None:
        with self.lock:
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(line)


_TRACE: _TraceFile | None = None


def _format_value(value: object) -> str:
    if value is None:
        return "-"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float):
        return f"{value:.3f}"
    return str(value).replace("\n", "\\n").replace(" ", "_")


def _trace_name(local_id: str) -> str:
    stamp = dt.datetime.now(dt.timezone.utc).strftime("%Y%m%dT%H%M%S")
    safe_id = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in str(local_id)) or "anon"
    return f"{safe_id}-{stamp}-{os.getpid()}.log"


def trace_log_path() -> Path | None:
    trace = _TRACE
    return None if trace is None else trace.path


def init_trace_log(cfg: SessionConfig, *, base_dir: Path) -> Path:
    """Open a trace for the session described by `cfg` under `base_dir/logs/prediction/`.

    The first line records the tuning the session runs with, so a trace can be
    replayed against the same physics.
    """
    global _TRACE
    path = Path(base_dir) / "logs" / "prediction" / _trace_name(cfg.local_id)
    path.parent.mkdir(parents=True, exist_ok=True)
    _TRACE = _TraceFile(path=path, local_id=str(cfg.local_id))

    physics = cfg.physics
    trace_log(
        "session_config",
        local_id=str(cfg.local_id),
        tick_ms=float(physics.tick_ms),
        world_size=float(physics.world_size),
        max_speed=float(physics.max_speed),
        accel=float(physics.accel),
        probe_interval_ms=cfg.probe_interval_ms,
        max_delay_ms=float(cfg.latency.max_delay_ms),
    )
    return path


def trace_log(event: str, **fields: object) -> None:
    trace = _TRACE
    if trace is None:
        return
    parts = [
        dt.datetime.now(dt.timezone.utc).isoformat(timespec="milliseconds"),
        f"t={trace.elapsed_ms():.1f}",
        f"event={str(event).strip()}",
    ]
    parts.extend(f"{key}={_format_value(fields[key])}" for key in sorted(fields))
    trace.append(" ".join(parts) + "\n")


def close_trace_log() -> None:
    global _TRACE
    _TRACE = None


__all__ = [
    "close_trace_log",
    "init_trace_log",
    "trace_log",
    "trace_log_path",
]
