from __future__ import annotations

from dataclasses import dataclass, field
import math

from ..config import REANCHOR_MAX_LAG_TICKS, REANCHOR_WINDOW_TICKS, PhysicsConfig
from ..debug_log import trace_log
from ..torus import canonicalize, near
from .predictor import DeadReckoning
from .snapshot import Snapshot, SupportsMotion


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(slots=True)
class SnapshotSmoother:
    """Blend projections of the two latest authoritative snapshots into one per-frame position.

    `s0` is the newest snapshot and `s1` the one before it. Each frame both are
    dead-reckoned to "now plus latency" and mixed by the fraction of a tick
    elapsed since `s0` arrived, so the rendered position glides toward each new
    update instead of snapping to it.
    """

    predictor: DeadReckoning
    physics: PhysicsConfig = field(default_factory=PhysicsConfig)
    reanchor_window_ticks: int = REANCHOR_WINDOW_TICKS
    reanchor_max_lag_ticks: int = REANCHOR_MAX_LAG_TICKS
    s0: Snapshot | None = field(init=False, default=None)
    s1: Snapshot | None = field(init=False, default=None)

    def reset(self) -> None:
        self.s0 = None
        self.s1 = None

    def observe(self, entity: SupportsMotion, *, now_ms: float) -> bool:
        """Take `entity` as the latest authoritative state; return True on a new snapshot."""
        s0 = self.s0
        if s0 is not None and s0.same_motion(entity):
            return False
        now_ms = float(now_ms)
        tick_ms = float(self.physics.tick_ms)
        snapshot = Snapshot.capture(entity, when=now_ms)
        if s0 is not None and s0.when > now_ms - float(self.reanchor_window_ticks) * tick_ms:
            # Receipt time jitters; pull the stamp toward one tick after `s1`.
            when = max(
                min(s0.when + tick_ms, now_ms),
                now_ms - float(self.reanchor_max_lag_ticks) * tick_ms,
            )
            snapshot = Snapshot.capture(entity, when=when)
            trace_log("snapshot_reanchor", shift_ms=now_ms - when)
        self.s1 = s0
        self.s0 = snapshot
        trace_log("snapshot_shift", x=snapshot.x, y=snapshot.y, vx=snapshot.vx, vy=snapshot.vy)
        return True

    def smooth(self, latency_ms: float | None, *, now_ms: float) -> Snapshot | None:
        s0 = self.s0
        if s0 is None:
            return None
        now_ms = float(now_ms)
        tick_ms = float(self.physics.tick_ms)
        latency = float(latency_ms or 0.0)
        predictor = self.predictor

        a = (now_ms - s0.when) / tick_ms
        ticks = _round_half_up(latency / tick_ms) + math.floor(a) + 1
        s1 = self.s1
        if s1 is not None and a < 1:
            p1 = predictor.predict(s1, latency, ticks)
        else:
            # No previous snapshot, or the latest is already more than a tick old.
            p1 = predictor.predict(s0, latency, ticks - 1)
            a %= 1
        p0 = near(predictor.predict(s0, latency, ticks), p1, size=self.physics.world_size)

        blended = Snapshot(
            x=a * p0.x + (1 - a) * p1.x,
            y=a * p0.y + (1 - a) * p1.y,
            vx=a * p0.vx + (1 - a) * p1.vx,
            vy=a * p0.vy + (1 - a) * p1.vy,
            when=now_ms,
        )
        return canonicalize(blended, size=self.physics.world_size)

    def update(self, entity: SupportsMotion, latency_ms: float | None, *, now_ms: float) -> Snapshot | None:
        self.observe(entity, now_ms=now_ms)
        return self.smooth(latency_ms, now_ms=now_ms)


__all__ = ["SnapshotSmoother"]
