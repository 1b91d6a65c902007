from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from .config import SessionConfig
from .debug_log import close_trace_log, init_trace_log, trace_log, trace_log_path
from .entities import Entity, EntityTable
from .net.connection import Connection
from .net.latency import LatencyEstimator
from .net.protocol import encode_control, local_motion_update
from .sim.clock import monotonic_ms
from .sim.controls import ControlBits
from .sim.density import DensityField
from .sim.predictor import DeadReckoning
from .sim.smoother import SnapshotSmoother
from .sim.snapshot import Snapshot


@dataclass(slots=True)
class PredictionSession:
    """Own the prediction subsystems for one connected, locally controlled entity.

    The host application feeds received frames to `connection.deliver()`, calls
    `update()` from its loop for timers and `frame()` once per rendered frame.
    The smoothed position is published on the local entity's `corrected` field.
    """

    connection: Connection
    cfg: SessionConfig
    entities: EntityTable = field(default_factory=dict)
    density: DensityField | None = None
    clock: Callable[[], float] = monotonic_ms
    bits: ControlBits = field(init=False)
    estimator: LatencyEstimator = field(init=False)
    predictor: DeadReckoning = field(init=False)
    smoother: SnapshotSmoother = field(init=False)
    _active: bool = field(init=False, default=False)
    _input: int = field(init=False, default=0)
    _trace_path: Path | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        self.bits = ControlBits.from_names(self.cfg.control_names)
        self.estimator = LatencyEstimator(
            connection=self.connection,
            locate=self._locate,
            cfg=self.cfg.latency,
            physics=self.cfg.physics,
            clock=self.clock,
        )
        self.predictor = DeadReckoning(
            physics=self.cfg.physics,
            density=self.density,
            bits=self.bits,
            clock=self.clock,
        )
        self.smoother = SnapshotSmoother(predictor=self.predictor, physics=self.cfg.physics)

    @property
    def active(self) -> bool:
        return bool(self._active)

    @property
    def latency_ms(self) -> float | None:
        return self.estimator.latency_ms

    @property
    def input(self) -> int:
        return int(self._input)

    @property
    def local_entity(self) -> Entity | None:
        return self.entities.get(str(self.cfg.local_id))

    def _locate(self) -> Entity | None:
        return self.local_entity

    def start(self) -> None:
        if self._active:
            return
        if self.cfg.trace_dir is not None:
            self._trace_path = init_trace_log(self.cfg, base_dir=self.cfg.trace_dir)
        self.estimator.start()
        self.predictor.start(self.connection)
        self.connection.add_listener(self.handle_message)
        self._active = True
        if self.cfg.probe_interval_ms:
            self.estimator.set_interval(self.cfg.probe_interval_ms)
        trace_log("session_start", local_id=str(self.cfg.local_id))

    def stop(self) -> None:
        if not self._active:
            return
        self._active = False
        self.connection.remove_listener(self.handle_message)
        self.predictor.stop()
        self.estimator.stop()
        self.smoother.reset()
        trace_log("session_stop", local_id=str(self.cfg.local_id))
        if self._trace_path is not None:
            # Another session may have opened its own trace since.
            if trace_log_path() == self._trace_path:
                close_trace_log()
            self._trace_path = None

    def set_probe_interval(self, interval_ms: float | None) -> None:
        self.estimator.set_interval(interval_ms)

    def set_input(self, bitmask: int) -> bool:
        """Command a new control state; only changes go out on the wire."""
        if not self._active or not self.connection.open:
            return False
        if int(bitmask) == int(self._input):
            return False
        self._input = int(bitmask)
        self.connection.send(encode_control(self._input))
        return True

    def update(self, *, now_ms: float | None = None) -> None:
        self.estimator.update(now_ms=now_ms)

    def handle_message(self, message: str, *, now_ms: float | None = None) -> None:
        if not self._active:
            return
        state = local_motion_update(message, str(self.cfg.local_id))
        if state is None:
            return
        me = self.local_entity
        if me is None:
            return
        # The host may not have applied the update to its entity table yet.
        me.apply(state)
        self.frame(now_ms=now_ms)

    def frame(self, *, now_ms: float | None = None) -> Snapshot | None:
        """Recompute the local entity's corrected position for this frame."""
        if not self._active:
            return None
        me = self.local_entity
        if me is None:
            return None
        if now_ms is None:
            now_ms = self.clock()
        corrected = self.smoother.update(me, self.estimator.latency_ms, now_ms=float(now_ms))
        me.corrected = corrected
        return corrected


__all__ = ["PredictionSession"]
