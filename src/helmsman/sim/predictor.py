from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from ..config import PhysicsConfig
from ..debug_log import trace_log
from ..net.protocol import decode_control
from ..torus import Vec2, canonicalize, clamp
from .clock import monotonic_ms
from .controls import DEFAULT_CONTROL_BITS, ControlBits
from .density import DensityField
from .input_log import InputLog
from .snapshot import Snapshot

Motion = tuple[float, float, float, float]


class SendObservable(Protocol):
    def add_send_observer(self, observer: Callable[[str], None]) -> None: ...

    def remove_send_observer(self, observer: Callable[[str], None]) -> None: ...


def _axis_thrust(velocity: float, held: int, negative: int, positive: int, physics: PhysicsConfig) -> float:
    if held == (negative | positive):
        # Opposing thrust cancels out and also suppresses drag.
        return velocity
    if held == negative:
        return velocity - physics.accel
    if held == positive:
        return velocity + physics.accel
    return velocity * (1 - physics.drag_idle)


def advance_tick(
    motion: Motion,
    bitmask: int,
    *,
    physics: PhysicsConfig,
    bits: ControlBits = DEFAULT_CONTROL_BITS,
    density: DensityField | None = None,
) -> Motion:
    """Advance `(x, y, vx, vy)` by one server tick under control state `bitmask`."""
    x, y, vx, vy = motion
    if abs(vx) < physics.min_speed:
        vx = 0.0
    if abs(vy) < physics.min_speed:
        vy = 0.0

    target = canonicalize(Vec2(x + vx, y + vy), size=physics.world_size)
    solidity = 0.0 if density is None else density.solidity(target)
    if solidity >= physics.solid_threshold:
        # Beached: the move is rejected and all momentum is lost.
        return x, y, 0.0, 0.0
    x, y = target.x, target.y

    horizontal = int(bitmask) & bits.horizontal
    vertical = int(bitmask) & bits.vertical
    if int(bitmask) & int(bits.anchor):
        vx *= 1 - physics.drag_anchor
        vy *= 1 - physics.drag_anchor
        # Anchoring does not exempt an idle axis from ordinary drag.
        if horizontal == 0:
            vx *= 1 - physics.drag_idle
        if vertical == 0:
            vy *= 1 - physics.drag_idle
    else:
        vx = _axis_thrust(vx, horizontal, int(bits.left), int(bits.right), physics)
        vy = _axis_thrust(vy, vertical, int(bits.up), int(bits.down), physics)

    limit = physics.max_speed * (1 - solidity)
    return x, y, clamp(vx, -limit, limit), clamp(vy, -limit, limit)


@dataclass(slots=True)
class DeadReckoning:
    """Replays recorded local input over a snapshot to predict where the server has us.

    While active, every control-state frame sent on the attached connection is
    recorded in `inputs` with its local send time.
    """

    physics: PhysicsConfig = field(default_factory=PhysicsConfig)
    density: DensityField | None = None
    bits: ControlBits = DEFAULT_CONTROL_BITS
    clock: Callable[[], float] = monotonic_ms
    inputs: InputLog = field(init=False)
    _connection: SendObservable | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        self.inputs = InputLog(tick_ms=float(self.physics.tick_ms))

    @property
    def active(self) -> bool:
        return self._connection is not None

    def start(self, connection: SendObservable) -> None:
        if self._connection is not None:
            return
        connection.add_send_observer(self._observe_send)
        self._connection = connection

    def stop(self) -> None:
        connection = self._connection
        if connection is None:
            return
        self._connection = None
        connection.remove_send_observer(self._observe_send)
        self.inputs.clear()

    def record_input(self, bitmask: int, *, now_ms: float | None = None) -> None:
        if now_ms is None:
            now_ms = self.clock()
        self.inputs.record(int(bitmask), when=float(now_ms))
        trace_log("input_recorded", bitmask=int(bitmask), now_ms=float(now_ms))

    def _observe_send(self, message: str) -> None:
        bitmask = decode_control(message)
        if bitmask is None:
            return
        self.record_input(bitmask)

    def predict(self, snapshot: Snapshot, latency_ms: float | None = 0.0, ticks: int = 0) -> Snapshot:
        """Project `snapshot` forward `ticks` server ticks.

        Inputs are aligned to server time by shifting the window back by
        `latency_ms`. With no ticks to run, or while inactive, the snapshot is
        returned as is.
        """
        ticks = int(ticks)
        if self._connection is None or ticks <= 0:
            return snapshot
        physics = self.physics
        motion: Motion = (float(snapshot.x), float(snapshot.y), float(snapshot.vx), float(snapshot.vy))
        cutoff = float(snapshot.when) - float(latency_ms or 0.0)
        for bitmask in self.inputs.merge(cutoff, ticks):
            motion = advance_tick(motion, bitmask, physics=physics, bits=self.bits, density=self.density)
        x, y, vx, vy = motion
        predicted = Snapshot(x=x, y=y, vx=vx, vy=vy, when=float(snapshot.when))
        return canonicalize(predicted, size=physics.world_size)


__all__ = ["DeadReckoning", "Motion", "SendObservable", "advance_tick"]
