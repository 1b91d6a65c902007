from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from ..config import LatencyConfig, PhysicsConfig
from ..debug_log import trace_log
from ..sim.clock import IntervalTimer, monotonic_ms
from ..torus import SupportsXY, Vec2, near
from .connection import Connection
from .protocol import ECHO_TAG, PROBE_MESSAGE, decode_echo_reply, frame_tag, is_probe


@dataclass(slots=True)
class LatencyEstimator:
    """Round-trip latency from server echo probes.

    The server answers a probe by broadcasting an echo stamped with the sender's
    position. A reply counts as ours when a probe is outstanding, it arrives
    within `max_delay_ms`, and its position matches our last authoritative
    position to within one tick of travel. Each accepted reply replaces the
    estimate outright: valid samples are seconds apart, so any useful smoothing
    constant would weight the newest sample at effectively 1 anyway.
    """

    connection: Connection
    # Last authoritative position of the local entity, or None if absent.
    locate: Callable[[], SupportsXY | None]
    cfg: LatencyConfig = field(default_factory=LatencyConfig)
    physics: PhysicsConfig = field(default_factory=PhysicsConfig)
    clock: Callable[[], float] = monotonic_ms
    _active: bool = field(init=False, default=False)
    _sending: bool = field(init=False, default=False)
    _interval_ms: float | None = field(init=False, default=None)
    _timer: IntervalTimer | None = field(init=False, default=None)
    _last_probe_ms: float | None = field(init=False, default=None)
    _last_reply_ms: float | None = field(init=False, default=None)
    _latency_ms: float | None = field(init=False, default=None)

    @property
    def active(self) -> bool:
        return bool(self._active)

    @property
    def latency_ms(self) -> float | None:
        return self._latency_ms

    @property
    def last_probe_ms(self) -> float | None:
        return self._last_probe_ms

    @property
    def interval_ms(self) -> float | None:
        return self._interval_ms

    def set_interval(self, interval_ms: float | None, *, now_ms: float | None = None) -> None:
        """Probe every `interval_ms`; None or 0 stops periodic probing but keeps the estimate."""
        if not self._active:
            return
        self._timer = None
        self._interval_ms = None
        if not interval_ms:
            return
        if now_ms is None:
            now_ms = self.clock()
        self._interval_ms = float(interval_ms)
        self._timer = IntervalTimer.starting_at(float(now_ms), float(interval_ms))
        last = self._last_probe_ms
        if last is None or float(now_ms) - float(last) > float(interval_ms):
            self.probe(now_ms=float(now_ms))

    def start(self) -> None:
        if self._active:
            return
        self.connection.add_listener(self.handle_message)
        self.connection.add_send_observer(self._observe_send)
        self._active = True
        trace_log("latency_start")

    def stop(self) -> None:
        if not self._active:
            return
        self.set_interval(None)
        self._active = False
        self.connection.remove_send_observer(self._observe_send)
        self.connection.remove_listener(self.handle_message)
        self._last_reply_ms = None
        self._last_probe_ms = None
        self._latency_ms = None
        trace_log("latency_stop")

    def update(self, *, now_ms: float | None = None) -> None:
        timer = self._timer
        if not self._active or timer is None:
            return
        if now_ms is None:
            now_ms = self.clock()
        if timer.poll(float(now_ms)):
            self.probe(now_ms=float(now_ms))

    def probe(self, *, now_ms: float | None = None) -> bool:
        """Send an echo probe unless one went out within the minimum spacing."""
        if not self._active or not self.connection.open:
            return False
        if now_ms is None:
            now_ms = self.clock()
        last = self._last_probe_ms
        if last is not None and float(now_ms) - float(last) < float(self.cfg.min_spacing_ms):
            trace_log("probe_throttled", age_ms=float(now_ms) - float(last))
            return False
        self._sending = True
        try:
            self.connection.send(PROBE_MESSAGE)
        finally:
            self._sending = False
        self._last_probe_ms = float(now_ms)
        trace_log("probe_sent", now_ms=float(now_ms))
        return True

    def note_probe(self, *, now_ms: float | None = None) -> None:
        """Record a probe issued outside this estimator (e.g. a user-triggered echo)."""
        if not self._active:
            return
        if now_ms is None:
            now_ms = self.clock()
        self._last_probe_ms = float(now_ms)

    def _observe_send(self, message: str) -> None:
        if self._sending or not is_probe(message):
            return
        self.note_probe()

    def handle_message(self, message: str, *, now_ms: float | None = None) -> bool:
        """Consume a candidate echo reply; return True if it updated the estimate."""
        if not self._active or frame_tag(message) != ECHO_TAG:
            return False
        last_probe = self._last_probe_ms
        last_reply = self._last_reply_ms
        if last_probe is None or (last_reply is not None and last_reply > last_probe):
            trace_log("echo_rejected", reason="no_probe")
            return False
        if now_ms is None:
            now_ms = self.clock()
        delay = float(now_ms) - float(last_probe)
        if delay > float(self.cfg.max_delay_ms):
            trace_log("echo_rejected", reason="stale", delay_ms=delay)
            return False

        reply = decode_echo_reply(message)
        if reply is None:
            trace_log("echo_rejected", reason="malformed")
            return False
        me = self.locate()
        if me is None:
            trace_log("echo_rejected", reason="no_entity")
            return False
        # The echo carries the position of the server tick that handled the
        # probe, which should match our latest snapshot give or take one tick.
        origin = near(Vec2(float(reply.x), float(reply.y)), me, size=self.physics.world_size)
        radius = float(self.physics.max_speed) * float(self.cfg.tolerance_factor)
        if abs(float(me.x) - origin.x) > radius or abs(float(me.y) - origin.y) > radius:
            trace_log("echo_rejected", reason="position", dx=float(me.x) - origin.x, dy=float(me.y) - origin.y)
            return False

        self._latency_ms = float(delay)
        self._last_reply_ms = float(now_ms)
        trace_log("echo_accepted", latency_ms=float(delay))
        return True


__all__ = ["LatencyEstimator"]
