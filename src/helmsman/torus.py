"""Geometry on the wrapped (toroidal) world plane.

Positions live on a square torus of side ``WORLD_SIZE``. Any point has infinitely
many equivalent images offset by whole multiples of the world size; the helpers
here pick the image that is convenient for a given comparison.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import math
from typing import Protocol, TypeVar

from .config import MAX_SPEED, WORLD_SIZE


class SupportsXY(Protocol):
    x: float
    y: float


P = TypeVar("P", bound=SupportsXY)


@dataclass(slots=True, frozen=True)
class Vec2:
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Vec2) -> Vec2:
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vec2) -> Vec2:
        return Vec2(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vec2:
        return Vec2(self.x * scalar, self.y * scalar)

    def __rmul__(self, scalar: float) -> Vec2:
        return self * scalar

    @classmethod
    def from_xy(cls, value: SupportsXY) -> Vec2:
        return cls(x=float(value.x), y=float(value.y))


def clamp(value: float, low: float, high: float) -> float:
    if value < low:
        return low
    if value > high:
        return high
    return value


def _sign(value: float) -> float:
    if value > 0.0:
        return 1.0
    if value < 0.0:
        return -1.0
    return 0.0


def _wrap_axis(value: float, center: float, size: float) -> float:
    low = center - size / 2.0
    high = center + size / 2.0
    if low <= value < high:
        # Already in range: leave the value bit-for-bit untouched.
        return value
    value -= math.floor((value - low) / size) * size
    if value >= high:
        value -= size
    if value < low:
        # Rounding can leave a value a hair under the range.
        value = low
    return value


def canonicalize(p: P, ref: SupportsXY | None = None, *, size: float = WORLD_SIZE) -> P:
    """Return `p` shifted by whole world sizes into `[ref - size/2, ref + size/2)`.

    Without `ref` the result lies in the primary tile `[0, size)`. The input is
    never mutated; `p` must be a dataclass (e.g. `Vec2` or `Snapshot`), and any
    other fields it carries are copied through.
    """
    if ref is None:
        cx = cy = float(size) / 2.0
    else:
        cx = float(ref.x)
        cy = float(ref.y)
    x = _wrap_axis(float(p.x), cx, float(size))
    y = _wrap_axis(float(p.y), cy, float(size))
    if x == p.x and y == p.y:
        return p
    return replace(p, x=x, y=y)


def near(p: P, ref: SupportsXY | None = None, *, size: float = WORLD_SIZE) -> P:
    """Return the image of `p` nearest `ref`, carrying velocity and timestamp fields.

    The result may lie outside the primary tile (in a neighbouring "wrap"), which
    is what makes it safe to compare or interpolate against `ref`.
    """
    return canonicalize(p, ref, size=size)


def dist(a: SupportsXY, b: SupportsXY, *, size: float = WORLD_SIZE) -> float:
    """Chebyshev distance between `a` and the image of `b` nearest `a`.

    Thrust axes are independent, so the slower axis dominates travel time.
    """
    b_near = near(Vec2.from_xy(b), a, size=size)
    return max(abs(float(a.x) - b_near.x), abs(float(a.y) - b_near.y))


def norm(v: SupportsXY, *, max_speed: float = MAX_SPEED) -> Vec2:
    """Scale `v` so its dominant axis runs at `max_speed`, keeping the axis ratio."""
    x = float(v.x)
    y = float(v.y)
    if abs(x) > abs(y):
        return Vec2(
            x=max_speed * _sign(x),
            y=abs(y / x) * max_speed * _sign(y),
        )
    if y == 0.0:
        return Vec2()
    return Vec2(
        x=abs(x / y) * max_speed * _sign(x),
        y=max_speed * _sign(y),
    )


__all__ = [
    "SupportsXY",
    "Vec2",
    "canonicalize",
    "clamp",
    "dist",
    "near",
    "norm",
]
