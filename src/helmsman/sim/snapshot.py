from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class SupportsMotion(Protocol):
    x: float
    y: float
    vx: float
    vy: float


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Position (units) and velocity (units/tick) sampled at local time `when` (ms)."""

    x: float = 0.0
    y: float = 0.0
    vx: float = 0.0
    vy: float = 0.0
    when: float = 0.0

    @classmethod
    def capture(cls, value: SupportsMotion, *, when: float) -> Snapshot:
        return cls(
            x=float(value.x),
            y=float(value.y),
            vx=float(value.vx),
            vy=float(value.vy),
            when=float(when),
        )

    def same_motion(self, value: SupportsMotion) -> bool:
        return (
            float(value.x) == self.x
            and float(value.y) == self.y
            and float(value.vx) == self.vx
            and float(value.vy) == self.vy
        )

    def to_dict(self, *, ndigits: int | None = None) -> dict[str, float]:
        out = {"x": self.x, "y": self.y, "vx": self.vx, "vy": self.vy, "when": self.when}
        if ndigits is None:
            return out
        return {key: round(value, ndigits) for key, value in out.items()}


__all__ = ["Snapshot", "SupportsMotion"]
