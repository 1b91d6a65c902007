from __future__ import annotations

from dataclasses import dataclass

from .net.protocol import EntityState
from .sim.snapshot import Snapshot


@dataclass(slots=True)
class Entity:
    """Live record of one entity as last reported by the server."""

    x: float = 0.0
    y: float = 0.0
    vx: float = 0.0
    vy: float = 0.0
    # Smoothed, latency-compensated estimate; set for the local entity only.
    corrected: Snapshot | None = None

    def apply(self, state: EntityState) -> None:
        if state.x is not None:
            self.x = float(state.x)
        if state.y is not None:
            self.y = float(state.y)
        if state.vx is not None:
            self.vx = float(state.vx)
        if state.vy is not None:
            self.vy = float(state.vy)

    def display_position(self) -> Snapshot:
        """Position to render: the corrected estimate when present, else the raw report."""
        if self.corrected is not None:
            return self.corrected
        return Snapshot(x=self.x, y=self.y, vx=self.vx, vy=self.vy)


EntityTable = dict[str, Entity]


__all__ = ["Entity", "EntityTable"]
