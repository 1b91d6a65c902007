from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import IntFlag


class Keys(IntFlag):
    LEFT = 0x01
    RIGHT = 0x02
    UP = 0x04
    DOWN = 0x08
    ANCHOR = 0x10


@dataclass(frozen=True, slots=True)
class ControlBits:
    """Bit assignments of the control-state mask sent to the server."""

    left: int = int(Keys.LEFT)
    right: int = int(Keys.RIGHT)
    up: int = int(Keys.UP)
    down: int = int(Keys.DOWN)
    anchor: int = int(Keys.ANCHOR)

    @classmethod
    def from_names(cls, names: Mapping[str, int]) -> ControlBits:
        """Build from a `{"LEFT": bit, ...}` table; missing names keep defaults."""
        defaults = cls()
        return cls(
            left=int(names.get("LEFT", defaults.left)),
            right=int(names.get("RIGHT", defaults.right)),
            up=int(names.get("UP", defaults.up)),
            down=int(names.get("DOWN", defaults.down)),
            anchor=int(names.get("ANCHOR", defaults.anchor)),
        )

    @property
    def horizontal(self) -> int:
        return int(self.left) | int(self.right)

    @property
    def vertical(self) -> int:
        return int(self.up) | int(self.down)


DEFAULT_CONTROL_BITS = ControlBits()


__all__ = ["ControlBits", "DEFAULT_CONTROL_BITS", "Keys"]
