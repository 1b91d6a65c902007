"""Static terrain solidity lookup.

The field is baked once from a reference raster (the world bump map): each pixel
maps to one integer world cell, and its alpha channel (0..255) becomes a
solidity value in [0, 1]. Rasters without an alpha band use their luminance.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from pathlib import Path

from PIL import Image

from ..torus import SupportsXY


@dataclass(frozen=True, slots=True)
class DensityField:
    width: int
    height: int
    cells: bytes

    def __post_init__(self) -> None:
        width = int(self.width)
        height = int(self.height)
        if width <= 0 or height <= 0:
            raise ValueError(f"density field must be non-empty, got {width}x{height}")
        if len(self.cells) != width * height:
            raise ValueError(f"expected {width * height} cells, got {len(self.cells)}")

    @classmethod
    def from_image(cls, image: Image.Image) -> DensityField:
        if "A" in image.getbands():
            channel = image.getchannel("A")
        else:
            channel = image.convert("L")
        width, height = channel.size
        return cls(width=int(width), height=int(height), cells=channel.tobytes())

    @classmethod
    def from_path(cls, path: str | Path) -> DensityField:
        with Image.open(path) as image:
            image.load()
            return cls.from_image(image)

    @classmethod
    def uniform(cls, width: int, height: int, solidity: float = 0.0) -> DensityField:
        value = int(round(min(max(float(solidity), 0.0), 1.0) * 255.0))
        return cls(width=int(width), height=int(height), cells=bytes([value]) * (int(width) * int(height)))

    def cell(self, col: int, row: int) -> float:
        col = int(col) % self.width
        row = int(row) % self.height
        return self.cells[row * self.width + col] / 255.0

    def solidity(self, point: SupportsXY) -> float:
        """Solidity of the cell containing `point` (floored, no interpolation)."""
        return self.cell(math.floor(point.x), math.floor(point.y))


__all__ = ["DensityField"]
