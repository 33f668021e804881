from __future__ import annotations

import numpy as np

from common.types import SpanArray
from engine.core.rasterizer import rasterize_ellipse

from .base import BaseShape, clamp, gauss_step
from .kinds import ShapeKind
from .registry import shape_kind


@shape_kind(ShapeKind.ELLIPSE)
class Ellipse(BaseShape):
    """軸平行の楕円。raw: `(cx, cy, rx, ry)`"""

    _fields = ("cx", "cy", "rx", "ry")

    def __init__(self, cx: int, cy: int, rx: int, ry: int, width: int, height: int) -> None:
        super().__init__(width, height)
        self.cx = int(cx)
        self.cy = int(cy)
        self.rx = int(rx)
        self.ry = int(ry)

    @classmethod
    def random(cls, width: int, height: int, rng: np.random.Generator) -> "Ellipse":
        cx = int(rng.integers(width))
        cy = int(rng.integers(height))
        rx = int(rng.integers(32)) + 1
        ry = int(rng.integers(32)) + 1
        return cls(cx, cy, rx, ry, width, height)

    def _mutate_once(self, rng: np.random.Generator) -> None:
        group = int(rng.integers(3))
        if group == 0:
            self.cx = clamp(self.cx + gauss_step(rng), 0, self.width - 1)
            self.cy = clamp(self.cy + gauss_step(rng), 0, self.height - 1)
        elif group == 1:
            self.rx = clamp(self.rx + gauss_step(rng), 1, self.width - 1)
        else:
            self.ry = clamp(self.ry + gauss_step(rng), 1, self.height - 1)

    def rasterize(self) -> SpanArray:
        return rasterize_ellipse(self.cx, self.cy, self.rx, self.ry, self.width, self.height)

    def raw(self) -> tuple[float, ...]:
        return (float(self.cx), float(self.cy), float(self.rx), float(self.ry))

    def svg(self, attrs: str) -> str:
        return (
            f'<ellipse {attrs} cx="{self.cx}" cy="{self.cy}" rx="{self.rx}" ry="{self.ry}" />'
        )


__all__ = ["Ellipse"]
