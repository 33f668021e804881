from __future__ import annotations

import numpy as np

from common.types import SpanArray
from engine.core.rasterizer import rasterize_ellipse

from .base import BaseShape, clamp, gauss_step
from .kinds import ShapeKind
from .registry import shape_kind


@shape_kind(ShapeKind.CIRCLE)
class Circle(BaseShape):
    """中心 `(cx, cy)`・半径 `r` の円。

    raw: `(cx, cy, r)`
    """

    _fields = ("cx", "cy", "r")

    def __init__(self, cx: int, cy: int, r: int, width: int, height: int) -> None:
        super().__init__(width, height)
        self.cx = int(cx)
        self.cy = int(cy)
        self.r = int(r)

    @classmethod
    def random(cls, width: int, height: int, rng: np.random.Generator) -> "Circle":
        cx = int(rng.integers(width))
        cy = int(rng.integers(height))
        r = int(rng.integers(32)) + 1
        return cls(cx, cy, r, width, height)

    def _mutate_once(self, rng: np.random.Generator) -> None:
        if int(rng.integers(2)) == 0:
            self.cx = clamp(self.cx + gauss_step(rng), 0, self.width - 1)
            self.cy = clamp(self.cy + gauss_step(rng), 0, self.height - 1)
        else:
            # 半径は幅と高さの両方に収める
            self.r = clamp(self.r + gauss_step(rng), 1, self.width - 1)
            self.r = clamp(self.r, 1, self.height - 1)

    def rasterize(self) -> SpanArray:
        return rasterize_ellipse(self.cx, self.cy, self.r, self.r, self.width, self.height)

    def raw(self) -> tuple[float, ...]:
        return (float(self.cx), float(self.cy), float(self.r))

    def svg(self, attrs: str) -> str:
        return f'<circle {attrs} cx="{self.cx}" cy="{self.cy}" r="{self.r}" />'


__all__ = ["Circle"]
