"""
どこで: `shapes.rotated_rectangle`。
何を: 中心・全幅/全高・角度で表す回転矩形。4 隅を回転して凸四角形として塗る。
なぜ: 軸平行矩形では表せない斜めのブロック状領域を覆うため。

妥当性: 長辺/短辺の比が 5 以下（極端に細長い矩形は線形状に任せる）。
"""

from __future__ import annotations

import math

import numpy as np

from common.types import SpanArray
from engine.core.rasterizer import rasterize_quad

from .base import BaseShape, clamp, gauss_step
from .kinds import ShapeKind
from .registry import shape_kind

MAX_ASPECT = 5.0
ANGLE_STEP = 32


def _rotate(x: float, y: float, theta: float) -> tuple[float, float]:
    c = math.cos(theta)
    s = math.sin(theta)
    return x * c - y * s, x * s + y * c


@shape_kind(ShapeKind.ROTATED_RECTANGLE)
class RotatedRectangle(BaseShape):
    """raw: `(x, y, sx, sy, angle)`"""

    _fields = ("x", "y", "sx", "sy", "angle")
    has_predicate = True

    def __init__(
        self, x: int, y: int, sx: int, sy: int, angle: int, width: int, height: int
    ) -> None:
        super().__init__(width, height)
        self.x = int(x)
        self.y = int(y)
        self.sx = int(sx)
        self.sy = int(sy)
        self.angle = int(angle) % 360

    @classmethod
    def random(cls, width: int, height: int, rng: np.random.Generator) -> "RotatedRectangle":
        def _draw() -> "RotatedRectangle":
            x = int(rng.integers(width))
            y = int(rng.integers(height))
            sx = int(rng.integers(32)) + 1
            sy = int(rng.integers(32)) + 1
            angle = int(rng.integers(360))
            return cls(x, y, sx, sy, angle, width, height)

        return cls._draw_valid(_draw, rng)

    def _mutate_once(self, rng: np.random.Generator) -> None:
        group = int(rng.integers(3))
        if group == 0:
            self.x = clamp(self.x + gauss_step(rng), 0, self.width - 1)
            self.y = clamp(self.y + gauss_step(rng), 0, self.height - 1)
        elif group == 1:
            self.sx = clamp(self.sx + gauss_step(rng), 1, self.width - 1)
            self.sy = clamp(self.sy + gauss_step(rng), 1, self.height - 1)
        else:
            self.angle = (self.angle + gauss_step(rng, ANGLE_STEP)) % 360

    def is_valid(self) -> bool:
        a, b = max(self.sx, self.sy), min(self.sx, self.sy)
        if b <= 0:
            return False
        return a / b <= MAX_ASPECT

    def corners(self) -> tuple[np.ndarray, np.ndarray]:
        """回転後の 4 隅（各成分を 0 方向へ切り捨ててから中心を足す）。"""
        theta = math.radians(self.angle)
        hx = self.sx / 2.0
        hy = self.sy / 2.0
        xs = np.empty(4, dtype=np.int64)
        ys = np.empty(4, dtype=np.int64)
        for i, (px, py) in enumerate(((-hx, -hy), (hx, -hy), (hx, hy), (-hx, hy))):
            rx, ry = _rotate(px, py, theta)
            xs[i] = int(rx) + self.x
            ys[i] = int(ry) + self.y
        return xs, ys

    def rasterize(self) -> SpanArray:
        xs, ys = self.corners()
        return rasterize_quad(xs, ys, self.width, self.height)

    def raw(self) -> tuple[float, ...]:
        return tuple(float(getattr(self, f)) for f in self._fields)

    def svg(self, attrs: str) -> str:
        return (
            f'<g transform="translate({self.x} {self.y}) rotate({self.angle}) '
            f'scale({self.sx} {self.sy})">'
            f'<rect {attrs} x="-0.5" y="-0.5" width="1" height="1" /></g>'
        )


__all__ = ["RotatedRectangle"]
