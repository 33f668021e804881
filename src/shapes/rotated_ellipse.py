"""
どこで: `shapes.rotated_ellipse`。
何を: 任意角度に回転した楕円。20 頂点の多角形で近似してラスタライズする。
なぜ: 斜めに伸びた筆致のような領域を 1 形状で覆うため。

角度は度（整数）で持ち、変異後も `[0, 360)` に正規化する。
"""

from __future__ import annotations

import math

import numpy as np

from common.types import SpanArray
from engine.core.rasterizer import rasterize_polygon

from .base import BaseShape, clamp, gauss_step
from .kinds import ShapeKind
from .registry import shape_kind

POLYGON_POINTS = 20
ANGLE_STEP = 32


@shape_kind(ShapeKind.ROTATED_ELLIPSE)
class RotatedEllipse(BaseShape):
    """raw: `(cx, cy, rx, ry, angle)`"""

    _fields = ("cx", "cy", "rx", "ry", "angle")

    def __init__(
        self, cx: int, cy: int, rx: int, ry: int, angle: int, width: int, height: int
    ) -> None:
        super().__init__(width, height)
        self.cx = int(cx)
        self.cy = int(cy)
        self.rx = int(rx)
        self.ry = int(ry)
        self.angle = int(angle) % 360

    @classmethod
    def random(cls, width: int, height: int, rng: np.random.Generator) -> "RotatedEllipse":
        cx = int(rng.integers(width))
        cy = int(rng.integers(height))
        rx = int(rng.integers(32)) + 1
        ry = int(rng.integers(32)) + 1
        angle = int(rng.integers(360))
        return cls(cx, cy, rx, ry, angle, width, height)

    def _mutate_once(self, rng: np.random.Generator) -> None:
        group = int(rng.integers(4))
        if group == 0:
            self.cx = clamp(self.cx + gauss_step(rng), 0, self.width - 1)
            self.cy = clamp(self.cy + gauss_step(rng), 0, self.height - 1)
        elif group == 1:
            self.rx = clamp(self.rx + gauss_step(rng), 1, self.width - 1)
        elif group == 2:
            self.ry = clamp(self.ry + gauss_step(rng), 1, self.height - 1)
        else:
            self.angle = (self.angle + gauss_step(rng, ANGLE_STEP)) % 360

    def polygon_points(self) -> tuple[np.ndarray, np.ndarray]:
        """近似多角形の頂点（0 方向へ切り捨てた整数座標）。"""
        rads = math.radians(self.angle)
        c = math.cos(rads)
        s = math.sin(rads)
        rot = np.radians((360.0 / POLYGON_POINTS) * np.arange(POLYGON_POINTS, dtype=np.float64))
        crx = self.rx * np.cos(rot)
        cry = self.ry * np.sin(rot)
        xs = crx * c - cry * s + self.cx
        ys = crx * s + cry * c + self.cy
        return xs.astype(np.int64), ys.astype(np.int64)

    def rasterize(self) -> SpanArray:
        xs, ys = self.polygon_points()
        return rasterize_polygon(xs, ys, self.width, self.height)

    def raw(self) -> tuple[float, ...]:
        return tuple(float(getattr(self, f)) for f in self._fields)

    def svg(self, attrs: str) -> str:
        return (
            f'<g transform="translate({self.cx} {self.cy}) rotate({self.angle}) '
            f'scale({self.rx} {self.ry})">'
            f'<ellipse {attrs} cx="0" cy="0" rx="1" ry="1" /></g>'
        )


__all__ = ["RotatedEllipse"]
