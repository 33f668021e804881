"""
どこで: `shapes.triangle`。
何を: 3 頂点の三角形。平底/平頂分割でラスタライズし、内角がすべて 15° を超える形だけを許す。
なぜ: 細すぎる三角形は画素に乗らず評価が不安定になるため、変異段階で除外する。
"""

from __future__ import annotations

import math

import numpy as np

from common.types import SpanArray
from engine.core.rasterizer import rasterize_triangle

from .base import CURVE_MARGIN, BaseShape, clamp, gauss_step
from .kinds import ShapeKind
from .registry import shape_kind

MIN_DEGREE = 15.0


def _angle_at(px: int, py: int, ax: int, ay: int, bx: int, by: int) -> float | None:
    """頂点 p における角 a-p-b（度）。辺の長さが 0 のときは None。"""
    dx1 = ax - px
    dy1 = ay - py
    dx2 = bx - px
    dy2 = by - py
    d1 = math.hypot(dx1, dy1)
    d2 = math.hypot(dx2, dy2)
    if d1 == 0.0 or d2 == 0.0:
        return None
    cos_v = (dx1 * dx2 + dy1 * dy2) / (d1 * d2)
    return math.degrees(math.acos(max(-1.0, min(1.0, cos_v))))


@shape_kind(ShapeKind.TRIANGLE)
class Triangle(BaseShape):
    """raw: `(x1, y1, x2, y2, x3, y3)`"""

    _fields = ("x1", "y1", "x2", "y2", "x3", "y3")
    has_predicate = True

    def __init__(
        self, x1: int, y1: int, x2: int, y2: int, x3: int, y3: int, width: int, height: int
    ) -> None:
        super().__init__(width, height)
        self.x1 = int(x1)
        self.y1 = int(y1)
        self.x2 = int(x2)
        self.y2 = int(y2)
        self.x3 = int(x3)
        self.y3 = int(y3)

    @classmethod
    def random(cls, width: int, height: int, rng: np.random.Generator) -> "Triangle":
        def _draw() -> "Triangle":
            x1 = int(rng.integers(width))
            y1 = int(rng.integers(height))
            x2 = x1 + int(rng.integers(31)) - 15
            y2 = y1 + int(rng.integers(31)) - 15
            x3 = x1 + int(rng.integers(31)) - 15
            y3 = y1 + int(rng.integers(31)) - 15
            return cls(x1, y1, x2, y2, x3, y3, width, height)

        return cls._draw_valid(_draw, rng)

    def _mutate_once(self, rng: np.random.Generator) -> None:
        m = CURVE_MARGIN
        w1 = self.width - 1 + m
        h1 = self.height - 1 + m
        group = int(rng.integers(3))
        if group == 0:
            self.x1 = clamp(self.x1 + gauss_step(rng), -m, w1)
            self.y1 = clamp(self.y1 + gauss_step(rng), -m, h1)
        elif group == 1:
            self.x2 = clamp(self.x2 + gauss_step(rng), -m, w1)
            self.y2 = clamp(self.y2 + gauss_step(rng), -m, h1)
        else:
            self.x3 = clamp(self.x3 + gauss_step(rng), -m, w1)
            self.y3 = clamp(self.y3 + gauss_step(rng), -m, h1)

    def angles(self) -> tuple[float, float, float] | None:
        """3 つの内角（度）。退化（頂点の重複）時は None。"""
        a1 = _angle_at(self.x1, self.y1, self.x2, self.y2, self.x3, self.y3)
        a2 = _angle_at(self.x2, self.y2, self.x1, self.y1, self.x3, self.y3)
        if a1 is None or a2 is None:
            return None
        return a1, a2, 180.0 - a1 - a2

    def is_valid(self) -> bool:
        angles = self.angles()
        if angles is None:
            return False
        return all(a > MIN_DEGREE for a in angles)

    def rasterize(self) -> SpanArray:
        return rasterize_triangle(
            self.x1, self.y1, self.x2, self.y2, self.x3, self.y3, self.width, self.height
        )

    def raw(self) -> tuple[float, ...]:
        return tuple(float(getattr(self, f)) for f in self._fields)

    def svg(self, attrs: str) -> str:
        return (
            f'<polygon {attrs} points="{self.x1},{self.y1},{self.x2},{self.y2},'
            f'{self.x3},{self.y3}" />'
        )


__all__ = ["Triangle"]
