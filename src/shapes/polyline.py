from __future__ import annotations

import numpy as np

from common.types import SpanArray
from engine.core.rasterizer import as_int_array, rasterize_path

from .base import BaseShape, clamp, gauss_step, uniform_offset
from .kinds import ShapeKind
from .registry import shape_kind

POINT_COUNT = 4


def format_points(xs: list[int], ys: list[int]) -> str:
    """SVG の points 属性（"x,y,x,y,..."）。"""
    return ",".join(f"{x},{y}" for x, y in zip(xs, ys))


@shape_kind(ShapeKind.POLYLINE)
class Polyline(BaseShape):
    """4 頂点の折れ線。raw: `(x0, y0, x1, y1, x2, y2, x3, y3)`"""

    _fields = ("xs", "ys")

    def __init__(self, xs: list[int], ys: list[int], width: int, height: int) -> None:
        super().__init__(width, height)
        if len(xs) != len(ys) or len(xs) < 2:
            raise ValueError(f"頂点列の長さが不正です: xs={len(xs)}, ys={len(ys)}")
        self.xs = [int(v) for v in xs]
        self.ys = [int(v) for v in ys]

    @classmethod
    def random(cls, width: int, height: int, rng: np.random.Generator) -> "Polyline":
        x0 = int(rng.integers(width))
        y0 = int(rng.integers(height))
        xs = [x0]
        ys = [y0]
        for _ in range(1, POINT_COUNT):
            xs.append(x0 + uniform_offset(rng))
            ys.append(y0 + uniform_offset(rng))
        return cls(xs, ys, width, height)

    def _mutate_once(self, rng: np.random.Generator) -> None:
        i = int(rng.integers(len(self.xs)))
        self.xs[i] = clamp(self.xs[i] + gauss_step(rng), 0, self.width - 1)
        self.ys[i] = clamp(self.ys[i] + gauss_step(rng), 0, self.height - 1)

    def rasterize(self) -> SpanArray:
        return rasterize_path(as_int_array(self.xs), as_int_array(self.ys), self.width, self.height)

    def raw(self) -> tuple[float, ...]:
        out: list[float] = []
        for x, y in zip(self.xs, self.ys):
            out.extend((float(x), float(y)))
        return tuple(out)

    def svg(self, attrs: str) -> str:
        return (
            f'<polyline {attrs} stroke-width="{1.0:f}" '
            f'points="{format_points(self.xs, self.ys)}" />'
        )


__all__ = ["Polyline", "format_points"]
