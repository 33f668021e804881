"""
どこで: `shapes.polygon`。
何を: 任意次数（既定 4）の多角形。頂点交換と頂点摂動で変異し、アクティブエッジ表で塗る。
なぜ: 自己交差を許す多角形は三角形より少ない形状数で複雑な領域を覆えるため。

- 既定は非凸（自己交差を許容）。`convex=True` のときは全頂点で外積の符号が揃うことを要求する。
- 頂点はキャンバス外 16px までのはみ出しを許す（ラスタライズ時にクリップ）。
"""

from __future__ import annotations

import numpy as np

from common.types import SpanArray
from engine.core.rasterizer import as_int_array, rasterize_polygon

from .base import CURVE_MARGIN, BaseShape, clamp, gauss_step, uniform_offset
from .kinds import ShapeKind
from .polyline import format_points
from .registry import shape_kind

DEFAULT_ORDER = 4
SWAP_PROBABILITY = 0.25


def _cross3(x1: int, y1: int, x2: int, y2: int, x3: int, y3: int) -> float:
    dx1 = x2 - x1
    dy1 = y2 - y1
    dx2 = x3 - x2
    dy2 = y3 - y2
    return float(dx1 * dy2 - dy1 * dx2)


@shape_kind(ShapeKind.POLYGON)
class Polygon(BaseShape):
    """raw: `(x0, y0, x1, y1, ...)`（長さ `2 * order`）"""

    _fields = ("xs", "ys", "convex")
    has_predicate = True

    def __init__(
        self,
        xs: list[int],
        ys: list[int],
        width: int,
        height: int,
        convex: bool = False,
    ) -> None:
        super().__init__(width, height)
        if len(xs) != len(ys) or len(xs) < 3:
            raise ValueError(f"多角形の頂点数が不正です: xs={len(xs)}, ys={len(ys)}")
        self.xs = [int(v) for v in xs]
        self.ys = [int(v) for v in ys]
        self.convex = bool(convex)

    @property
    def order(self) -> int:
        return len(self.xs)

    @classmethod
    def random(
        cls,
        width: int,
        height: int,
        rng: np.random.Generator,
        order: int = DEFAULT_ORDER,
        convex: bool = False,
    ) -> "Polygon":
        def _draw() -> "Polygon":
            x0 = int(rng.random() * width)
            y0 = int(rng.random() * height)
            xs = [x0]
            ys = [y0]
            for _ in range(1, order):
                xs.append(x0 + uniform_offset(rng))
                ys.append(y0 + uniform_offset(rng))
            return cls(xs, ys, width, height, convex=convex)

        return cls._draw_valid(_draw, rng)

    def _mutate_once(self, rng: np.random.Generator) -> None:
        n = self.order
        if rng.random() < SWAP_PROBABILITY:
            i = int(rng.integers(n))
            j = int(rng.integers(n))
            if i != j:
                self.xs[i], self.xs[j] = self.xs[j], self.xs[i]
                self.ys[i], self.ys[j] = self.ys[j], self.ys[i]
            return
        i = int(rng.integers(n))
        m = CURVE_MARGIN
        self.xs[i] = clamp(self.xs[i] + gauss_step(rng), -m, self.width - 1 + m)
        self.ys[i] = clamp(self.ys[i] + gauss_step(rng), -m, self.height - 1 + m)

    def is_valid(self) -> bool:
        if not self.convex:
            return True
        n = self.order
        sign = False
        for a in range(n):
            i, j, k = a, (a + 1) % n, (a + 2) % n
            c = _cross3(self.xs[i], self.ys[i], self.xs[j], self.ys[j], self.xs[k], self.ys[k])
            if a == 0:
                sign = c > 0
            elif (c > 0) != sign:
                return False
        return True

    def rasterize(self) -> SpanArray:
        return rasterize_polygon(
            as_int_array(self.xs), as_int_array(self.ys), self.width, self.height
        )

    def raw(self) -> tuple[float, ...]:
        out: list[float] = []
        for x, y in zip(self.xs, self.ys):
            out.extend((float(x), float(y)))
        return tuple(out)

    def svg(self, attrs: str) -> str:
        return f'<polygon {attrs} points="{format_points(self.xs, self.ys)}" />'


__all__ = ["Polygon"]
