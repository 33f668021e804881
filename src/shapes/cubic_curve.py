from __future__ import annotations

import numpy as np

from common.types import SpanArray
from engine.core.rasterizer import rasterize_path

from .base import CURVE_MARGIN, BaseShape, clamp, gauss_step, uniform_offset
from .kinds import ShapeKind
from .quadratic_curve import SAMPLE_STEPS
from .registry import shape_kind


def _sq(dx: int, dy: int) -> int:
    return dx * dx + dy * dy


@shape_kind(ShapeKind.CUBIC_CURVE)
class CubicCurve(BaseShape):
    """3 次ベジエ曲線（始点・制御点 2 つ・終点）。

    raw: `(x1, y1, cx1, cy1, cx2, cy2, x2, y2, stroke_width)`
    妥当性: 端点間の二乗距離が 3 つの制御区間それぞれの二乗距離より大きいこと。
    """

    _fields = ("x1", "y1", "cx1", "cy1", "cx2", "cy2", "x2", "y2", "stroke_width")
    has_predicate = True

    def __init__(
        self,
        x1: int,
        y1: int,
        cx1: int,
        cy1: int,
        cx2: int,
        cy2: int,
        x2: int,
        y2: int,
        width: int,
        height: int,
        stroke_width: float = 0.5,
    ) -> None:
        super().__init__(width, height)
        self.x1 = int(x1)
        self.y1 = int(y1)
        self.cx1 = int(cx1)
        self.cy1 = int(cy1)
        self.cx2 = int(cx2)
        self.cy2 = int(cy2)
        self.x2 = int(x2)
        self.y2 = int(y2)
        self.stroke_width = float(stroke_width)

    @classmethod
    def random(cls, width: int, height: int, rng: np.random.Generator) -> "CubicCurve":
        def _draw() -> "CubicCurve":
            x1 = int(rng.integers(width))
            y1 = int(rng.integers(height))
            cx1 = x1 + uniform_offset(rng)
            cy1 = y1 + uniform_offset(rng)
            cx2 = cx1 + uniform_offset(rng)
            cy2 = cy1 + uniform_offset(rng)
            x2 = cx2 + uniform_offset(rng)
            y2 = cy2 + uniform_offset(rng)
            return cls(x1, y1, cx1, cy1, cx2, cy2, x2, y2, width, height)

        return cls._draw_valid(_draw, rng)

    def _mutate_once(self, rng: np.random.Generator) -> None:
        m = CURVE_MARGIN
        w1 = self.width - 1 + m
        h1 = self.height - 1 + m
        group = int(rng.integers(5))
        if group == 0:
            self.x1 = clamp(self.x1 + gauss_step(rng), -m, w1)
            self.y1 = clamp(self.y1 + gauss_step(rng), -m, h1)
        elif group == 1:
            self.cx1 = clamp(self.cx1 + gauss_step(rng), -m, w1)
            self.cy1 = clamp(self.cy1 + gauss_step(rng), -m, h1)
        elif group == 2:
            self.cx2 = clamp(self.cx2 + gauss_step(rng), -m, w1)
            self.cy2 = clamp(self.cy2 + gauss_step(rng), -m, h1)
        elif group == 3:
            self.x2 = clamp(self.x2 + gauss_step(rng), -m, w1)
            self.y2 = clamp(self.y2 + gauss_step(rng), -m, h1)
        else:
            self.stroke_width = clamp(self.stroke_width + float(rng.standard_normal()), 1.0, 16.0)

    def is_valid(self) -> bool:
        d12 = _sq(self.x1 - self.cx1, self.y1 - self.cy1)
        d23 = _sq(self.cx1 - self.cx2, self.cy1 - self.cy2)
        d34 = _sq(self.cx2 - self.x2, self.cy2 - self.y2)
        d13 = _sq(self.x1 - self.x2, self.y1 - self.y2)
        return d13 > d12 and d13 > d23 and d13 > d34

    def rasterize(self) -> SpanArray:
        t = np.arange(SAMPLE_STEPS + 1, dtype=np.float64) / SAMPLE_STEPS
        u = 1.0 - t
        xs = (
            self.x1 * u * u * u
            + 3 * self.cx1 * u * u * t
            + 3 * self.cx2 * u * t * t
            + self.x2 * t * t * t
        )
        ys = (
            self.y1 * u * u * u
            + 3 * self.cy1 * u * u * t
            + 3 * self.cy2 * u * t * t
            + self.y2 * t * t * t
        )
        return rasterize_path(xs.astype(np.int64), ys.astype(np.int64), self.width, self.height)

    def raw(self) -> tuple[float, ...]:
        return tuple(float(getattr(self, f)) for f in self._fields)

    def svg(self, attrs: str) -> str:
        return (
            f'<path {attrs} stroke-width="{1.0:f}" '
            f'd="M {self.x1:f} {self.y1:f} C {self.cx1:f} {self.cy1:f}, '
            f'{self.cx2:f} {self.cy2:f}, {self.x2:f} {self.y2:f}" />'
        )


__all__ = ["CubicCurve"]
