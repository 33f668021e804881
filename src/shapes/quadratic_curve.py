"""
どこで: `shapes.quadratic_curve`。
何を: 2 次ベジエ曲線（始点・制御点・終点）。20 分割のサンプル点を折れ線としてラスタライズする。
なぜ: 線分では追いにくい緩やかな曲線状のエッジを 1 形状で表すため。

妥当性: 端点間の二乗距離が各制御区間の二乗距離より大きいこと（制御点が端点の外側へ
        折り返した退化形を除外する）。
"""

from __future__ import annotations

import numpy as np

from common.types import SpanArray
from engine.core.rasterizer import rasterize_path

from .base import CURVE_MARGIN, BaseShape, clamp, gauss_step, uniform_offset
from .kinds import ShapeKind
from .registry import shape_kind

SAMPLE_STEPS = 20


def _sq(dx: int, dy: int) -> int:
    return dx * dx + dy * dy


@shape_kind(ShapeKind.QUADRATIC_CURVE)
class QuadraticCurve(BaseShape):
    """raw: `(x1, y1, cx, cy, x2, y2, stroke_width)`"""

    _fields = ("x1", "y1", "cx", "cy", "x2", "y2", "stroke_width")
    has_predicate = True

    def __init__(
        self,
        x1: int,
        y1: int,
        cx: int,
        cy: int,
        x2: int,
        y2: int,
        width: int,
        height: int,
        stroke_width: float = 0.5,
    ) -> None:
        super().__init__(width, height)
        self.x1 = int(x1)
        self.y1 = int(y1)
        self.cx = int(cx)
        self.cy = int(cy)
        self.x2 = int(x2)
        self.y2 = int(y2)
        self.stroke_width = float(stroke_width)

    @classmethod
    def random(cls, width: int, height: int, rng: np.random.Generator) -> "QuadraticCurve":
        def _draw() -> "QuadraticCurve":
            x1 = int(rng.integers(width))
            y1 = int(rng.integers(height))
            cx = x1 + uniform_offset(rng)
            cy = y1 + uniform_offset(rng)
            x2 = cx + uniform_offset(rng)
            y2 = cy + uniform_offset(rng)
            return cls(x1, y1, cx, cy, x2, y2, width, height)

        return cls._draw_valid(_draw, rng)

    def _mutate_once(self, rng: np.random.Generator) -> None:
        m = CURVE_MARGIN
        w1 = self.width - 1 + m
        h1 = self.height - 1 + m
        group = int(rng.integers(4))
        if group == 0:
            self.x1 = clamp(self.x1 + gauss_step(rng), -m, w1)
            self.y1 = clamp(self.y1 + gauss_step(rng), -m, h1)
        elif group == 1:
            self.cx = clamp(self.cx + gauss_step(rng), -m, w1)
            self.cy = clamp(self.cy + gauss_step(rng), -m, h1)
        elif group == 2:
            self.x2 = clamp(self.x2 + gauss_step(rng), -m, w1)
            self.y2 = clamp(self.y2 + gauss_step(rng), -m, h1)
        else:
            self.stroke_width = clamp(self.stroke_width + float(rng.standard_normal()), 1.0, 16.0)

    def is_valid(self) -> bool:
        d12 = _sq(self.x1 - self.cx, self.y1 - self.cy)
        d23 = _sq(self.cx - self.x2, self.cy - self.y2)
        d13 = _sq(self.x1 - self.x2, self.y1 - self.y2)
        return d13 > d12 and d13 > d23

    def sample_points(self) -> tuple[np.ndarray, np.ndarray]:
        """`SAMPLE_STEPS + 1` 点のサンプル（0 方向へ切り捨てた整数座標）。"""
        t = np.arange(SAMPLE_STEPS + 1, dtype=np.float64) / SAMPLE_STEPS
        u = 1.0 - t
        xs = self.x1 * u * u + 2 * self.cx * u * t + self.x2 * t * t
        ys = self.y1 * u * u + 2 * self.cy * u * t + self.y2 * t * t
        return xs.astype(np.int64), ys.astype(np.int64)

    def rasterize(self) -> SpanArray:
        xs, ys = self.sample_points()
        return rasterize_path(xs, ys, self.width, self.height)

    def raw(self) -> tuple[float, ...]:
        return (
            float(self.x1),
            float(self.y1),
            float(self.cx),
            float(self.cy),
            float(self.x2),
            float(self.y2),
            float(self.stroke_width),
        )

    def svg(self, attrs: str) -> str:
        return (
            f'<path {attrs} stroke-width="{1.0:f}" '
            f'd="M {self.x1:f} {self.y1:f} Q {self.cx:f} {self.cy:f}, {self.x2:f} {self.y2:f}" />'
        )


__all__ = ["QuadraticCurve"]
