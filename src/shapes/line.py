"""
どこで: `shapes.line`。
何を: 2 端点の線分（Bresenham で 1 画素幅にラスタライズ）。
なぜ: 線/曲線系の最小単位として、細部のエッジを追従させるため。

線幅 `stroke_width` は変異の対象だが、ラスタライズと SVG 出力はともに 1 画素幅で行う。
"""

from __future__ import annotations

import numpy as np

from common.types import SpanArray
from engine.core.rasterizer import rasterize_line

from .base import BaseShape, clamp, gauss_step, uniform_offset
from .kinds import ShapeKind
from .registry import shape_kind


@shape_kind(ShapeKind.LINE)
class Line(BaseShape):
    _fields = ("x1", "y1", "x2", "y2", "stroke_width")

    def __init__(
        self,
        x1: int,
        y1: int,
        x2: int,
        y2: int,
        width: int,
        height: int,
        stroke_width: float = 0.5,
    ) -> None:
        super().__init__(width, height)
        self.x1 = int(x1)
        self.y1 = int(y1)
        self.x2 = int(x2)
        self.y2 = int(y2)
        self.stroke_width = float(stroke_width)

    @classmethod
    def random(cls, width: int, height: int, rng: np.random.Generator) -> "Line":
        x1 = int(rng.integers(width))
        y1 = int(rng.integers(height))
        x2 = x1 + uniform_offset(rng)
        y2 = y1 + uniform_offset(rng)
        return cls(x1, y1, x2, y2, width, height)

    def _mutate_once(self, rng: np.random.Generator) -> None:
        group = int(rng.integers(3))
        if group == 0:
            self.x1 = clamp(self.x1 + gauss_step(rng), 0, self.width - 1)
            self.y1 = clamp(self.y1 + gauss_step(rng), 0, self.height - 1)
        elif group == 1:
            self.x2 = clamp(self.x2 + gauss_step(rng), 0, self.width - 1)
            self.y2 = clamp(self.y2 + gauss_step(rng), 0, self.height - 1)
        else:
            self.stroke_width = clamp(self.stroke_width + float(rng.standard_normal()), 1.0, 16.0)

    def rasterize(self) -> SpanArray:
        return rasterize_line(self.x1, self.y1, self.x2, self.y2, self.width, self.height)

    def raw(self) -> tuple[float, ...]:
        return (float(self.x1), float(self.y1), float(self.x2), float(self.y2))

    def svg(self, attrs: str) -> str:
        return (
            f'<line {attrs} stroke-width="{1.0:f}" '
            f'x1="{self.x1}" y1="{self.y1}" x2="{self.x2}" y2="{self.y2}" />'
        )


__all__ = ["Line"]
