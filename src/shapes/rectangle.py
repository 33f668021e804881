from __future__ import annotations

import numpy as np

from common.types import SpanArray
from engine.core.scanline import FULL_COVERAGE, crop_spans, empty_spans, merge_spans

from .base import BaseShape, clamp, gauss_step
from .kinds import ShapeKind
from .registry import shape_kind


@shape_kind(ShapeKind.RECTANGLE)
class Rectangle(BaseShape):
    """軸平行矩形（対角 2 頂点）。

    塗りは行 `min_y .. max_y - 1`、列 `min_x .. max_x`。`x1 == x2` の矩形は何も塗らない。
    raw: `(min_x, min_y, max_x, max_y)`
    """

    _fields = ("x1", "y1", "x2", "y2")

    def __init__(self, x1: int, y1: int, x2: int, y2: int, width: int, height: int) -> None:
        super().__init__(width, height)
        self.x1 = int(x1)
        self.y1 = int(y1)
        self.x2 = int(x2)
        self.y2 = int(y2)

    @classmethod
    def random(cls, width: int, height: int, rng: np.random.Generator) -> "Rectangle":
        x1 = int(rng.integers(width))
        y1 = int(rng.integers(height))
        x2 = clamp(x1 + int(rng.integers(32)) + 1, 0, width - 1)
        y2 = clamp(y1 + int(rng.integers(32)) + 1, 0, height - 1)
        return cls(x1, y1, x2, y2, width, height)

    def bounds(self) -> tuple[int, int, int, int]:
        """`(min_x, min_y, max_x, max_y)`"""
        return (
            min(self.x1, self.x2),
            min(self.y1, self.y2),
            max(self.x1, self.x2),
            max(self.y1, self.y2),
        )

    def _mutate_once(self, rng: np.random.Generator) -> None:
        if int(rng.integers(2)) == 0:
            self.x1 = clamp(self.x1 + gauss_step(rng), 0, self.width - 1)
            self.y1 = clamp(self.y1 + gauss_step(rng), 0, self.height - 1)
        else:
            self.x2 = clamp(self.x2 + gauss_step(rng), 0, self.width - 1)
            self.y2 = clamp(self.y2 + gauss_step(rng), 0, self.height - 1)

    def rasterize(self) -> SpanArray:
        min_x, min_y, max_x, max_y = self.bounds()
        if self.x1 == self.x2 or max_y <= min_y:
            return empty_spans()
        # 行は min_y..max_y-1 で下端を含まず、列は両端を含む。出力互換のため意図的にこのまま
        rows = max_y - min_y
        spans = np.empty((rows, 4), dtype=np.int32)
        spans[:, 0] = np.arange(min_y, max_y, dtype=np.int32)
        spans[:, 1] = min_x
        spans[:, 2] = max_x
        spans[:, 3] = FULL_COVERAGE
        return merge_spans(crop_spans(spans, self.width, self.height))

    def raw(self) -> tuple[float, ...]:
        return tuple(float(v) for v in self.bounds())

    def svg(self, attrs: str) -> str:
        min_x, min_y, max_x, max_y = self.bounds()
        return (
            f'<rect {attrs} x="{min_x}" y="{min_y}" '
            f'width="{max_x - min_x}" height="{max_y - min_y}" />'
        )


__all__ = ["Rectangle"]
