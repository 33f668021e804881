"""
どこで: `engine.core.scanline`。
何を: スキャンライン（行 y の水平区間 [x1, x2] と被覆重み）を `(N, 4)` の int32 配列で表し、
      キャンバス境界へのクリップ `crop_spans` を提供する。
なぜ: 形状ジオメトリと画素書き込みの中間表現を numba カーネル間で受け渡すため。

列の並び: `y, x1, x2, alpha`（alpha は 16bit 固定小数、0xFFFF = 完全被覆）。
クリップ後は常に `0 <= y < h`, `0 <= x1 <= x2 < w`。
"""

from __future__ import annotations

from typing import Iterable

import numpy as np
from numba import njit  # type: ignore[attr-defined]

from common.types import SpanArray

FULL_COVERAGE = 0xFFFF
SPAN_Y, SPAN_X1, SPAN_X2, SPAN_ALPHA = 0, 1, 2, 3


def empty_spans() -> SpanArray:
    return np.zeros((0, 4), dtype=np.int32)


def make_spans(rows: Iterable[tuple[int, int, int] | tuple[int, int, int, int]]) -> SpanArray:
    """`(y, x1, x2[, alpha])` の列からスパン配列を作る（クリップはしない）。"""
    out: list[tuple[int, int, int, int]] = []
    for row in rows:
        if len(row) == 3:
            y, x1, x2 = row  # type: ignore[misc]
            a = FULL_COVERAGE
        elif len(row) == 4:
            y, x1, x2, a = row  # type: ignore[misc]
        else:
            raise ValueError(f"スパンは (y, x1, x2[, alpha]) である必要があります: {row!r}")
        out.append((int(y), int(x1), int(x2), int(a)))
    if not out:
        return empty_spans()
    return np.asarray(out, dtype=np.int32)


def full_canvas_spans(width: int, height: int) -> SpanArray:
    """キャンバス全面を覆うスパン（各行 0..w-1）。"""
    if width <= 0 or height <= 0:
        return empty_spans()
    ys = np.arange(height, dtype=np.int32)
    out = np.empty((height, 4), dtype=np.int32)
    out[:, SPAN_Y] = ys
    out[:, SPAN_X1] = 0
    out[:, SPAN_X2] = width - 1
    out[:, SPAN_ALPHA] = FULL_COVERAGE
    return out


@njit(cache=True)
def crop_spans(spans: np.ndarray, w: int, h: int) -> np.ndarray:
    """行外のスパンを除去し、x をキャンバスへクランプして空になったスパンを捨てる（Numba）。"""
    n = spans.shape[0]
    out = np.empty((n, 4), dtype=np.int32)
    count = 0
    for i in range(n):
        y = spans[i, 0]
        x1 = spans[i, 1]
        x2 = spans[i, 2]
        if y < 0 or y >= h:
            continue
        if x1 >= w or x2 < 0:
            continue
        if x1 < 0:
            x1 = 0
        if x2 > w - 1:
            x2 = w - 1
        if x1 > x2:
            continue
        out[count, 0] = y
        out[count, 1] = x1
        out[count, 2] = x2
        out[count, 3] = spans[i, 3]
        count += 1
    return out[:count]


@njit(cache=True)
def merge_spans(spans: np.ndarray) -> np.ndarray:
    """同一行・同一 alpha の重なり/隣接スパンを統合し、(y, x1) 昇順で返す。

    負の x を含むと並びが崩れるため、クリップ済みのスパンに使う。
    """
    n = spans.shape[0]
    if n <= 1:
        return spans.astype(np.int32)
    keys = np.empty(n, dtype=np.int64)
    max_x = 0
    for i in range(n):
        if spans[i, 2] > max_x:
            max_x = spans[i, 2]
    stride = np.int64(max_x) + 2
    for i in range(n):
        keys[i] = np.int64(spans[i, 0]) * stride + np.int64(spans[i, 1])
    order = np.argsort(keys, kind="mergesort")
    out = np.empty((n, 4), dtype=np.int32)
    count = 0
    for k in range(n):
        i = order[k]
        y = spans[i, 0]
        x1 = spans[i, 1]
        x2 = spans[i, 2]
        a = spans[i, 3]
        if count > 0:
            j = count - 1
            if out[j, 0] == y and out[j, 3] == a and x1 <= out[j, 2] + 1:
                if x2 > out[j, 2]:
                    out[j, 2] = x2
                continue
        out[count, 0] = y
        out[count, 1] = x1
        out[count, 2] = x2
        out[count, 3] = a
        count += 1
    return out[:count]


@njit(cache=True)
def _sorted_disjoint(spans: np.ndarray) -> bool:
    for i in range(1, spans.shape[0]):
        if spans[i, 0] == spans[i - 1, 0] and spans[i, 1] <= spans[i - 1, 2]:
            return False
    return True


def normalize_mask(spans: SpanArray, width: int, height: int) -> SpanArray:
    """任意のスパン列をクリップ・統合し、各画素を高々 1 回覆うマスクにして返す。

    例外:
        ValueError: 統合後も異なる alpha のスパンが同じ画素を覆う場合。
    """
    arr = np.asarray(spans)
    if arr.ndim != 2 or arr.shape[1] != 4:
        raise ValueError(f"スパン配列は (N, 4) である必要があります: shape={arr.shape}")
    out = merge_spans(crop_spans(arr.astype(np.int32, copy=False), width, height))
    if not _sorted_disjoint(out):
        raise ValueError("異なる被覆重みのスパンが同じ画素で重なっています")
    return out


def span_pixel_count(spans: SpanArray) -> int:
    """スパンが覆う画素数（重複は重複分だけ数える）。"""
    if spans.shape[0] == 0:
        return 0
    return int((spans[:, SPAN_X2].astype(np.int64) - spans[:, SPAN_X1] + 1).sum())


def spans_within(spans: SpanArray, width: int, height: int) -> bool:
    """全スパンがキャンバス内かつ x1 <= x2 を満たすか。"""
    if spans.shape[0] == 0:
        return True
    y = spans[:, SPAN_Y]
    x1 = spans[:, SPAN_X1]
    x2 = spans[:, SPAN_X2]
    return bool(
        np.all((y >= 0) & (y < height) & (x1 >= 0) & (x2 < width) & (x1 <= x2))
    )


__all__ = [
    "FULL_COVERAGE",
    "SPAN_Y",
    "SPAN_X1",
    "SPAN_X2",
    "SPAN_ALPHA",
    "empty_spans",
    "make_spans",
    "full_canvas_spans",
    "crop_spans",
    "merge_spans",
    "normalize_mask",
    "span_pixel_count",
    "spans_within",
]
