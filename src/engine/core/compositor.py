"""
どこで: `engine.core.compositor`。
何を: スパンマスク上の最適単色の算出（最小二乗の閉形式）、16bit 固定小数での alpha-over 合成、
      マスク領域のコピー、全体/部分差分（正規化 RMS）を提供する。
なぜ: 探索 1 回の評価は「色算出→スクラッチへコピー→合成→部分差分」の 4 段で、
      キャンバス全体を走査せずに済む部分差分が探索速度の要になるため。

数値仕様（固定小数）:
- 色算出: `a = 257 * 255 / alpha`、各チャネル `Σ (t - c) * a + c * 257` を画素数で割り、
  `>> 8` して [0, 255] にクランプ。マスクが空なら透明黒（0）。
- 合成: 色を 16bit に拡張して alpha で前乗算し、スパンの被覆重み `ma` で
  `d' = (d * (0xFFFF - sa * ma / 0xFFFF) * 0x101 + s * ma) / 0xFFFF >> 8`。
- 差分: 半透明バッファは ARGB 4ch の二乗和 / (w*h*4)、不透明は重み付き RGB 距離 / (w*h*3)、
  結果は `sqrt(total / count) / 255`。

Numba カーネル（`_..._kernel`）は `(h, w)` の uint32 配列と `(N, 4)` の int32 スパンを直接受け取る。
公開関数は `Bitmap` を受け取り、サイズ/引数を検証してからカーネルを呼ぶ。
マスクは公開関数の入口で `normalize_mask` によりクリップ・統合され、各画素は高々 1 回しか数えない。
"""

from __future__ import annotations

import math

import numpy as np
from numba import njit  # type: ignore[attr-defined]

from common.types import SpanArray
from util.color import check_argb

from .bitmap import Bitmap
from .scanline import normalize_mask

_M = 0xFFFF


# ---- カーネル -----------------------------------------------------------


@njit(cache=True)
def _compute_color_kernel(
    target: np.ndarray, current: np.ndarray, spans: np.ndarray, alpha: int
) -> np.int64:
    h, w = target.shape
    a = 257.0 * 255.0 / alpha
    rsum = 0.0
    gsum = 0.0
    bsum = 0.0
    total = 0
    for i in range(spans.shape[0]):
        y = spans[i, 0]
        if y < 0 or y >= h:
            continue
        for x in range(spans[i, 1], spans[i, 2] + 1):
            if x < 0 or x >= w:
                continue
            tc = np.int64(target[y, x])
            cc = np.int64(current[y, x])
            tr = (tc >> 16) & 0xFF
            tg = (tc >> 8) & 0xFF
            tb = tc & 0xFF
            cr = (cc >> 16) & 0xFF
            cg = (cc >> 8) & 0xFF
            cb = cc & 0xFF
            rsum += (tr - cr) * a + cr * 257
            gsum += (tg - cg) * a + cg * 257
            bsum += (tb - cb) * a + cb * 257
            total += 1
    if total == 0:
        return np.int64(0)
    r = np.int64(int(rsum / total)) >> 8
    g = np.int64(int(gsum / total)) >> 8
    b = np.int64(int(bsum / total)) >> 8
    r = min(max(r, 0), 255)
    g = min(max(g, 0), 255)
    b = min(max(b, 0), 255)
    return (np.int64(alpha) << 24) | (r << 16) | (g << 8) | b


@njit(cache=True)
def _draw_lines_kernel(pixels: np.ndarray, color: np.int64, spans: np.ndarray) -> None:
    h, w = pixels.shape
    sa = (color >> 24) & 0xFF
    sr = (color >> 16) & 0xFF
    sg = (color >> 8) & 0xFF
    sb = color & 0xFF
    sr = ((sr | (sr << 8)) * sa) // 255
    sg = ((sg | (sg << 8)) * sa) // 255
    sb = ((sb | (sb << 8)) * sa) // 255
    sa = sa | (sa << 8)
    for i in range(spans.shape[0]):
        y = spans[i, 0]
        if y < 0 or y >= h:
            continue
        ma = np.int64(spans[i, 3])
        a = (_M - sa * ma // _M) * 0x101
        sama = sa * ma
        srma = sr * ma
        sgma = sg * ma
        sbma = sb * ma
        for x in range(spans[i, 1], spans[i, 2] + 1):
            if x < 0 or x >= w:
                continue
            dc = np.int64(pixels[y, x])
            da = (dc >> 24) & 0xFF
            dr = (dc >> 16) & 0xFF
            dg = (dc >> 8) & 0xFF
            db = dc & 0xFF
            ba = min(max(((da * a + sama) // _M) >> 8, 0), 255)
            br = min(max(((dr * a + srma) // _M) >> 8, 0), 255)
            bg = min(max(((dg * a + sgma) // _M) >> 8, 0), 255)
            bb = min(max(((db * a + sbma) // _M) >> 8, 0), 255)
            pixels[y, x] = (ba << 24) | (br << 16) | (bg << 8) | bb


@njit(cache=True)
def _copy_lines_kernel(dest: np.ndarray, src: np.ndarray, spans: np.ndarray) -> None:
    h, w = src.shape
    for i in range(spans.shape[0]):
        y = spans[i, 0]
        if y < 0 or y >= h:
            continue
        x1 = max(spans[i, 1], 0)
        x2 = min(spans[i, 2], w - 1)
        for x in range(x1, x2 + 1):
            dest[y, x] = src[y, x]


@njit(cache=True)
def _distance(c1: np.int64, c2: np.int64) -> np.int64:
    r1 = (c1 >> 16) & 0xFF
    g1 = (c1 >> 8) & 0xFF
    b1 = c1 & 0xFF
    r2 = (c2 >> 16) & 0xFF
    g2 = (c2 >> 8) & 0xFF
    b2 = c2 & 0xFF
    rmean = (r1 + r2) << 1
    dr = r1 - r2
    dg = g1 - g2
    db = b1 - b2
    return (((512 + rmean) * dr * dr) >> 8) + 4 * dg * dg + (((767 - rmean) * db * db) >> 8)


@njit(cache=True)
def _sq4(c1: np.int64, c2: np.int64) -> np.int64:
    da = ((c1 >> 24) & 0xFF) - ((c2 >> 24) & 0xFF)
    dr = ((c1 >> 16) & 0xFF) - ((c2 >> 16) & 0xFF)
    dg = ((c1 >> 8) & 0xFF) - ((c2 >> 8) & 0xFF)
    db = (c1 & 0xFF) - (c2 & 0xFF)
    return da * da + dr * dr + dg * dg + db * db


@njit(cache=True)
def _difference_total_kernel(a: np.ndarray, b: np.ndarray, translucent: bool) -> float:
    h, w = a.shape
    total = 0.0
    for y in range(h):
        for x in range(w):
            ac = np.int64(a[y, x])
            bc = np.int64(b[y, x])
            if translucent:
                total += _sq4(ac, bc)
            else:
                total += _distance(ac, bc)
    return total


@njit(cache=True)
def _difference_partial_kernel(
    target: np.ndarray,
    before: np.ndarray,
    after: np.ndarray,
    total: float,
    spans: np.ndarray,
    translucent: bool,
) -> float:
    h, w = target.shape
    for i in range(spans.shape[0]):
        y = spans[i, 0]
        if y < 0 or y >= h:
            continue
        for x in range(spans[i, 1], spans[i, 2] + 1):
            if x < 0 or x >= w:
                continue
            tc = np.int64(target[y, x])
            bc = np.int64(before[y, x])
            ac = np.int64(after[y, x])
            if translucent:
                total -= _sq4(tc, bc)
                total += _sq4(tc, ac)
            else:
                total -= _distance(tc, bc)
                total += _distance(tc, ac)
    return total


# ---- 公開 API ------------------------------------------------------------


def _require_same_size(*bitmaps: Bitmap) -> None:
    first = bitmaps[0]
    for other in bitmaps[1:]:
        if not first.same_size(other):
            raise ValueError(
                f"バッファのサイズが一致しません: {first.width}x{first.height} "
                f"!= {other.width}x{other.height}"
            )


def _check_alpha(alpha: int) -> int:
    alpha = int(alpha)
    if alpha < 1 or alpha > 255:
        raise ValueError(f"alpha は 1–255 である必要があります: {alpha}")
    return alpha


def _channel_count(bitmap: Bitmap) -> int:
    return 4 if bitmap.translucent else 3


def compute_color(target: Bitmap, current: Bitmap, spans: SpanArray, alpha: int) -> int:
    """マスク内で `current` へ一様 alpha 合成したとき `target` に最も近い単色（ARGB）を返す。

    引数:
        target: 目標画像。
        current: 現在のキャンバス。
        spans: マスク（重なり/キャンバス外を含んでよい。内部で正規化する）。
        alpha: 合成 alpha（1–255）。

    返り値:
        `argb(alpha, r, g, b)`。マスクが空なら 0（透明黒）。

    例外:
        ValueError: alpha が 1–255 の範囲外、バッファのサイズ不一致、または被覆重みの異なる
            スパンが重なる場合。
    """
    alpha = _check_alpha(alpha)
    _require_same_size(target, current)
    mask = normalize_mask(spans, target.width, target.height)
    return int(_compute_color_kernel(target.pixels, current.pixels, mask, alpha))


def draw_lines(bitmap: Bitmap, color: int, spans: SpanArray) -> None:
    """`color` をスパンの被覆重みで前乗算し、`bitmap` へ alpha-over 合成する（破壊的）。"""
    c = check_argb(color)
    mask = normalize_mask(spans, bitmap.width, bitmap.height)
    _draw_lines_kernel(bitmap.pixels, np.int64(c), mask)


def copy_lines(dest: Bitmap, src: Bitmap, spans: SpanArray) -> None:
    """マスク内の画素だけを `src` から `dest` へコピーする。"""
    _require_same_size(dest, src)
    mask = normalize_mask(spans, src.width, src.height)
    _copy_lines_kernel(dest.pixels, src.pixels, mask)


def difference_full(first: Bitmap, second: Bitmap) -> float:
    """キャンバス全体の正規化 RMS 差分。半透明判定は `first` に従う。

    半透明（ARGB 4ch）では [0, 1] に収まる。不透明の重み付き RGB 距離は
    `rmean = (r1 + r2) << 1` をそのまま使うため、極端な色の組（赤と緑など）では 1 を超えうる
    （同一バッファで 0、引数の入れ替えに対して対称）。
    """
    _require_same_size(first, second)
    count = first.width * first.height * _channel_count(first)
    if count == 0:
        return 0.0
    total = _difference_total_kernel(first.pixels, second.pixels, first.translucent)
    return math.sqrt(max(total, 0.0) / count) / 255.0


def difference_partial(
    target: Bitmap, before: Bitmap, after: Bitmap, score: float, spans: SpanArray
) -> float:
    """`score`（= difference_full(target, before)）からマスク領域の寄与だけを差し替えて再正規化する。

    前提: `before` と `after` はマスク外で一致し、`score` は `before` に対する厳密な全体差分。
    """
    _require_same_size(target, before, after)
    count = target.width * target.height * _channel_count(target)
    if count == 0:
        return 0.0
    mask = normalize_mask(spans, target.width, target.height)
    total = (float(score) * 255.0) ** 2 * count
    total = _difference_partial_kernel(
        target.pixels, before.pixels, after.pixels, total, mask, target.translucent
    )
    return math.sqrt(max(total, 0.0) / count) / 255.0


def evaluate_spans(
    target: Bitmap,
    current: Bitmap,
    scratch: Bitmap,
    spans: SpanArray,
    alpha: int,
    score: float,
) -> tuple[float, int]:
    """候補形状（スパン）を `current` に足した場合の差分（エネルギー）と色を返す。

    `current` は変更しない。`scratch` のマスク領域だけを書き換える。
    マスクの正規化は 1 回だけ行い、以降はカーネルを直接呼ぶ。
    """
    alpha = _check_alpha(alpha)
    _require_same_size(target, current, scratch)
    mask = normalize_mask(spans, target.width, target.height)
    color = int(_compute_color_kernel(target.pixels, current.pixels, mask, alpha))
    _copy_lines_kernel(scratch.pixels, current.pixels, mask)
    _draw_lines_kernel(scratch.pixels, np.int64(color), mask)
    count = target.width * target.height * _channel_count(target)
    if count == 0:
        return 0.0, color
    total = (float(score) * 255.0) ** 2 * count
    total = _difference_partial_kernel(
        target.pixels, current.pixels, scratch.pixels, total, mask, target.translucent
    )
    return math.sqrt(max(total, 0.0) / count) / 255.0, color


__all__ = [
    "compute_color",
    "draw_lines",
    "copy_lines",
    "difference_full",
    "difference_partial",
    "evaluate_spans",
]
