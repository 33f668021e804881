"""
どこで: `engine.core.rasterizer`。
何を: 形状ジオメトリ（整数頂点）をスキャンライン配列へ変換する Numba カーネル群。
      線分（Bresenham）/折れ線/三角形（平底・平頂分割）/任意多角形（アクティブエッジ表）/
      楕円（行ごとの対称スパン）/凸四角形（行ごとの min/max）。
なぜ: 探索では 1 ステップに数万回のラスタライズが走るため、Python ループを避けて JIT 化する。

共通の後処理:
- すべての結果は `crop_spans` でキャンバスへクリップされる。
- 続けて `merge_spans` で同一行の重なり/隣接スパンを統合する。1 形状のスパンは画素を重複して
  覆わない（合成や差分の部分更新で同じ画素を 2 回数えないため）。
"""

from __future__ import annotations

import math

import numpy as np
from numba import njit  # type: ignore[attr-defined]

from .scanline import FULL_COVERAGE, crop_spans, merge_spans


# ---- 後処理 -------------------------------------------------------------


@njit(cache=True)
def _finish(spans: np.ndarray, w: int, h: int) -> np.ndarray:
    return merge_spans(crop_spans(spans, w, h))


# ---- 線分/折れ線 ---------------------------------------------------------


@njit(cache=True)
def _line_into(out: np.ndarray, start: int, x1: int, y1: int, x2: int, y2: int) -> int:
    """Bresenham で 1 画素スパンを `out[start:]` に書き込み、書き込み後の件数を返す。"""
    x = x1
    y = y1
    dx = abs(x - x2)
    sx = 1 if x < x2 else -1
    dy = -abs(y - y2)
    sy = 1 if y < y2 else -1
    err = dx + dy
    count = start
    while True:
        out[count, 0] = y
        out[count, 1] = x
        out[count, 2] = x
        out[count, 3] = FULL_COVERAGE
        count += 1
        if x == x2 and y == y2:
            break
        e2 = 2 * err
        if e2 >= dy:
            err += dy
            x += sx
        if e2 <= dx:
            err += dx
            y += sy
    return count


@njit(cache=True)
def rasterize_line(x1: int, y1: int, x2: int, y2: int, w: int, h: int) -> np.ndarray:
    """線分を 1 画素スパンの列に変換する（Numba）。"""
    cap = max(abs(x2 - x1), abs(y2 - y1)) + 1
    out = np.empty((cap, 4), dtype=np.int32)
    count = _line_into(out, 0, x1, y1, x2, y2)
    return _finish(out[:count], w, h)


@njit(cache=True)
def rasterize_path(xs: np.ndarray, ys: np.ndarray, w: int, h: int) -> np.ndarray:
    """連続する頂点間の線分をつないだ折れ線をスパン化する（Numba）。"""
    n = xs.shape[0]
    if n == 0:
        return np.zeros((0, 4), dtype=np.int32)
    if n == 1:
        out1 = np.empty((1, 4), dtype=np.int32)
        _line_into(out1, 0, xs[0], ys[0], xs[0], ys[0])
        return _finish(out1, w, h)
    cap = 0
    for i in range(n - 1):
        cap += max(abs(xs[i + 1] - xs[i]), abs(ys[i + 1] - ys[i])) + 1
    out = np.empty((cap, 4), dtype=np.int32)
    count = 0
    for i in range(n - 1):
        count = _line_into(out, count, xs[i], ys[i], xs[i + 1], ys[i + 1])
    return _finish(out[:count], w, h)


# ---- 三角形 -------------------------------------------------------------


@njit(cache=True)
def _triangle_bottom(
    out: np.ndarray, start: int, x1: int, y1: int, x2: int, y2: int, x3: int, y3: int
) -> int:
    # 頂点 1 から下向きに y1..y2（y2 == y3）を埋める
    s1 = (x2 - x1) / (y2 - y1)
    s2 = (x3 - x1) / (y3 - y1)
    ax = float(x1)
    bx = float(x1)
    count = start
    for y in range(y1, y2 + 1):
        a = int(ax)
        b = int(bx)
        ax += s1
        bx += s2
        if a > b:
            a, b = b, a
        out[count, 0] = y
        out[count, 1] = a
        out[count, 2] = b
        out[count, 3] = FULL_COVERAGE
        count += 1
    return count


@njit(cache=True)
def _triangle_top(
    out: np.ndarray, start: int, x1: int, y1: int, x2: int, y2: int, x3: int, y3: int
) -> int:
    # 頂点 3 から上向きに y3..y1+1（y1 == y2）を埋める
    s1 = (x3 - x1) / (y3 - y1)
    s2 = (x3 - x2) / (y3 - y2)
    ax = float(x3)
    bx = float(x3)
    count = start
    for y in range(y3, y1, -1):
        ax -= s1
        bx -= s2
        a = int(ax)
        b = int(bx)
        if a > b:
            a, b = b, a
        out[count, 0] = y
        out[count, 1] = a
        out[count, 2] = b
        out[count, 3] = FULL_COVERAGE
        count += 1
    return count


@njit(cache=True)
def rasterize_triangle(
    x1: int, y1: int, x2: int, y2: int, x3: int, y3: int, w: int, h: int
) -> np.ndarray:
    """三角形を y でソートし、中間頂点の行で平底/平頂に分割して塗る（Numba）。"""
    if y1 > y3:
        x1, x3 = x3, x1
        y1, y3 = y3, y1
    if y1 > y2:
        x1, x2 = x2, x1
        y1, y2 = y2, y1
    if y2 > y3:
        x2, x3 = x3, x2
        y2, y3 = y3, y2

    out = np.empty((y3 - y1 + 1, 4), dtype=np.int32)
    if y1 == y3:
        # 退化（全頂点が同一行）: 1 行の区間
        out[0, 0] = y1
        out[0, 1] = min(x1, min(x2, x3))
        out[0, 2] = max(x1, max(x2, x3))
        out[0, 3] = FULL_COVERAGE
        return _finish(out[:1], w, h)
    if y2 == y3:
        count = _triangle_bottom(out, 0, x1, y1, x2, y2, x3, y3)
    elif y1 == y2:
        count = _triangle_top(out, 0, x1, y1, x2, y2, x3, y3)
    else:
        x4 = x1 + int(((y2 - y1) / (y3 - y1)) * (x3 - x1))
        count = _triangle_bottom(out, 0, x1, y1, x2, y2, x4, y2)
        count = _triangle_top(out, count, x2, y2, x4, y2, x3, y3)
    return _finish(out[:count], w, h)


# ---- 任意多角形 ---------------------------------------------------------


@njit(cache=True)
def rasterize_polygon(xs: np.ndarray, ys: np.ndarray, w: int, h: int) -> np.ndarray:
    """アクティブエッジ表による多角形のスキャンライン塗り（Numba）。

    - 各エッジは y の小さい端点を始点に向け、始点 y で安定ソートする。
    - 始点行で活性化（交点なし）、終点行で終点 x を交点に追加、その間は逆傾きで x を進めて追加。
    - 水平エッジは自身の行を直接 1 区間として覆う。
    - 交点数が 2 未満または奇数の行はスキップ（致命的でない異常）。
    """
    n = xs.shape[0]
    if n < 3:
        return rasterize_path(xs, ys, w, h)

    ex1 = np.empty(n, dtype=np.int64)
    ey1 = np.empty(n, dtype=np.int64)
    ex2 = np.empty(n, dtype=np.int64)
    ey2 = np.empty(n, dtype=np.int64)
    for i in range(n):
        ax = np.int64(xs[i])
        ay = np.int64(ys[i])
        bx = np.int64(xs[(i + 1) % n])
        by = np.int64(ys[(i + 1) % n])
        if ay < by:
            ex1[i] = ax
            ey1[i] = ay
            ex2[i] = bx
            ey2[i] = by
        else:
            ex1[i] = bx
            ey1[i] = by
            ex2[i] = ax
            ey2[i] = ay
    order = np.argsort(ey1, kind="mergesort")
    sx1 = ex1[order]
    sy1 = ey1[order]
    sx2 = ex2[order]
    sy2 = ey2[order]

    inv = np.zeros(n, dtype=np.float64)
    for i in range(n):
        if sy2[i] != sy1[i]:
            inv[i] = (sx2[i] - sx1[i]) / (sy2[i] - sy1[i])
    cur = np.zeros(n, dtype=np.float64)

    y_start = sy1[0]
    y_end = sy2[0]
    for i in range(n):
        if sy2[i] > y_end:
            y_end = sy2[i]

    rows = y_end - y_start + 1
    # 1 行あたり交点対は最大 n/2、水平エッジ区間は最大 n
    out = np.empty((rows * (n + n // 2 + 1), 4), dtype=np.int32)
    count = 0
    xs_row = np.empty(n, dtype=np.int64)
    for y in range(y_start, y_end + 1):
        k = 0
        for i in range(n):
            if sy1[i] == sy2[i]:
                if y == sy1[i]:
                    out[count, 0] = y
                    out[count, 1] = min(sx1[i], sx2[i])
                    out[count, 2] = max(sx1[i], sx2[i])
                    out[count, 3] = FULL_COVERAGE
                    count += 1
                continue
            if y == sy1[i]:
                cur[i] = sx1[i]
            elif y == sy2[i]:
                cur[i] = sx2[i]
                xs_row[k] = int(cur[i])
                k += 1
            elif sy1[i] < y and y < sy2[i]:
                cur[i] += inv[i]
                xs_row[k] = int(cur[i])
                k += 1
        if k < 2 or k % 2 != 0:
            continue
        row = np.sort(xs_row[:k])
        for j in range(0, k, 2):
            out[count, 0] = y
            out[count, 1] = row[j]
            out[count, 2] = row[j + 1]
            out[count, 3] = FULL_COVERAGE
            count += 1
    return _finish(out[:count], w, h)


# ---- 楕円/円 -------------------------------------------------------------


@njit(cache=True)
def rasterize_ellipse(cx: int, cy: int, rx: int, ry: int, w: int, h: int) -> np.ndarray:
    """軸平行楕円を中心行から上下対称に同時展開してスパン化する（Numba）。

    円は `rx == ry`。行 `cy ± dy`（0 <= dy < ry）の半幅は `int(sqrt(ry² - dy²) * rx / ry)`。
    """
    if rx <= 0 or ry <= 0:
        return np.zeros((0, 4), dtype=np.int32)
    aspect = rx / ry
    out = np.empty((2 * ry, 4), dtype=np.int32)
    count = 0
    for dy in range(ry):
        y1 = cy - dy
        y2 = cy + dy
        if (y1 < 0 or y1 >= h) and (y2 < 0 or y2 >= h):
            continue
        s = int(math.sqrt(ry * ry - dy * dy) * aspect)
        x1 = cx - s
        x2 = cx + s
        if y1 >= 0 and y1 < h:
            out[count, 0] = y1
            out[count, 1] = x1
            out[count, 2] = x2
            out[count, 3] = FULL_COVERAGE
            count += 1
        if y2 >= 0 and y2 < h and dy > 0:
            out[count, 0] = y2
            out[count, 1] = x1
            out[count, 2] = x2
            out[count, 3] = FULL_COVERAGE
            count += 1
    return _finish(out[:count], w, h)


# ---- 凸四角形（回転矩形） -----------------------------------------------


@njit(cache=True)
def rasterize_quad(xs: np.ndarray, ys: np.ndarray, w: int, h: int) -> np.ndarray:
    """凸多角形を各辺の Bresenham 走査から行ごとの min/max を取って塗る（Numba）。"""
    n = xs.shape[0]
    if n == 0:
        return np.zeros((0, 4), dtype=np.int32)
    y_min = ys[0]
    y_max = ys[0]
    for i in range(1, n):
        if ys[i] < y_min:
            y_min = ys[i]
        if ys[i] > y_max:
            y_max = ys[i]
    rows = y_max - y_min + 1
    lo = np.empty(rows, dtype=np.int64)
    hi = np.empty(rows, dtype=np.int64)
    seen = np.zeros(rows, dtype=np.bool_)
    for i in range(n):
        x1 = xs[i]
        y1 = ys[i]
        x2 = xs[(i + 1) % n]
        y2 = ys[(i + 1) % n]
        cap = max(abs(x2 - x1), abs(y2 - y1)) + 1
        pts = np.empty((cap, 4), dtype=np.int32)
        m = _line_into(pts, 0, x1, y1, x2, y2)
        for k in range(m):
            r = pts[k, 0] - y_min
            x = pts[k, 1]
            if not seen[r]:
                seen[r] = True
                lo[r] = x
                hi[r] = x
            else:
                if x < lo[r]:
                    lo[r] = x
                if x > hi[r]:
                    hi[r] = x
    out = np.empty((rows, 4), dtype=np.int32)
    count = 0
    for r in range(rows):
        if not seen[r]:
            continue
        out[count, 0] = y_min + r
        out[count, 1] = lo[r]
        out[count, 2] = hi[r]
        out[count, 3] = FULL_COVERAGE
        count += 1
    return _finish(out[:count], w, h)


def as_int_array(values) -> np.ndarray:
    """頂点座標列を Numba カーネル用の int64 配列に変換する。"""
    return np.ascontiguousarray(np.asarray(values, dtype=np.int64))


__all__ = [
    "rasterize_line",
    "rasterize_path",
    "rasterize_triangle",
    "rasterize_polygon",
    "rasterize_ellipse",
    "rasterize_quad",
    "as_int_array",
]
