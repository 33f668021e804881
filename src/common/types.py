"""
どこで: `common` の型定義。
何を: ARGB 色やスパン配列などの軽量エイリアス（組込みジェネリックで記述）。
なぜ: 依存の少ない場所に配置して循環と分散定義を避けるため。
"""

import numpy as np
import numpy.typing as npt

ARGB = int  # 0xAARRGGBB（符号なし 32bit 相当の Python int）
Point = tuple[int, int]
PixelArray = npt.NDArray[np.uint32]  # (h, w) の ARGB32
SpanArray = npt.NDArray[np.int32]  # (N, 4): y, x1, x2, alpha


__all__ = ["ARGB", "Point", "PixelArray", "SpanArray"]
