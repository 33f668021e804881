"""
どこで: `engine.core.bitmap`。
何を: 固定サイズの ARGB32 ピクセルバッファ `Bitmap`（境界検査付き get/set、deep copy、fill）。
なぜ: 目標画像/現在画像/スクラッチを同一の表現で扱い、コンポジタの numba カーネルへ
      `(h, w)` の uint32 配列をそのまま渡せるようにするため。
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from common.types import PixelArray
from util.color import check_argb


class Bitmap:
    """ARGB32 ラスタ（行優先、`pixels[y, x]`）。

    - `translucent` は差分指標の選択に使う（True: ARGB 4ch 二乗和 / False: 重み付き RGB 距離）。
    - `copy()` は新しい配列を確保する深いコピー。
    - 座標の範囲外アクセスは IndexError（暗黙のクランプはしない）。
    """

    __slots__ = ("_width", "_height", "_pixels", "_translucent")

    def __init__(
        self,
        width: int,
        height: int,
        pixels: np.ndarray | Sequence[int] | None = None,
        translucent: bool = False,
    ) -> None:
        width = int(width)
        height = int(height)
        if width < 0:
            raise ValueError(f"width は 0 以上である必要があります: {width}")
        if height < 0:
            raise ValueError(f"height は 0 以上である必要があります: {height}")
        if pixels is None:
            arr = np.zeros((height, width), dtype=np.uint32)
        else:
            flat = np.asarray(pixels)
            if flat.dtype.kind not in "iu":
                raise TypeError(f"pixels は整数配列である必要があります: dtype={flat.dtype}")
            if flat.size != width * height:
                raise ValueError(
                    f"pixels の長さが width*height と一致しません: {flat.size} != {width * height}"
                )
            if flat.size and (int(flat.min()) < 0 or int(flat.max()) > 0xFFFFFFFF):
                raise ValueError("pixels に ARGB32 の範囲外の値が含まれています")
            arr = np.array(flat, dtype=np.uint32).reshape(height, width)
        self._width = width
        self._height = height
        self._pixels: PixelArray = arr
        self._translucent = bool(translucent)

    # ---- 生成ヘルパ -----------------------------------------------------
    @classmethod
    def filled(cls, width: int, height: int, color: int, translucent: bool = False) -> "Bitmap":
        """単色で塗りつぶしたバッファを返す。"""
        return cls(width, height, translucent=translucent).fill(color)

    @classmethod
    def from_rgba(cls, rgba: np.ndarray, translucent: bool | None = None) -> "Bitmap":
        """`(h, w, 3|4)` の uint8 配列から生成する。

        `translucent` 未指定時は alpha < 255 の画素が 1 つでもあれば半透明とみなす。
        """
        arr = np.asarray(rgba)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ValueError(f"(h, w, 3|4) の配列が必要です: got shape={arr.shape}")
        h, w = int(arr.shape[0]), int(arr.shape[1])
        u = arr.astype(np.uint32)
        a = u[:, :, 3] if arr.shape[2] == 4 else np.full((h, w), 255, dtype=np.uint32)
        packed = (a << 24) | (u[:, :, 0] << 16) | (u[:, :, 1] << 8) | u[:, :, 2]
        if translucent is None:
            translucent = bool(np.any(a < 255))
        return cls(w, h, packed.ravel(), translucent=translucent)

    def to_rgba(self) -> np.ndarray:
        """`(h, w, 4)` の uint8 RGBA 配列を返す（新規確保）。"""
        p = self._pixels
        out = np.empty((self._height, self._width, 4), dtype=np.uint8)
        out[:, :, 0] = (p >> 16) & 0xFF
        out[:, :, 1] = (p >> 8) & 0xFF
        out[:, :, 2] = p & 0xFF
        out[:, :, 3] = (p >> 24) & 0xFF
        return out

    # ---- 属性 -----------------------------------------------------------
    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def translucent(self) -> bool:
        return self._translucent

    @property
    def pixels(self) -> PixelArray:
        """`(h, w)` の uint32 配列（共有参照。書き換えはバッファに反映される）。"""
        return self._pixels

    @property
    def shape(self) -> tuple[int, int]:
        return self._height, self._width

    # ---- ピクセル操作 ---------------------------------------------------
    def _check_xy(self, x: int, y: int) -> None:
        if not (0 <= x < self._width):
            raise IndexError(f"x が範囲外です: {x} (width={self._width})")
        if not (0 <= y < self._height):
            raise IndexError(f"y が範囲外です: {y} (height={self._height})")

    def get_pixel(self, x: int, y: int) -> int:
        self._check_xy(x, y)
        return int(self._pixels[y, x])

    def set_pixel(self, x: int, y: int, color: int) -> None:
        self._check_xy(x, y)
        self._pixels[y, x] = check_argb(color)

    def fill(self, color: int) -> "Bitmap":
        """全画素を `color` で塗りつぶし、自身を返す。"""
        self._pixels.fill(check_argb(color))
        return self

    def copy(self) -> "Bitmap":
        out = Bitmap.__new__(Bitmap)
        out._width = self._width
        out._height = self._height
        out._pixels = self._pixels.copy()
        out._translucent = self._translucent
        return out

    def same_pixels(self, other: "Bitmap") -> bool:
        return self.shape == other.shape and bool(np.array_equal(self._pixels, other._pixels))

    def same_size(self, other: "Bitmap") -> bool:
        return self.shape == other.shape

    def __repr__(self) -> str:
        kind = "translucent" if self._translucent else "opaque"
        return f"Bitmap({self._width}x{self._height}, {kind})"


__all__ = ["Bitmap"]
