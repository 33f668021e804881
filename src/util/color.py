"""
どこで: `util.color`。
何を: ARGB32 整数色の合成/分解/検証と、色指定（Hex, RGBA 0–1, RGBA 0–255）の正規化を一元化。
なぜ: コンポジタ/エクスポータ/CLI 全体で同一の受理仕様とエラーメッセージを提供するため。

ARGB32 は Python の非負 int（0xAARRGGBB）として扱う。ピクセル配列上は `numpy.uint32`。
"""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np


def _check_components(**components: int) -> None:
    bad = [name for name, v in components.items() if v < 0 or v > 255]
    if bad:
        raise ValueError(f"色成分が範囲外です (0-255): {', '.join(bad)}")


def argb(a: int, r: int, g: int, b: int) -> int:
    """成分から ARGB32 を合成する（各成分 0–255、範囲外は ValueError）。"""
    a, r, g, b = int(a), int(r), int(g), int(b)
    _check_components(alpha=a, red=r, green=g, blue=b)
    return (a << 24) | (r << 16) | (g << 8) | b


def rgb(r: int, g: int, b: int) -> int:
    """不透明（alpha=255）の ARGB32 を合成する。"""
    return argb(255, r, g, b)


def alpha(color: int) -> int:
    return (int(color) >> 24) & 0xFF


def red(color: int) -> int:
    return (int(color) >> 16) & 0xFF


def green(color: int) -> int:
    return (int(color) >> 8) & 0xFF


def blue(color: int) -> int:
    return int(color) & 0xFF


def unpack(color: int) -> tuple[int, int, int, int]:
    """ARGB32 を (a, r, g, b) に分解する。"""
    return alpha(color), red(color), green(color), blue(color)


def check_argb(color: object) -> int:
    """ARGB32 として妥当な整数か検証して int で返す。

    例外:
        TypeError: 整数でない場合（bool も拒否）。
        ValueError: 0..0xFFFFFFFF の範囲外。
    """
    if isinstance(color, bool) or not isinstance(color, (int, np.integer)):
        raise TypeError(f"ARGB 色は int である必要があります: got {type(color).__name__}")
    value = int(color)
    if value < 0 or value > 0xFFFFFFFF:
        raise ValueError(f"ARGB 色が範囲外です: {value:#x}")
    return value


def to_hex_rgb(color: int) -> str:
    """ARGB32 の RGB 部を `#rrggbb` で返す（alpha は無視）。"""
    return f"#{red(color):02x}{green(color):02x}{blue(color):02x}"


def average_color(pixels: Iterable[int] | np.ndarray) -> int:
    """ピクセル群の RGB 整数平均を不透明色で返す（空入力は ValueError）。"""
    arr = np.asarray(pixels, dtype=np.uint32).ravel()
    if arr.size == 0:
        raise ValueError("平均色の計算には 1 画素以上が必要です")
    r = int(((arr >> 16) & 0xFF).astype(np.int64).sum() // arr.size)
    g = int(((arr >> 8) & 0xFF).astype(np.int64).sum() // arr.size)
    b = int((arr & 0xFF).astype(np.int64).sum() // arr.size)
    return rgb(r, g, b)


def color_distance(c1: int, c2: int) -> int:
    """不透明バッファ用の重み付き色距離（redmean 系）。

    `rmean` は赤成分の和を左シフトしたもの（平均ではない）。コンポジタの数値と一致させる。
    """
    r1, g1, b1 = red(c1), green(c1), blue(c1)
    r2, g2, b2 = red(c2), green(c2), blue(c2)
    rmean = (r1 + r2) << 1
    dr = r1 - r2
    dg = g1 - g2
    db = b1 - b2
    return (((512 + rmean) * dr * dr) >> 8) + 4 * dg * dg + (((767 - rmean) * db * db) >> 8)


def _clamp01(x: float) -> float:
    return 0.0 if x < 0.0 else 1.0 if x > 1.0 else float(x)


def parse_hex_color_str(s: str) -> tuple[float, float, float, float]:
    """Hex 文字列から RGBA(0–1) を返す。

    受理形式: "#RRGGBB", "#RRGGBBAA", "0xRRGGBB", "0xRRGGBBAA", "RRGGBB", "RRGGBBAA"。
    大文字/小文字は不問。
    """
    t = s.strip()
    if t.startswith("#"):
        t = t[1:]
    elif t.lower().startswith("0x"):
        t = t[2:]
    if len(t) not in (6, 8):
        raise ValueError(f"invalid hex color length: '{s}' (expected RRGGBB or RRGGBBAA)")
    try:
        r = int(t[0:2], 16)
        g = int(t[2:4], 16)
        b = int(t[4:6], 16)
        a = int(t[6:8], 16) if len(t) == 8 else 255
    except ValueError as e:
        raise ValueError(f"invalid hex color: '{s}'") from e
    return (r / 255.0, g / 255.0, b / 255.0, a / 255.0)


def _as_sequence(value: object) -> Sequence[float | int] | None:
    if isinstance(value, (list, tuple)):
        return value  # type: ignore[return-value]
    return None


def normalize_color(value: object) -> tuple[float, float, float, float]:
    """色を RGBA(0–1) へ正規化する。

    - 受理: Hex 文字列, (r,g,b[,a]) （0–1 または 0–255）
    - 返値: (r,g,b,a) （0–1）
    """
    if isinstance(value, str):
        return parse_hex_color_str(value)
    seq = _as_sequence(value)
    if seq is None:
        raise ValueError(f"unsupported color type: {type(value)!r}")
    if len(seq) not in (3, 4):
        raise ValueError("color tuple/list must be length 3 or 4")
    try:
        fseq = [float(v) for v in seq]
    except (TypeError, ValueError) as e:
        raise ValueError(f"invalid color tuple/list: {value!r}") from e
    if len(fseq) == 3:
        fseq.append(1.0 if all(0.0 <= x <= 1.0 for x in fseq) else 255.0)
    # 全要素が 0..1 ならそのまま
    if all(0.0 <= x <= 1.0 for x in fseq):
        r, g, b, a = fseq
        return (_clamp01(r), _clamp01(g), _clamp01(b), _clamp01(a))
    # 次に 0–255 とみなし、整数丸め → 0–1 へスケール
    r, g, b, a = (max(0, min(255, int(round(x)))) for x in fseq)
    return (r / 255.0, g / 255.0, b / 255.0, a / 255.0)


def to_u8_rgba(value: object) -> tuple[int, int, int, int]:
    """色を RGBA(0–255) へ変換する。"""
    r, g, b, a = normalize_color(value)
    return (int(round(r * 255)), int(round(g * 255)), int(round(b * 255)), int(round(a * 255)))


def to_argb(value: object) -> int:
    """任意の色指定（ARGB int / Hex / タプル）を ARGB32 へ変換する。"""
    if isinstance(value, (int, np.integer)) and not isinstance(value, bool):
        return check_argb(value)
    r, g, b, a = to_u8_rgba(value)
    return argb(a, r, g, b)


__all__ = [
    "argb",
    "rgb",
    "alpha",
    "red",
    "green",
    "blue",
    "unpack",
    "check_argb",
    "to_hex_rgb",
    "average_color",
    "color_distance",
    "parse_hex_color_str",
    "normalize_color",
    "to_u8_rgba",
    "to_argb",
]
