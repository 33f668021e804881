"""
どこで: `util.image_io`。
何を: Pillow による画像の読込（RGBA 化・作業解像度への縮小）と RGBA 配列の保存。
なぜ: エンジン本体（engine.core）をファイル I/O から切り離し、CLI/API だけが画像形式を扱うため。
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)


def fit_size(width: int, height: int, max_side: int) -> tuple[int, int]:
    """長辺が `max_side` 以下になるようアスペクト比を保って縮小したサイズを返す。

    既に収まっている場合は元のサイズを返す（拡大はしない）。
    """
    if max_side <= 0:
        raise ValueError(f"max_side は正の整数である必要があります: {max_side}")
    longest = max(width, height)
    if longest <= max_side:
        return width, height
    ratio = max_side / float(longest)
    return max(1, int(width * ratio)), max(1, int(height * ratio))


def load_rgba(path: str | Path, working_size: int | None = None) -> np.ndarray:
    """画像を読み込み `(h, w, 4)` の uint8 RGBA 配列で返す。

    引数:
        path: 画像ファイルパス（Pillow が読める形式）。
        working_size: 指定時は長辺がこの値以下になるよう縮小する。

    例外:
        FileNotFoundError: ファイルが存在しない場合。
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"画像が見つかりません: {p}")
    with Image.open(p) as im:
        img = im.convert("RGBA")
    if working_size is not None:
        size = fit_size(img.width, img.height, int(working_size))
        if size != (img.width, img.height):
            logger.debug("downscale %s: %sx%s -> %sx%s", p.name, img.width, img.height, *size)
            img = img.resize(size, Image.Resampling.BILINEAR)
    return np.asarray(img, dtype=np.uint8).copy()


def save_rgba(rgba: np.ndarray, path: str | Path, *, scale: float = 1.0) -> Path:
    """`(h, w, 4)` の uint8 配列を画像として保存する（形式は拡張子から決定）。

    `scale != 1.0` のときは最近傍で拡大/縮小してから保存する。
    """
    arr = np.ascontiguousarray(rgba, dtype=np.uint8)
    if arr.ndim != 3 or arr.shape[2] != 4:
        raise ValueError(f"RGBA 配列 (h, w, 4) が必要です: got shape={arr.shape}")
    img = Image.fromarray(arr)
    if scale != 1.0:
        w = max(1, int(round(img.width * scale)))
        h = max(1, int(round(img.height * scale)))
        img = img.resize((w, h), Image.Resampling.NEAREST)
    out = Path(path)
    if out.suffix.lower() in {".jpg", ".jpeg", ".bmp"}:
        img = img.convert("RGB")
    img.save(out)
    return out


__all__ = ["fit_size", "load_rgba", "save_rgba"]
