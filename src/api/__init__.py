"""
どこで: `api` 入口（高レベル公開 API）。
何を: 近似器 `Geometrizer` と、結果/種別の型を再輸出する。
なぜ: 利用者が単一名前空間から「読み込み → 近似 → 書き出し」まで完結できるようにするため。

Usage:
    from api import Geometrizer, ShapeKind
    from engine.core.bitmap import Bitmap
    from util.image_io import load_rgba

    target = Bitmap.from_rgba(load_rgba("photo.jpg", working_size=256))
    with Geometrizer(target, seed=1) as g:
        g.run([ShapeKind.TRIANGLE, ShapeKind.ROTATED_ELLIPSE], 200)
        svg = g.to_svg()
"""

from engine.runtime.model import ShapeResult
from shapes.kinds import ShapeKind

from .geometrizer import Geometrizer

__all__ = [
    "Geometrizer",
    "ShapeKind",
    "ShapeResult",
]

__version__ = "0.1.0"
