"""
どこで: `shapes.kinds`。
何を: 形状種別の閉じた列挙 `ShapeKind` と、名前/列挙値からの解決（`parse`/`parse_kinds`）。
なぜ: ディスパッチ対象を閉集合に固定し、レジストリ登録の網羅性を import 時に検査できるようにするため。
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable


class ShapeKind(str, Enum):
    CIRCLE = "circle"
    CUBIC_CURVE = "cubic_curve"
    ELLIPSE = "ellipse"
    LINE = "line"
    POLYGON = "polygon"
    POLYLINE = "polyline"
    QUADRATIC_CURVE = "quadratic_curve"
    RECTANGLE = "rectangle"
    ROTATED_ELLIPSE = "rotated_ellipse"
    ROTATED_RECTANGLE = "rotated_rectangle"
    TRIANGLE = "triangle"

    @property
    def stroked(self) -> bool:
        """線として描く種別か（SVG では fill ではなく stroke を使う）。"""
        return self in STROKED_KINDS

    @classmethod
    def parse(cls, value: "ShapeKind | str") -> "ShapeKind":
        """列挙値または名前から `ShapeKind` を返す。

        名前は大文字小文字・ハイフン/空白を区別しない（"Rotated-Ellipse" → ROTATED_ELLIPSE）。

        例外:
            TypeError: 列挙値/文字列以外。
            KeyError: 未知の名前。
        """
        if isinstance(value, ShapeKind):
            return value
        if not isinstance(value, str):
            raise TypeError(f"shape 種別は ShapeKind または str である必要があります: {value!r}")
        key = value.strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return cls(key)
        except ValueError:
            raise KeyError(f"未知の shape 種別です: '{value}'") from None

    def __str__(self) -> str:
        return self.value


STROKED_KINDS = frozenset(
    {
        ShapeKind.LINE,
        ShapeKind.POLYLINE,
        ShapeKind.QUADRATIC_CURVE,
        ShapeKind.CUBIC_CURVE,
    }
)


def parse_kinds(values: "str | ShapeKind | Iterable[str | ShapeKind]") -> list[ShapeKind]:
    """カンマ区切り文字列/単体/列から種別リストを作る（重複は先勝ちで除去）。"""
    if isinstance(values, ShapeKind):
        items: list[str | ShapeKind] = [values]
    elif isinstance(values, str):
        items = [v for v in values.split(",") if v.strip()]
    else:
        items = list(values)
    out: list[ShapeKind] = []
    for item in items:
        kind = ShapeKind.parse(item)
        if kind not in out:
            out.append(kind)
    return out


__all__ = ["ShapeKind", "STROKED_KINDS", "parse_kinds"]
