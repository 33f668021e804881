"""
どこで: `shapes` パッケージ（種別クラス登録）。
何を: ビルトイン形状を import 副作用で登録し、全 `ShapeKind` が揃っていることを検査する。
なぜ: 閉じた種別集合へのディスパッチを、探索/実行層から一貫 API で解決するため。
"""

# 形状クラス定義を import して登録（副作用）
from . import circle as _register_circle  # noqa: F401
from . import cubic_curve as _register_cubic_curve  # noqa: F401
from . import ellipse as _register_ellipse  # noqa: F401
from . import line as _register_line  # noqa: F401
from . import polygon as _register_polygon  # noqa: F401
from . import polyline as _register_polyline  # noqa: F401
from . import quadratic_curve as _register_quadratic_curve  # noqa: F401
from . import rectangle as _register_rectangle  # noqa: F401
from . import rotated_ellipse as _register_rotated_ellipse  # noqa: F401
from . import rotated_rectangle as _register_rotated_rectangle  # noqa: F401
from . import triangle as _register_triangle  # noqa: F401
from .base import BaseShape
from .kinds import STROKED_KINDS, ShapeKind, parse_kinds
from .registry import (
    check_exhaustive,
    create_shape,
    get_shape_class,
    is_shape_registered,
    list_shape_kinds,
    random_shape_of,
)

check_exhaustive()

__all__ = [
    "BaseShape",
    "ShapeKind",
    "STROKED_KINDS",
    "parse_kinds",
    "create_shape",
    "get_shape_class",
    "is_shape_registered",
    "list_shape_kinds",
    "random_shape_of",
]
