"""
どこで: `shapes` のレジストリ層（クラス専用）。
何を: `@shape_kind` デコレータで形状クラスを種別に登録し、取得/一覧/検査/乱択生成を提供。
なぜ: 閉じた種別集合から形状クラスへのディスパッチを一箇所に集約し、未知種別を即座に弾くため。

概要:
- キーは `ShapeKind` の値（"rotated_ellipse" 等）。文字列/列挙値のどちらでも引ける。
- 登録対象は `BaseShape` のサブクラスのみ。クラスの `kind` 属性はデコレータが設定する。
"""

from __future__ import annotations

import inspect
from typing import Any, Callable, Iterable, Mapping, Sequence, TypeVar

import numpy as np

from common.base_registry import BaseRegistry

from .base import BaseShape
from .kinds import ShapeKind

T = TypeVar("T", bound=type[BaseShape])

_shape_registry = BaseRegistry()


def shape_kind(kind: ShapeKind | str) -> Callable[[T], T]:
    """形状クラスを種別に登録するデコレータ。

    使用例:
        @shape_kind(ShapeKind.CIRCLE)
        class Circle(BaseShape): ...

    例外:
    - TypeError: `BaseShape` のサブクラス以外を登録しようとした場合。
    """
    resolved = ShapeKind.parse(kind)

    def _decorator(cls: T) -> T:
        if not (inspect.isclass(cls) and issubclass(cls, BaseShape)):
            raise TypeError(f"@shape_kind は BaseShape のサブクラスのみ登録可能です: got {cls!r}")
        cls.kind = resolved
        return _shape_registry.register(resolved)(cls)

    return _decorator


def get_shape_class(kind: ShapeKind | str) -> type[BaseShape]:
    """登録された形状クラスを取得。

    例外:
        KeyError: 種別が登録されていない場合
    """
    return _shape_registry.get(ShapeKind.parse(kind))


def list_shape_kinds() -> list[ShapeKind]:
    """登録済みの種別（列挙順）。"""
    return [k for k in ShapeKind if _shape_registry.is_registered(k)]


def is_shape_registered(kind: ShapeKind | str) -> bool:
    try:
        return _shape_registry.is_registered(ShapeKind.parse(kind))
    except KeyError:
        return False


def create_shape(
    kind: ShapeKind | str, width: int, height: int, rng: np.random.Generator
) -> BaseShape:
    """指定種別の形状をキャンバス内に乱択生成する。"""
    return get_shape_class(kind).random(width, height, rng)


def random_shape_of(
    kinds: Sequence[ShapeKind | str], width: int, height: int, rng: np.random.Generator
) -> BaseShape:
    """`kinds` から一様に 1 種別を選び、乱択生成する。

    例外:
        ValueError: `kinds` が空。
    """
    if len(kinds) < 1:
        raise ValueError("shape 種別を 1 つ以上指定してください")
    idx = int(rng.integers(len(kinds)))
    return create_shape(kinds[idx], width, height, rng)


def check_exhaustive(kinds: Iterable[ShapeKind] = ShapeKind) -> None:
    """すべての種別にクラスが登録されているか検査する（不足時は RuntimeError）。"""
    missing = [k.value for k in kinds if not _shape_registry.is_registered(k)]
    if missing:
        raise RuntimeError(f"未登録の shape 種別があります: {', '.join(missing)}")


def get_registry() -> Mapping[str, Any]:
    """読み取り専用ビューとしてレジストリ辞書を返す。"""
    return _shape_registry.registry


__all__ = [
    "shape_kind",
    "get_shape_class",
    "list_shape_kinds",
    "is_shape_registered",
    "create_shape",
    "random_shape_of",
    "check_exhaustive",
    "get_registry",
]
