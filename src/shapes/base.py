"""
シェイプ基底モジュール

概要:
- 形状プリミティブのための抽象基底 `BaseShape` を定義する。
- 生成（`random`）・複製（`copy`）・変異（`mutate`）・ラスタライズ（`rasterize`）・
  直列化（`raw`/`svg`）の共通インターフェイスを規定する。

設計意図:
- パラメータは整数（線幅のみ float）の素朴な属性として持ち、`_fields` に列挙する。
  `copy()`/スナップショット/復元は `_fields` から機械的に行う（リスト属性は要素ごと複製）。
- 乱数は常に呼び出し側の `numpy.random.Generator` から取る。形状自身は RNG を持たない
  （ピクル可能なプレーンオブジェクトとしてプロセス間で受け渡すため）。
- 妥当性述語を持つ種別（`has_predicate = True`）は、変異を累積的に再試行して述語を満たすまで
  繰り返す。試行回数は `PRF_MUTATION_RETRY_LIMIT` で打ち切り、尽きたら変異前に戻す。

公開 API:
- `BaseShape.random(width, height, rng)`（抽象 classmethod）
- `copy()`, `mutate(rng) -> bool`, `rasterize() -> SpanArray`, `raw() -> tuple[float, ...]`,
  `svg(attrs) -> str`, `is_valid() -> bool`, `kind`
- 補助: `clamp`, `gauss_step`, `uniform_offset`
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, ClassVar, TypeVar

import numpy as np

from common import settings as _settings
from common.types import SpanArray

from .kinds import ShapeKind

logger = logging.getLogger(__name__)

S = TypeVar("S", bound="BaseShape")

MUTATION_STEP = 16
CURVE_MARGIN = 16


def clamp(x: int, lo: int, hi: int) -> int:
    """`lo` 未満は `lo`、`hi` 超は `hi`（`hi < lo` のキャンバスでは下限判定が優先）。"""
    if x < lo:
        return lo
    if x > hi:
        return hi
    return x


def gauss_step(rng: np.random.Generator, scale: float = MUTATION_STEP) -> int:
    """正規乱数 × scale を 0 方向へ切り捨てた整数ステップ。"""
    return int(rng.standard_normal() * scale)


def uniform_offset(rng: np.random.Generator, spread: int = 40) -> int:
    """`[-spread/2, spread/2)` の一様整数オフセット。"""
    return int(rng.random() * spread) - spread // 2


class BaseShape(ABC):
    """すべての形状種別のベースクラス。

    - `width`/`height` はキャンバス境界（クランプとクリップに使う）。
    - `mutate` はインプレース。変異前に戻したい呼び出し側は先に `copy()` を取る。
    """

    kind: ClassVar[ShapeKind]
    _fields: ClassVar[tuple[str, ...]] = ()
    has_predicate: ClassVar[bool] = False

    def __init__(self, width: int, height: int) -> None:
        self.width = int(width)
        self.height = int(height)

    # ---- 生成 -----------------------------------------------------------
    @classmethod
    @abstractmethod
    def random(cls: type[S], width: int, height: int, rng: np.random.Generator) -> S:
        """キャンバス内に乱択した形状を返す。"""

    @classmethod
    def _draw_valid(cls: type[S], draw: Callable[[], S], rng: np.random.Generator) -> S:
        """`draw()` → `mutate()` を述語が成り立つまで繰り返す。"""
        limit = _settings.get().MUTATION_RETRY_LIMIT
        for _ in range(limit):
            shape = draw()
            shape.mutate(rng)
            if shape.is_valid():
                return shape
        raise RuntimeError(f"{cls.kind.value}: 妥当な形状を {limit} 回の試行で生成できませんでした")

    # ---- 複製/状態 -------------------------------------------------------
    def _snapshot(self) -> tuple[Any, ...]:
        return tuple(
            list(v) if isinstance(v, list) else v for v in (getattr(self, f) for f in self._fields)
        )

    def _restore(self, snapshot: tuple[Any, ...]) -> None:
        for name, value in zip(self._fields, snapshot):
            setattr(self, name, list(value) if isinstance(value, list) else value)

    def copy(self: S) -> S:
        out = type(self).__new__(type(self))
        out.width = self.width
        out.height = self.height
        out._restore(self._snapshot())
        return out

    # ---- 変異 -----------------------------------------------------------
    @abstractmethod
    def _mutate_once(self, rng: np.random.Generator) -> None:
        """属性グループを 1 つ選んで摂動する（妥当性は見ない）。"""

    def is_valid(self) -> bool:
        return True

    def mutate(self, rng: np.random.Generator) -> bool:
        """変異を適用する。述語付き種別で再試行が尽きた場合は変異前に戻して False。"""
        if not self.has_predicate:
            self._mutate_once(rng)
            return True
        before = self._snapshot()
        limit = _settings.get().MUTATION_RETRY_LIMIT
        for _ in range(limit):
            self._mutate_once(rng)
            if self.is_valid():
                return True
        self._restore(before)
        logger.debug("%s: mutation retries exhausted (limit=%d)", self.kind.value, limit)
        return False

    # ---- 出力 -----------------------------------------------------------
    @abstractmethod
    def rasterize(self) -> SpanArray:
        """キャンバスへクリップ済みのスパン配列を返す。"""

    @abstractmethod
    def raw(self) -> tuple[float, ...]:
        """種別ごとに長さと並びが固定の数値列。"""

    @abstractmethod
    def svg(self, attrs: str) -> str:
        """SVG 要素文字列（`attrs` は色/不透明度などの属性列）。"""

    # ---- 比較/表示 -------------------------------------------------------
    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        assert isinstance(other, BaseShape)
        return (self.width, self.height, self._snapshot()) == (
            other.width,
            other.height,
            other._snapshot(),
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        params = ", ".join(f"{f}={getattr(self, f)!r}" for f in self._fields)
        return f"{type(self).__name__}({params})"


__all__ = [
    "BaseShape",
    "MUTATION_STEP",
    "CURVE_MARGIN",
    "clamp",
    "gauss_step",
    "uniform_offset",
]
