"""
どこで: `engine.search.worker`。
何を: 探索レーン `Worker`。目標画像（共有・読み取り専用）と、借用した現在画像・走行スコアに対し
      候補形状のエネルギーを評価する。専用のスクラッチバッファと RNG を持つ。
なぜ: レーン間で書き込み先を共有しないことで、探索中の同期を不要にするため。

- `reset(current, score)` でステップごとに基準を差し替える（評価回数カウンタも 0 に戻す）。
- `current` は借用でありレーンからは書き込まない。書き込みは `scratch` のマスク領域だけ。
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from engine.core.bitmap import Bitmap
from engine.core.compositor import evaluate_spans
from shapes.base import BaseShape
from shapes.kinds import ShapeKind
from shapes.registry import random_shape_of

from . import algorithms
from .state import SearchState

logger = logging.getLogger(__name__)


class Worker:
    def __init__(
        self,
        target: Bitmap,
        *,
        lane_id: int = 0,
        seed: int | np.random.SeedSequence | np.random.Generator | None = None,
    ) -> None:
        self.target = target
        self.width = target.width
        self.height = target.height
        self.lane_id = int(lane_id)
        self.scratch = Bitmap(target.width, target.height, translucent=target.translucent)
        self.rng = np.random.default_rng(seed)
        self.current: Bitmap | None = None
        self.score = 0.0
        self.counter = 0

    def reset(self, current: Bitmap, score: float) -> None:
        """基準となる現在画像と走行スコアを差し替え、評価回数を 0 に戻す。"""
        if not current.same_size(self.target):
            raise ValueError(
                f"現在画像のサイズが目標と一致しません: {current.width}x{current.height} "
                f"!= {self.width}x{self.height}"
            )
        self.current = current
        self.score = float(score)
        self.counter = 0

    def energy(self, shape: BaseShape, alpha: int) -> float:
        """`shape` を alpha で現在画像へ足した場合の全体差分（小さいほど良い）。"""
        if self.current is None:
            raise RuntimeError("reset() 前に energy() は呼べません")
        self.counter += 1
        spans = shape.rasterize()
        energy, _ = evaluate_spans(
            self.target, self.current, self.scratch, spans, alpha, self.score
        )
        return energy

    def random_state(self, kinds: Sequence[ShapeKind | str], alpha: int) -> SearchState:
        shape = random_shape_of(kinds, self.width, self.height, self.rng)
        return SearchState(self, shape, alpha)

    def best_random_state(
        self, kinds: Sequence[ShapeKind | str], alpha: int, n: int
    ) -> SearchState:
        return algorithms.best_random_state(self, kinds, alpha, n)

    def best_hill_climb_state(
        self,
        kinds: Sequence[ShapeKind | str],
        alpha: int,
        n: int,
        age: int,
        m: int,
    ) -> SearchState:
        """多点開始（n 候補）→ 山登り（age）を m ラウンド行い、最良状態を返す。"""
        state = algorithms.best_hill_climb_state(self, kinds, alpha, n, age, m)
        logger.debug(
            "lane=%d best energy=%.6f evaluations=%d", self.lane_id, state.energy(), self.counter
        )
        return state

    def __repr__(self) -> str:
        return f"Worker(lane={self.lane_id}, {self.width}x{self.height}, evaluations={self.counter})"


__all__ = ["Worker"]
