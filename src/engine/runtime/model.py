"""
どこで: `engine.runtime.model`。
何を: 探索のオーケストレータ `Model`。目標画像・現在画像・走行スコア・確定済み形状の履歴を所有し、
      `step()` で「全レーン探索 → バリア → 最小エネルギーへの縮約 → 確定」を 1 サイクル行う。
なぜ: 共有状態（現在画像と走行スコア）の更新をバリア後の逐次処理に閉じ込め、
      レーン側を同期なしで回せるようにするため。

確定の条件:
- 勝者のエネルギーが走行スコアより厳密に小さいときだけ確定する（ステップで悪化させない）。
- 追加の繰り返し（repeat）は直前の勝者を新しい基準で再評価して山登りし、エネルギーが
  変わらない/改善しない時点で打ち切る。
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Iterable

from common import settings as _settings
from engine.core.bitmap import Bitmap
from engine.core.compositor import (
    compute_color,
    copy_lines,
    difference_full,
    difference_partial,
    draw_lines,
)
from engine.search.algorithms import hill_climb
from engine.search.state import SearchState
from engine.search.worker import Worker
from shapes.base import BaseShape
from shapes.kinds import ShapeKind, parse_kinds
from util.color import check_argb, to_hex_rgb

from .worker import WorkerPool

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ShapeResult:
    """確定した 1 形状の記録（確定後の走行スコア・解決済み色・形状）。"""

    score: float
    color: int
    shape: BaseShape


def scaled_size(width: int, height: int, size: int) -> tuple[int, int, float]:
    """出力サイズ `size` に対する `(scaled_width, scaled_height, scale)`。

    横長/正方形は幅を、縦長は高さを `size` に合わせる。
    """
    aspect = width / height
    if aspect >= 1:
        return size, int(size / aspect), size / width
    return int(size * aspect), size, size / height


class Model:
    def __init__(
        self,
        target: Bitmap,
        background: int,
        size: int,
        num_workers: int | None = None,
        *,
        use_processes: bool | None = None,
        seed: int | None = None,
    ) -> None:
        if target.width <= 0 or target.height <= 0:
            raise ValueError(f"目標画像が空です: {target.width}x{target.height}")
        if size <= 0:
            raise ValueError(f"size は正の整数である必要があります: {size}")
        if num_workers is None:
            num_workers = _settings.get().WORKERS or os.cpu_count() or 1
        self._target = target
        self._background = check_argb(background)
        self._width = target.width
        self._height = target.height
        self._scaled_width, self._scaled_height, self._scale = scaled_size(
            target.width, target.height, int(size)
        )
        self._current = Bitmap.filled(
            target.width, target.height, self._background, translucent=target.translucent
        )
        self._scratch = self._current.copy()
        self._score = difference_full(target, self._current)
        self._history: list[ShapeResult] = []
        self._last_evaluations = 0
        self._pool = WorkerPool(target, num_workers, use_processes=use_processes, seed=seed)
        # 追加の繰り返し（repeat）用のローカルレーン
        local_seed = None if seed is None else seed + 0x5EED
        self._local = Worker(target, lane_id=-1, seed=local_seed)
        logger.info(
            "model: %dx%d -> %dx%d, workers=%d, background=%s, score=%.6f",
            self._width,
            self._height,
            self._scaled_width,
            self._scaled_height,
            num_workers,
            to_hex_rgb(self._background),
            self._score,
        )

    # ---- 属性 -----------------------------------------------------------
    @property
    def target(self) -> Bitmap:
        return self._target

    @property
    def current(self) -> Bitmap:
        """現在画像（共有参照。呼び出し側は書き換えないこと）。"""
        return self._current

    @property
    def score(self) -> float:
        return self._score

    @property
    def history(self) -> tuple[ShapeResult, ...]:
        return tuple(self._history)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def background(self) -> int:
        return self._background

    @property
    def scaled_width(self) -> int:
        return self._scaled_width

    @property
    def scaled_height(self) -> int:
        return self._scaled_height

    @property
    def scale(self) -> float:
        return self._scale

    @property
    def num_workers(self) -> int:
        return self._pool.num_workers

    @property
    def last_evaluations(self) -> int:
        """直近の step() で全レーンが行った評価回数の合計。"""
        return self._last_evaluations

    # ---- 探索 -----------------------------------------------------------
    def step(
        self,
        kinds: Iterable[ShapeKind | str] | str,
        alpha: int = 128,
        n: int = 1000,
        age: int = 100,
        repeat: int = 0,
        *,
        trials: int = 16,
    ) -> list[ShapeResult]:
        """1 サイクル分の探索と確定を行い、確定した形状の記録を返す（改善なしなら空）。

        引数:
            kinds: 探索対象の形状種別（1 つ以上。列/単体/カンマ区切り文字列）。
            alpha: 合成 alpha（0 は alpha も探索する）。
            n: 多点開始の候補数。
            age: 山登りの連続棄却上限。
            repeat: 追加で確定を試みる回数の上限。
            trials: 全レーン合計の多点開始+山登りラウンド数（下限）。
        """
        kinds = parse_kinds(kinds)
        if not kinds:
            raise ValueError("shape 種別を 1 つ以上指定してください")
        alpha = int(alpha)
        if alpha < 0 or alpha > 255:
            raise ValueError(f"alpha は 0–255 である必要があります: {alpha}")
        for name, value in (("n", n), ("age", age), ("trials", trials)):
            if value < 1:
                raise ValueError(f"{name} は 1 以上である必要があります: {value}")
        if repeat < 0:
            raise ValueError(f"repeat は 0 以上である必要があります: {repeat}")

        packets = self._pool.run(self._current, self._score, kinds, alpha, n, age, trials)
        self._last_evaluations = sum(p.evaluations for p in packets)
        winner = min(packets, key=lambda p: (p.energy, p.lane_id))
        if winner.energy >= self._score:
            logger.info(
                "step skipped: best energy %.6f does not improve score %.6f",
                winner.energy,
                self._score,
            )
            return []

        results = [self.add(winner.shape, winner.alpha)]
        logger.debug(
            "step: kind=%s score=%.6f evaluations=%d",
            winner.shape.kind.value,
            self._score,
            self._last_evaluations,
        )

        state = SearchState(
            self._local, winner.shape.copy(), winner.alpha, mutate_alpha=alpha == 0
        )
        for _ in range(repeat):
            self._local.reset(self._current, self._score)
            state.invalidate()
            a = state.energy()
            state = hill_climb(state, age)
            b = state.energy()
            self._last_evaluations += self._local.counter
            if a == b or b >= self._score:
                logger.debug("repeat converged: energy=%.6f score=%.6f", b, self._score)
                break
            results.append(self.add(state.shape.copy(), state.alpha))
        return results

    def add(self, shape: BaseShape, alpha: int) -> ShapeResult:
        """形状を現在画像へ確定し、走行スコアを部分差分で更新して記録を返す。"""
        spans = shape.rasterize()
        color = compute_color(self._target, self._current, spans, alpha)
        # 変更前のマスク領域を退避（scratch はマスク外でも current と一致させておく）
        copy_lines(self._scratch, self._current, spans)
        draw_lines(self._current, color, spans)
        self._score = difference_partial(
            self._target, self._scratch, self._current, self._score, spans
        )
        copy_lines(self._scratch, self._current, spans)
        result = ShapeResult(self._score, color, shape)
        self._history.append(result)
        return result

    # ---- 後始末 ---------------------------------------------------------
    def close(self) -> None:
        self._pool.close()

    def __enter__(self) -> "Model":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["Model", "ShapeResult", "scaled_size"]
