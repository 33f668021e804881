"""
どこで: `engine.search.state`。
何を: 探索状態 `SearchState`（形状 + alpha + エネルギーキャッシュ）。
なぜ: 変異→評価→棄却の山登りで、変異前の状態へ安価に戻せるようにするため。

状態遷移:
- 未評価（キャッシュなし）→ `energy()` → 評価済み（キャッシュあり）。
- 評価済みでの `energy()` は再計算せずキャッシュを返す（冪等な読み取り）。
- `mutate()` は変異前のスナップショットを返し、未評価へ戻す。`undo(snapshot)` でキャッシュごと復元。

バッファはすべて `worker` 側にあり、状態は参照を持たない（`copy()` は形状だけを複製し worker を共有）。
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from shapes.base import BaseShape

if TYPE_CHECKING:
    from .worker import Worker

DEFAULT_SEARCH_ALPHA = 128
ALPHA_STEP = 10


class SearchState:
    __slots__ = ("worker", "shape", "alpha", "mutate_alpha", "_energy")

    def __init__(
        self,
        worker: "Worker",
        shape: BaseShape,
        alpha: int,
        *,
        mutate_alpha: bool | None = None,
    ) -> None:
        alpha = int(alpha)
        if alpha < 0 or alpha > 255:
            raise ValueError(f"alpha は 0–255 である必要があります: {alpha}")
        if mutate_alpha is None:
            # alpha=0 は「alpha も探索する」の意
            mutate_alpha = alpha == 0
            if alpha == 0:
                alpha = DEFAULT_SEARCH_ALPHA
        elif alpha == 0:
            raise ValueError("mutate_alpha を明示する場合 alpha は 1–255 である必要があります")
        self.worker = worker
        self.shape = shape
        self.alpha = alpha
        self.mutate_alpha = bool(mutate_alpha)
        self._energy: float | None = None

    @property
    def evaluated(self) -> bool:
        return self._energy is not None

    def energy(self) -> float:
        if self._energy is None:
            self._energy = self.worker.energy(self.shape, self.alpha)
        return self._energy

    def invalidate(self) -> None:
        """キャッシュを破棄する（基準バッファが変わった後の再評価用）。"""
        self._energy = None

    def mutate(self) -> "SearchState":
        """形状（と必要なら alpha）を変異させ、変異前のスナップショットを返す。"""
        undo = self.copy()
        rng = self.worker.rng
        self.shape.mutate(rng)
        if self.mutate_alpha:
            step = int(rng.integers(2 * ALPHA_STEP + 1)) - ALPHA_STEP
            self.alpha = min(max(self.alpha + step, 1), 255)
        self._energy = None
        return undo

    def undo(self, snapshot: "SearchState") -> None:
        self.shape = snapshot.shape
        self.alpha = snapshot.alpha
        self._energy = snapshot._energy

    def copy(self) -> "SearchState":
        out = SearchState.__new__(SearchState)
        out.worker = self.worker
        out.shape = self.shape.copy()
        out.alpha = self.alpha
        out.mutate_alpha = self.mutate_alpha
        out._energy = self._energy
        return out

    def __repr__(self) -> str:
        e = "-" if self._energy is None else f"{self._energy:.6f}"
        return f"SearchState({self.shape!r}, alpha={self.alpha}, energy={e})"


__all__ = ["SearchState", "DEFAULT_SEARCH_ALPHA"]
