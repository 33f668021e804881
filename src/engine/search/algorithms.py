"""
どこで: `engine.search.algorithms`。
何を: 乱択多点開始（best_random_state）・山登り（hill_climb）・その組合せ（best_hill_climb_state）。
なぜ: 1 レーンの探索手順を worker 実装から切り離し、単体で性質（非悪化・最小選択）を検証できるようにするため。

山登りは焼きなましではなく、悪化（同値を含む）を一切受理しない貪欲探索。
連続棄却数が `max_age` に達したら停止する。
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from shapes.kinds import ShapeKind

from .state import SearchState

if TYPE_CHECKING:
    from .worker import Worker


def hill_climb(state: SearchState, max_age: int) -> SearchState:
    """`state` から山登りして最良状態（複製）を返す。

    `state` 自体はエネルギーのキャッシュ以外変更しない。
    """
    best_energy = state.energy()
    s = state.copy()
    best = state.copy()
    age = 0
    while age < max_age:
        undo = s.mutate()
        energy = s.energy()
        if energy >= best_energy:
            s.undo(undo)
            age += 1
        else:
            best_energy = energy
            best = s.copy()
            age = 0
    return best


def best_random_state(
    worker: "Worker", kinds: Sequence[ShapeKind | str], alpha: int, n: int
) -> SearchState:
    """`n` 個の乱択状態を 1 回ずつ評価し、最小エネルギーのものを返す。"""
    if n < 1:
        raise ValueError(f"n は 1 以上である必要があります: {n}")
    best: SearchState | None = None
    best_energy = 0.0
    for i in range(n):
        state = worker.random_state(kinds, alpha)
        energy = state.energy()
        if i == 0 or energy < best_energy:
            best_energy = energy
            best = state
    assert best is not None
    return best


def best_hill_climb_state(
    worker: "Worker",
    kinds: Sequence[ShapeKind | str],
    alpha: int,
    n: int,
    age: int,
    m: int,
) -> SearchState:
    """多点開始 → 山登り を `m` ラウンド行い、全ラウンドの最良状態を返す。"""
    if m < 1:
        raise ValueError(f"m は 1 以上である必要があります: {m}")
    best: SearchState | None = None
    best_energy = 0.0
    for i in range(m):
        state = best_random_state(worker, kinds, alpha, n)
        state = hill_climb(state, age)
        energy = state.energy()
        if i == 0 or energy < best_energy:
            best_energy = energy
            best = state
    assert best is not None
    return best


__all__ = ["hill_climb", "best_random_state", "best_hill_climb_state"]
