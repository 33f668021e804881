"""
どこで: `engine.runtime` のタスク定義。
何を: 各レーンへ渡す 1 ステップぶんの `SearchTask`（基準画像・走行スコア・探索パラメータ）。
なぜ: 実行キューの型を固定し、プロセス間/インラインでの受け渡しを同一にするため。
"""

from dataclasses import dataclass

import numpy as np


@dataclass(slots=True, frozen=True)
class SearchTask:
    """オーケストレータ → レーンへ送る探索タスク。"""

    step_id: int
    current: np.ndarray  # (h, w) uint32。レーン側では読み取りのみ
    score: float  # current に対する走行スコア（difference_full の値）
    kinds: tuple[str, ...]
    alpha: int  # 0 = alpha も探索する
    n: int  # 多点開始の候補数
    age: int  # 山登りの連続棄却上限
    trials: int  # このレーンで回すラウンド数
