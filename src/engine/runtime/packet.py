"""
どこで: `engine.runtime` の結果コンテナ。
何を: レーンからオーケストレータへ返す `SearchPacket`（最良形状・alpha・エネルギー・評価回数）。
なぜ: バリア後の縮約（最小エネルギー選択）に必要な情報だけを、ピクル可能な形で運ぶため。
"""

from dataclasses import dataclass

from shapes.base import BaseShape


@dataclass(slots=True, frozen=True)
class SearchPacket:
    """レーン → オーケストレータへ渡す探索結果。"""

    step_id: int
    lane_id: int
    shape: BaseShape
    alpha: int
    energy: float
    evaluations: int  # このステップでレーンが行った評価回数
