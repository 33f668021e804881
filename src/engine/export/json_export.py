"""
どこで: `engine.export.json_export`。
何を: 確定済み形状の列を JSON 文字列へ変換する。
なぜ: 形状パラメータ（`raw()`）と色/スコアを他ツールから再利用できるようにするため。

形式: `{"shape_0": {"type", "data", "color": [r, g, b, a], "score"}, ...}`（確定順）。
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Dict, Iterable

from util.color import unpack

if TYPE_CHECKING:
    from engine.runtime.model import ShapeResult


def result_to_dict(result: "ShapeResult") -> Dict[str, Any]:
    a, r, g, b = unpack(result.color)
    return {
        "type": result.shape.kind.value,
        "data": [float(v) for v in result.shape.raw()],
        "color": [r, g, b, a],
        "score": float(result.score),
    }


def export_json(results: Iterable["ShapeResult"], *, indent: int | None = 4) -> str:
    payload = {f"shape_{i}": result_to_dict(res) for i, res in enumerate(results)}
    return json.dumps(payload, indent=indent)


__all__ = ["export_json", "result_to_dict"]
