"""
どこで: `api.geometrizer`（高レベル公開 API）。
何を: 目標画像を幾何プリミティブで近似する `Geometrizer`。`Model` を所有し、
      構成ファイル（`configs/default.yaml` / `config.yaml`）と組込み既定値から探索パラメータを補う。
なぜ: 利用者がパラメータの細部を意識せず「step/run → SVG/JSON」まで完結できるようにするため。

既定値の優先順: 引数 > 構成ファイル（`search:`/`model:`） > 組込み定数。
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from engine.core.bitmap import Bitmap
from engine.export.json_export import export_json
from engine.export.svg import export_svg
from engine.runtime.model import Model, ShapeResult
from shapes.kinds import ShapeKind, parse_kinds
from util.color import average_color, to_argb
from util.utils import config_section, load_config

logger = logging.getLogger(__name__)

DEFAULT_SIZE = 1024
DEFAULT_ALPHA = 128
DEFAULT_CANDIDATES = 1000
DEFAULT_AGE = 100
DEFAULT_REPEAT = 0
DEFAULT_TRIALS = 16


def _pick(value: Any, section: Mapping[str, Any], key: str, fallback: Any) -> Any:
    if value is not None:
        return value
    configured = section.get(key)
    return fallback if configured is None else configured


class Geometrizer:
    """目標画像の近似器。

    使用例:
        with Geometrizer(bitmap, seed=1) as g:
            g.run(["triangle", "ellipse"], 100)
            svg = g.to_svg()
    """

    def __init__(
        self,
        target: Bitmap,
        background: int | str | tuple | None = None,
        size: int | None = None,
        num_workers: int | None = None,
        *,
        seed: int | None = None,
        use_processes: bool | None = None,
        config: Mapping[str, Any] | None = None,
    ) -> None:
        cfg = load_config() if config is None else config
        self._search = config_section(cfg, "search")
        model_cfg = config_section(cfg, "model")

        bg = _pick(background, model_cfg, "background", None)
        bg_argb = average_color(target.pixels) if bg is None else to_argb(bg)
        out_size = int(_pick(size, model_cfg, "size", DEFAULT_SIZE))
        workers = _pick(num_workers, model_cfg, "workers", None)

        self._model = Model(
            target,
            bg_argb,
            out_size,
            None if workers is None else int(workers),
            use_processes=use_processes,
            seed=seed,
        )

    # ---- 探索 -----------------------------------------------------------
    def _search_param(self, value: Any, key: str, fallback: int) -> int:
        return int(_pick(value, self._search, key, fallback))

    def default_kinds(self) -> list[ShapeKind]:
        """構成ファイルの `search.shapes`（未指定時は triangle）。"""
        return parse_kinds(self._search.get("shapes") or [ShapeKind.TRIANGLE])

    def step(
        self,
        kinds: Iterable[ShapeKind | str] | str | None = None,
        alpha: int | None = None,
        candidates: int | None = None,
        age: int | None = None,
        repeat: int | None = None,
        *,
        trials: int | None = None,
    ) -> list[ShapeResult]:
        """1 ステップ進め、確定した形状の記録を返す（改善なしなら空リスト）。"""
        resolved = self.default_kinds() if kinds is None else parse_kinds(kinds)
        return self._model.step(
            resolved,
            alpha=self._search_param(alpha, "alpha", DEFAULT_ALPHA),
            n=self._search_param(candidates, "candidates", DEFAULT_CANDIDATES),
            age=self._search_param(age, "age", DEFAULT_AGE),
            repeat=self._search_param(repeat, "repeat", DEFAULT_REPEAT),
            trials=self._search_param(trials, "trials", DEFAULT_TRIALS),
        )

    def run(
        self,
        kinds: Iterable[ShapeKind | str] | str | None,
        count: int,
        **step_kwargs: Any,
    ) -> list[ShapeResult]:
        """`count` 個の形状が確定するか、ステップが改善しなくなるまで進める。"""
        if count < 0:
            raise ValueError(f"count は 0 以上である必要があります: {count}")
        committed: list[ShapeResult] = []
        while len(committed) < count:
            results = self.step(kinds, **step_kwargs)
            if not results:
                logger.info("run stalled after %d shapes (score=%.6f)", len(committed), self.score)
                break
            committed.extend(results)
        return committed

    # ---- 参照 -----------------------------------------------------------
    def snapshot(self) -> Bitmap:
        """現在画像のコピー。"""
        return self._model.current.copy()

    def target(self) -> Bitmap:
        return self._model.target

    @property
    def score(self) -> float:
        return self._model.score

    @property
    def model(self) -> Model:
        return self._model

    @property
    def results(self) -> tuple[ShapeResult, ...]:
        return self._model.history

    # ---- 書き出し -------------------------------------------------------
    def to_svg(self) -> str:
        m = self._model
        return export_svg(m.history, m.scaled_width, m.scaled_height, m.scale, m.background)

    def to_json(self) -> str:
        return export_json(self._model.history)

    # ---- 後始末 ---------------------------------------------------------
    def close(self) -> None:
        self._model.close()

    def __enter__(self) -> "Geometrizer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["Geometrizer"]
