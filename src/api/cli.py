"""
どこで: `api.cli`（コンソールスクリプト `primfit`）。
何を: 画像を読み込み、幾何プリミティブで近似して SVG/JSON/ラスタ画像として保存する。
なぜ: ライブラリを書かずに端末から近似を試せるようにするため。

使い方:
    primfit photo.jpg -o out.svg -n 200 -s triangle,ellipse --alpha 128
    primfit photo.jpg -o out.png --working-size 128 --size 1024 --seed 1

出力形式は `-o` の拡張子で決まる（`.svg` / `.json` / それ以外は Pillow のラスタ形式）。
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from common.logging import setup_default_logging
from engine.core.bitmap import Bitmap
from shapes.kinds import ShapeKind, parse_kinds
from util.image_io import load_rgba, save_rgba
from util.paths import default_output_path
from util.utils import config_section, load_config

from .geometrizer import Geometrizer

logger = logging.getLogger(__name__)

DEFAULT_COUNT = 100
DEFAULT_WORKING_SIZE = 256


def build_parser() -> argparse.ArgumentParser:
    kinds = ", ".join(k.value for k in ShapeKind)
    p = argparse.ArgumentParser(
        prog="primfit",
        description="画像を幾何プリミティブの重ね合わせで近似する",
    )
    p.add_argument("input", help="入力画像のパス")
    p.add_argument(
        "-o", "--output", default=None, help="出力パス（.svg/.json/画像。既定: data/output/）"
    )
    p.add_argument("-n", "--count", type=int, default=DEFAULT_COUNT, help="確定する形状の数")
    p.add_argument(
        "-s", "--shapes", default=None, help=f"カンマ区切りの形状種別（{kinds}）"
    )
    p.add_argument("-a", "--alpha", type=int, default=None, help="合成 alpha（0 で alpha も探索）")
    p.add_argument("--candidates", type=int, default=None, help="多点開始の候補数")
    p.add_argument("--age", type=int, default=None, help="山登りの連続棄却上限")
    p.add_argument("--repeat", type=int, default=None, help="ステップごとの追加確定の上限")
    p.add_argument("--trials", type=int, default=None, help="ステップごとの探索ラウンド数")
    p.add_argument(
        "--working-size", type=int, default=None, help="探索に使う縮小画像の長辺（px）"
    )
    p.add_argument("--size", type=int, default=None, help="出力画像の長辺（px）")
    p.add_argument("--workers", type=int, default=None, help="探索レーン数")
    p.add_argument("--seed", type=int, default=None, help="乱数シード（再現用）")
    p.add_argument(
        "--background", default=None, help="背景色（#rrggbb。既定: 目標画像の平均色）"
    )
    p.add_argument("-v", "--verbose", action="store_true", help="DEBUG ログを出す")
    return p


def _write_output(g: Geometrizer, out: Path) -> Path:
    suffix = out.suffix.lower()
    out.parent.mkdir(parents=True, exist_ok=True)
    if suffix == ".svg":
        out.write_text(g.to_svg(), encoding="utf-8")
        return out
    if suffix == ".json":
        out.write_text(g.to_json(), encoding="utf-8")
        return out
    return save_rgba(g.snapshot().to_rgba(), out, scale=g.model.scale)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_default_logging("DEBUG" if args.verbose else None)

    cfg = load_config()
    model_cfg = config_section(cfg, "model")
    working_size = args.working_size or model_cfg.get("working_size") or DEFAULT_WORKING_SIZE

    try:
        rgba = load_rgba(args.input, working_size=int(working_size))
        kinds = parse_kinds(args.shapes) if args.shapes else None
    except (OSError, KeyError, ValueError) as e:
        logger.error("%s", e)
        return 2

    target = Bitmap.from_rgba(rgba)
    out = (
        Path(args.output)
        if args.output
        else default_output_path(Path(args.input).stem, ".svg")
    )
    with Geometrizer(
        target,
        background=args.background,
        size=args.size,
        num_workers=args.workers,
        seed=args.seed,
        config=cfg,
    ) as g:
        logger.info(
            "start: %s (%dx%d), count=%d", args.input, target.width, target.height, args.count
        )
        results = g.run(
            kinds,
            args.count,
            alpha=args.alpha,
            candidates=args.candidates,
            age=args.age,
            repeat=args.repeat,
            trials=args.trials,
        )
        path = _write_output(g, out)
    logger.info("done: %d shapes, score=%.6f -> %s", len(results), g.score, path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
