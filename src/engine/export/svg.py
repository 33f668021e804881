"""
どこで: `engine.export.svg`。
何を: 確定済み形状の列を SVG 文書へ書き出す `SvgWriter` と、文字列を返す `export_svg`。
なぜ: 作業解像度で探索した結果を、出力サイズへ拡大しても劣化しないベクタとして残すため。

出力構成:
- XML プレリュード → `<svg viewBox="0 0 W H">` → 背景 `<rect>` →
  `<g transform="scale(S) translate(0.5 0.5)">` 内に形状を 1 行ずつ → 閉じタグ。
- 線系（line/polyline/曲線）は `fill="none"` と stroke 属性、面系は fill 属性で着色する。
- 不透明度は `alpha/255` を `%f` 書式で出す。
"""

from __future__ import annotations

import io
from typing import IO, TYPE_CHECKING, Iterable

from util.color import alpha, check_argb, to_hex_rgb

if TYPE_CHECKING:
    from engine.runtime.model import ShapeResult

PRELUDE = '<?xml version="1.0" standalone="no"?>\n'


def style_attrs(kind_stroked: bool, color: int) -> str:
    """形状 1 個分の色/不透明度の属性列。"""
    opacity = alpha(color) / 255.0
    hex_rgb = to_hex_rgb(color)
    if kind_stroked:
        return f'fill="none" stroke="{hex_rgb}" stroke-opacity="{opacity:f}"'
    return f'fill="{hex_rgb}" fill-opacity="{opacity:f}"'


class SvgWriter:
    """SVG 書き出しクラス。`fp` へテキストを逐次出力する。"""

    def write(
        self,
        results: Iterable["ShapeResult"],
        width: int,
        height: int,
        scale: float,
        background: int,
        fp: IO[str],
    ) -> None:
        """結果列を SVG として `fp` に書き出す。

        引数:
            results: 確定順の形状記録。
            width, height: viewBox のサイズ（通常は出力サイズ）。
            scale: 作業解像度から出力サイズへの倍率。
            background: 背景色（ARGB32。alpha は無視）。
            fp: テキスト書き出し先。
        """
        if width < 0 or height < 0:
            raise ValueError(f"SVG のサイズが負です: {width}x{height}")
        background = check_argb(background)
        fp.write(PRELUDE)
        fp.write(
            '<svg xmlns="http://www.w3.org/2000/svg" version="1.1" '
            f'viewBox="0 0 {int(width)} {int(height)}">\n'
        )
        fp.write(f'<rect width="100%" height="100%" fill="{to_hex_rgb(background)}" />\n')
        fp.write(f'<g transform="scale({float(scale):f}) translate(0.5 0.5)">\n')
        for result in results:
            attrs = style_attrs(result.shape.kind.stroked, result.color)
            fp.write(result.shape.svg(attrs))
            fp.write("\n")
        fp.write("</g>\n")
        fp.write("</svg>")


def export_svg(
    results: Iterable["ShapeResult"],
    width: int,
    height: int,
    scale: float,
    background: int,
) -> str:
    """結果列を SVG 文字列で返す。"""
    buf = io.StringIO()
    SvgWriter().write(results, width, height, scale, background, buf)
    return buf.getvalue()


__all__ = ["SvgWriter", "export_svg", "style_attrs"]
