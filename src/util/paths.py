"""
どこで: `util.paths`。
何を: 近似結果（SVG/JSON/PNG）の保存先ディレクトリの生成と解決ユーティリティを提供する。
なぜ: CLI から簡潔に保存先を扱え、並行呼び出しでも安全に作成できるようにするため。
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from .utils import _find_project_root


def ensure_output_dir() -> Path:
    """出力先 `data/output/` を作成して返す。

    - プロジェクトルート直下の `data/output/` に作成する。
    - 既存の場合もそのまま Path を返す。
    - 並行呼び出しに対して `exist_ok=True` で安全。
    """
    root = _find_project_root(Path(__file__).parent)
    out = root / "data" / "output"
    out.mkdir(parents=True, exist_ok=True)
    return out


def default_output_path(stem: str, suffix: str = ".svg") -> Path:
    """`data/output/<stem>_<timestamp><suffix>` を返す（ディレクトリは作成済み）。"""
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    return ensure_output_dir() / f"{stem}_{ts}{suffix}"


__all__ = ["ensure_output_dir", "default_output_path"]
