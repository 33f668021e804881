"""
プロジェクト向けの軽量ロギングユーティリティ。

要点:
- 既定では各モジュールが `logging.getLogger(__name__)` でロガーを取得する。
- ライブラリ層（engine/shapes）はハンドラを設定しない。CLI だけが本ヘルパを呼ぶ。
- レベル未指定時は `common.settings` の `LOG_LEVEL`（環境変数 `PRF_LOG_LEVEL`）を使う。
"""

from __future__ import annotations

import logging

from . import settings as _settings


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = _settings.get().LOG_LEVEL
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return int(level)


def setup_default_logging(level: int | str | None = None) -> None:
    """最小限のロギング設定を 1 度だけ適用する。

    - ルートロガーにハンドラが既にあれば何もしない（no-op）
    - 上位のランナー/CLI から呼び出す想定
    """
    lvl = _resolve_level(level)

    root = logging.getLogger()
    if root.handlers:
        # Assume the app has configured logging
        return
    logging.basicConfig(
        level=lvl,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


__all__ = ["setup_default_logging"]
