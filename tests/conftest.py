"""共通フィクスチャ。

- 乱数シード固定
- 小さな目標画像/キャンバス試料
- 探索レーンはインライン実行（プロセス起動は integration マーカーのテストのみ）
"""

from __future__ import annotations

from typing import Iterator

import numpy as np
import pytest

from common import settings as _settings
from engine.core.bitmap import Bitmap
from util.color import argb, rgb


@pytest.fixture(scope="session", autouse=True)
def np_seed() -> None:
    """NumPy の乱数を固定。"""
    np.random.seed(12345)


@pytest.fixture()
def rng() -> np.random.Generator:
    return np.random.default_rng(2024)


@pytest.fixture()
def inline_lanes(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("PRF_USE_PROCESSES", "0")
    _settings.reload_from_env()
    yield
    monkeypatch.delenv("PRF_USE_PROCESSES", raising=False)
    _settings.reload_from_env()


@pytest.fixture()
def gradient_target() -> Bitmap:
    """左右で赤→青に変わる 32x24 の不透明画像。"""
    w, h = 32, 24
    px = np.empty((h, w), dtype=np.uint32)
    for x in range(w):
        r = int(255 * (w - 1 - x) / (w - 1))
        b = int(255 * x / (w - 1))
        px[:, x] = rgb(r, 40, b)
    return Bitmap(w, h, px.ravel())


@pytest.fixture()
def black_canvas() -> Bitmap:
    return Bitmap.filled(32, 24, argb(255, 0, 0, 0))
