from __future__ import annotations

import numpy as np
import pytest

from engine.core.bitmap import Bitmap
from util.color import argb


def test_construct_zero_filled_and_shape() -> None:
    bm = Bitmap(4, 3)
    assert (bm.width, bm.height) == (4, 3)
    assert bm.shape == (3, 4)
    assert bm.pixels.dtype == np.uint32
    assert not bm.pixels.any()


def test_zero_sized_buffer_is_allowed() -> None:
    bm = Bitmap(0, 5)
    assert bm.pixels.size == 0


@pytest.mark.parametrize("w,h", [(-1, 2), (2, -1)])
def test_negative_dimensions_raise(w: int, h: int) -> None:
    with pytest.raises(ValueError):
        Bitmap(w, h)


def test_pixel_length_mismatch_raises() -> None:
    with pytest.raises(ValueError):
        Bitmap(2, 2, [0, 0, 0])


def test_get_set_roundtrip_and_bounds() -> None:
    bm = Bitmap(3, 2)
    c = argb(200, 10, 20, 30)
    bm.set_pixel(2, 1, c)
    assert bm.get_pixel(2, 1) == c
    with pytest.raises(IndexError):
        bm.get_pixel(3, 0)
    with pytest.raises(IndexError):
        bm.set_pixel(0, -1, c)


def test_copy_is_deep() -> None:
    bm = Bitmap.filled(2, 2, argb(255, 1, 2, 3), translucent=True)
    cp = bm.copy()
    cp.set_pixel(0, 0, 0)
    assert bm.get_pixel(0, 0) == argb(255, 1, 2, 3)
    assert cp.translucent is True


def test_fill_returns_self_and_fills_all() -> None:
    bm = Bitmap(3, 3)
    assert bm.fill(0xFF123456) is bm
    assert np.all(bm.pixels == 0xFF123456)


def test_rgba_conversion_both_ways() -> None:
    rgba = np.zeros((2, 3, 4), dtype=np.uint8)
    rgba[..., 0] = 10
    rgba[..., 1] = 20
    rgba[..., 2] = 30
    rgba[..., 3] = 255
    bm = Bitmap.from_rgba(rgba)
    assert bm.translucent is False
    assert bm.get_pixel(1, 1) == argb(255, 10, 20, 30)
    assert np.array_equal(bm.to_rgba(), rgba)

    rgba[0, 0, 3] = 100
    assert Bitmap.from_rgba(rgba).translucent is True
