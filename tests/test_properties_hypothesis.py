import numpy as np
import pytest

hypothesis = pytest.importorskip("hypothesis", reason="hypothesis is a dev optional dependency")
from hypothesis import given, settings, strategies as st  # type: ignore

from engine.core.bitmap import Bitmap
from engine.core.compositor import compute_color, difference_full, difference_partial, draw_lines
from engine.core.rasterizer import rasterize_ellipse, rasterize_triangle
from engine.core.scanline import merge_spans, span_pixel_count, spans_within

W, H = 24, 18
coord_x = st.integers(-10, W + 10)
coord_y = st.integers(-10, H + 10)


def _target(seed: int, translucent: bool) -> Bitmap:
    rng = np.random.default_rng(seed)
    px = rng.integers(0, 2**32, size=W * H, dtype=np.uint64).astype(np.uint32)
    if not translucent:
        px |= np.uint32(0xFF000000)
    return Bitmap(W, H, px, translucent=translucent)


@settings(max_examples=60, deadline=None)
@given(
    x1=coord_x, y1=coord_y, x2=coord_x, y2=coord_y, x3=coord_x, y3=coord_y,
    alpha=st.integers(1, 255), seed=st.integers(0, 1000), translucent=st.booleans(),
)
def test_partial_difference_equals_full(x1, y1, x2, y2, x3, y3, alpha, seed, translucent):
    target = _target(seed, translucent)
    before = Bitmap.filled(W, H, 0xFF202020, translucent=translucent)
    score = difference_full(target, before)
    spans = rasterize_triangle(x1, y1, x2, y2, x3, y3, W, H)
    after = before.copy()
    draw_lines(after, compute_color(target, before, spans, alpha), spans)
    got = difference_partial(target, before, after, score, spans)
    assert got == pytest.approx(difference_full(target, after), rel=1e-9, abs=1e-12)


@settings(max_examples=80, deadline=None)
@given(
    cx=coord_x, cy=coord_y, rx=st.integers(0, 40), ry=st.integers(0, 40),
)
def test_ellipse_spans_are_cropped_and_disjoint(cx, cy, rx, ry):
    spans = rasterize_ellipse(cx, cy, rx, ry, W, H)
    assert spans_within(spans, W, H)
    covered = {(y, x) for y, a, b, _ in spans.tolist() for x in range(a, b + 1)}
    assert span_pixel_count(spans) == len(covered)
    np.testing.assert_array_equal(merge_spans(spans), spans)


@settings(max_examples=40, deadline=None)
@given(seed_a=st.integers(0, 1000), seed_b=st.integers(0, 1000))
def test_opaque_difference_is_symmetric_and_zero_on_self(seed_a, seed_b):
    a = _target(seed_a, False)
    b = _target(seed_b, False)
    assert difference_full(a, a.copy()) == 0.0
    assert difference_full(a, b) == pytest.approx(difference_full(b, a))
