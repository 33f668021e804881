from __future__ import annotations

import numpy as np
import pytest

from engine.core.rasterizer import (
    as_int_array,
    rasterize_ellipse,
    rasterize_line,
    rasterize_path,
    rasterize_polygon,
    rasterize_quad,
    rasterize_triangle,
)
from engine.core.scanline import (
    FULL_COVERAGE,
    crop_spans,
    full_canvas_spans,
    make_spans,
    merge_spans,
    normalize_mask,
    span_pixel_count,
    spans_within,
)

W, H = 20, 15


def _covered(spans: np.ndarray) -> set[tuple[int, int]]:
    out: set[tuple[int, int]] = set()
    for y, x1, x2, _a in spans:
        for x in range(int(x1), int(x2) + 1):
            out.add((x, int(y)))
    return out


def _no_overlap(spans: np.ndarray) -> bool:
    return span_pixel_count(spans) == len(_covered(spans))


def test_crop_drops_rows_and_clamps_columns() -> None:
    spans = make_spans([(-1, 0, 5), (0, -5, 3), (1, 18, 40), (2, 25, 30), (3, 4, 2)])
    out = crop_spans(spans, W, H)
    assert out.tolist() == [
        [0, 0, 3, FULL_COVERAGE],
        [1, 18, W - 1, FULL_COVERAGE],
    ]


def test_merge_joins_adjacent_and_overlapping_runs() -> None:
    spans = make_spans([(2, 5, 7), (2, 0, 3), (2, 4, 4), (1, 0, 0)])
    out = merge_spans(spans)
    assert out.tolist() == [[1, 0, 0, FULL_COVERAGE], [2, 0, 7, FULL_COVERAGE]]


def test_line_single_point_and_diagonal() -> None:
    assert rasterize_line(3, 4, 3, 4, W, H).tolist() == [[4, 3, 3, FULL_COVERAGE]]
    diag = rasterize_line(0, 0, 4, 4, W, H)
    assert _covered(diag) == {(i, i) for i in range(5)}


def test_line_outside_canvas_is_cropped() -> None:
    spans = rasterize_line(-10, -10, -1, -1, W, H)
    assert spans.shape == (0, 4)


def test_path_connects_vertices() -> None:
    spans = rasterize_path(as_int_array([0, 5, 5]), as_int_array([0, 0, 5]), W, H)
    cov = _covered(spans)
    assert {(0, 0), (5, 0), (5, 5)} <= cov
    assert _no_overlap(spans)


def test_axis_aligned_triangle_area() -> None:
    spans = rasterize_triangle(0, 0, 10, 0, 0, 10, W, H)
    assert spans_within(spans, W, H)
    assert _no_overlap(spans)
    cov = _covered(spans)
    assert (0, 5) in cov and (1, 1) in cov
    assert (9, 9) not in cov


def test_flat_triangle_emits_one_row() -> None:
    spans = rasterize_triangle(2, 5, 8, 5, 4, 5, W, H)
    assert spans.shape[0] == 1
    assert spans[0, 0] == 5


def test_polygon_square_covers_interior() -> None:
    xs = as_int_array([2, 8, 8, 2])
    ys = as_int_array([2, 2, 8, 8])
    spans = rasterize_polygon(xs, ys, W, H)
    cov = _covered(spans)
    assert (5, 5) in cov
    assert (1, 5) not in cov and (5, 9) not in cov
    assert _no_overlap(spans)


def test_ellipse_symmetry_and_bounds() -> None:
    spans = rasterize_ellipse(10, 7, 4, 3, W, H)
    cov = _covered(spans)
    assert (10, 7) in cov
    assert (6, 7) in cov or (14, 7) in cov
    assert spans_within(spans, W, H)


def test_ellipse_huge_radius_is_cropped() -> None:
    spans = rasterize_ellipse(10, 7, 500, 500, W, H)
    assert spans_within(spans, W, H)
    assert span_pixel_count(spans) == W * H


def test_quad_rotated_square() -> None:
    xs = as_int_array([10, 14, 10, 6])
    ys = as_int_array([3, 7, 11, 7])
    spans = rasterize_quad(xs, ys, W, H)
    assert (10, 7) in _covered(spans)
    assert spans_within(spans, W, H)
    assert _no_overlap(spans)


def test_full_canvas_spans_count() -> None:
    spans = full_canvas_spans(W, H)
    assert span_pixel_count(spans) == W * H
    assert full_canvas_spans(0, 3).shape == (0, 4)


def test_make_spans_rejects_bad_rows() -> None:
    with pytest.raises(ValueError):
        make_spans([(1, 2)])  # type: ignore[list-item]


def test_normalize_mask_crops_merges_and_rejects_mixed_overlap() -> None:
    spans = make_spans([(0, 0, 2), (0, 1, 3), (-1, 0, 3), (1, -4, 1), (1, 2, W + 5)])
    out = normalize_mask(spans, W, H)
    assert out.tolist() == [
        [0, 0, 3, FULL_COVERAGE],
        [1, 0, W - 1, FULL_COVERAGE],
    ]
    with pytest.raises(ValueError):
        normalize_mask(make_spans([(2, 0, 4, FULL_COVERAGE), (2, 4, 6, 100)]), W, H)
    with pytest.raises(ValueError):
        normalize_mask(np.zeros((2, 3), dtype=np.int32), W, H)
