from __future__ import annotations

import numpy as np
import pytest

from engine.core.scanline import spans_within
from shapes import ShapeKind, create_shape, list_shape_kinds
from shapes.rectangle import Rectangle

W, H = 48, 32

RAW_LENGTHS = {
    ShapeKind.CIRCLE: 3,
    ShapeKind.CUBIC_CURVE: 9,
    ShapeKind.ELLIPSE: 4,
    ShapeKind.LINE: 4,
    ShapeKind.POLYGON: 8,
    ShapeKind.POLYLINE: 8,
    ShapeKind.QUADRATIC_CURVE: 7,
    ShapeKind.RECTANGLE: 4,
    ShapeKind.ROTATED_ELLIPSE: 5,
    ShapeKind.ROTATED_RECTANGLE: 5,
    ShapeKind.TRIANGLE: 6,
}


@pytest.mark.smoke
def test_every_kind_is_registered() -> None:
    assert list_shape_kinds() == list(ShapeKind)


@pytest.mark.parametrize("kind", list(ShapeKind))
def test_spans_stay_inside_canvas_after_mutations(kind: ShapeKind) -> None:
    rng = np.random.default_rng(7)
    for _ in range(20):
        shape = create_shape(kind, W, H, rng)
        for _ in range(50):
            shape.mutate(rng)
            assert spans_within(shape.rasterize(), W, H)


@pytest.mark.parametrize("kind", list(ShapeKind))
def test_raw_length_is_fixed_per_kind(kind: ShapeKind) -> None:
    rng = np.random.default_rng(11)
    for _ in range(5):
        shape = create_shape(kind, W, H, rng)
        shape.mutate(rng)
        assert len(shape.raw()) == RAW_LENGTHS[kind]
        assert all(isinstance(v, float) for v in shape.raw())


@pytest.mark.parametrize("kind", list(ShapeKind))
def test_copy_is_independent(kind: ShapeKind) -> None:
    rng = np.random.default_rng(3)
    shape = create_shape(kind, W, H, rng)
    cp = shape.copy()
    assert cp == shape
    assert cp is not shape
    for _ in range(30):
        cp.mutate(rng)
    # 元の形状は変化しない
    assert shape.raw() == create_shape(kind, W, H, np.random.default_rng(3)).raw()


@pytest.mark.parametrize("kind", list(ShapeKind))
def test_svg_contains_attrs(kind: ShapeKind) -> None:
    shape = create_shape(kind, W, H, np.random.default_rng(5))
    text = shape.svg('fill="#ff0000"')
    assert text.startswith("<")
    assert text.endswith("/>") or text.endswith("</g>")
    assert 'fill="#ff0000"' in text


def test_stroked_kinds() -> None:
    stroked = {k for k in ShapeKind if k.stroked}
    assert stroked == {
        ShapeKind.LINE,
        ShapeKind.POLYLINE,
        ShapeKind.QUADRATIC_CURVE,
        ShapeKind.CUBIC_CURVE,
    }


def test_rectangle_rows_exclude_bottom_edge() -> None:
    spans = Rectangle(0, 0, 4, 3, 5, 4).rasterize()
    assert spans[:, 0].tolist() == [0, 1, 2]
    assert spans[:, 1].tolist() == [0, 0, 0]
    assert spans[:, 2].tolist() == [4, 4, 4]
