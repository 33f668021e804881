from __future__ import annotations

import numpy as np
import pytest

from shapes import ShapeKind, get_shape_class, is_shape_registered, parse_kinds, random_shape_of
from shapes.circle import Circle
from shapes.registry import check_exhaustive, get_registry, shape_kind


def test_parse_accepts_enum_and_loose_names() -> None:
    assert ShapeKind.parse(ShapeKind.LINE) is ShapeKind.LINE
    assert ShapeKind.parse("Rotated-Ellipse") is ShapeKind.ROTATED_ELLIPSE
    assert ShapeKind.parse(" cubic curve ") is ShapeKind.CUBIC_CURVE
    assert str(ShapeKind.TRIANGLE) == "triangle"


def test_parse_errors() -> None:
    with pytest.raises(KeyError):
        ShapeKind.parse("hexagon")
    with pytest.raises(TypeError):
        ShapeKind.parse(3)  # type: ignore[arg-type]


def test_parse_kinds_variants_and_dedup() -> None:
    assert parse_kinds("triangle, ellipse,triangle") == [ShapeKind.TRIANGLE, ShapeKind.ELLIPSE]
    assert parse_kinds(ShapeKind.CIRCLE) == [ShapeKind.CIRCLE]
    assert parse_kinds(["line", ShapeKind.LINE, "polyline"]) == [
        ShapeKind.LINE,
        ShapeKind.POLYLINE,
    ]
    assert parse_kinds("") == []


def test_lookup_and_unknown_kind() -> None:
    assert get_shape_class("circle") is Circle
    assert Circle.kind is ShapeKind.CIRCLE
    assert is_shape_registered("circle")
    assert not is_shape_registered("hexagon")
    with pytest.raises(KeyError):
        get_shape_class("hexagon")


def test_registry_is_exhaustive() -> None:
    check_exhaustive()
    assert set(get_registry()) == {k.value for k in ShapeKind}


def test_decorator_rejects_non_shape_class() -> None:
    with pytest.raises(TypeError):

        @shape_kind(ShapeKind.CIRCLE)
        class NotAShape:  # テスト用
            pass


def test_random_shape_of_picks_from_kinds() -> None:
    rng = np.random.default_rng(0)
    seen = {random_shape_of(["circle", "ellipse"], 20, 20, rng).kind for _ in range(50)}
    assert seen == {ShapeKind.CIRCLE, ShapeKind.ELLIPSE}
    with pytest.raises(ValueError):
        random_shape_of([], 20, 20, rng)
