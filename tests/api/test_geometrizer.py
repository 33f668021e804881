from __future__ import annotations

import json

import pytest

from api import Geometrizer, ShapeKind, ShapeResult
from engine.core.bitmap import Bitmap
from util.color import average_color, rgb

FAST = {"alpha": 128, "candidates": 6, "age": 6, "trials": 2}


@pytest.fixture()
def geo(gradient_target: Bitmap):
    g = Geometrizer(
        gradient_target, size=64, num_workers=2, seed=4, use_processes=False, config={}
    )
    yield g
    g.close()


def test_defaults_background_is_average_color(geo: Geometrizer, gradient_target: Bitmap) -> None:
    assert geo.model.background == average_color(gradient_target.pixels)
    assert geo.target() is gradient_target
    assert geo.results == ()


def test_config_supplies_defaults(gradient_target: Bitmap) -> None:
    cfg = {
        "search": {"shapes": ["ellipse"], "candidates": 4, "age": 4, "trials": 1},
        "model": {"size": 128, "workers": 1, "background": "#ff0000"},
    }
    with Geometrizer(gradient_target, use_processes=False, seed=1, config=cfg) as g:
        assert g.model.scaled_width == 128
        assert g.model.num_workers == 1
        assert g.model.background == rgb(255, 0, 0)
        assert g.default_kinds() == [ShapeKind.ELLIPSE]
        results = g.step()
        assert all(r.shape.kind is ShapeKind.ELLIPSE for r in results)


def test_step_and_snapshot(geo: Geometrizer) -> None:
    before = geo.score
    results = geo.step(["triangle", "ellipse"], **FAST)
    assert all(isinstance(r, ShapeResult) for r in results)
    assert geo.score <= before
    snap = geo.snapshot()
    assert snap is not geo.model.current
    assert snap.same_pixels(geo.model.current)


def test_run_commits_requested_count(geo: Geometrizer) -> None:
    committed = geo.run("triangle,rectangle", 3, **FAST)
    assert len(committed) >= 3
    assert geo.results == tuple(committed)
    with pytest.raises(ValueError):
        geo.run("triangle", -1)


def test_run_stops_when_stalled() -> None:
    flat = Bitmap.filled(12, 12, rgb(40, 40, 40))
    with Geometrizer(flat, use_processes=False, num_workers=1, config={}) as g:
        assert g.run("triangle", 5, **FAST) == []


def test_exports(geo: Geometrizer) -> None:
    geo.run(["circle"], 2, **FAST)
    svg = geo.to_svg()
    assert 'viewBox="0 0 64 48"' in svg
    assert svg.count("<circle") == len(geo.results)
    data = json.loads(geo.to_json())
    assert len(data) == len(geo.results)
